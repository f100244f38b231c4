"""Document submissions for identity and income checks"""

import logging
from datetime import datetime
from typing import Callable, List

from lending_gateway.domain.exceptions import validation_error
from lending_gateway.domain.gateway import PersistenceGateway, insert_once
from lending_gateway.domain.models import Document, DocumentStatus, DocumentType, User
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import utc_now
from lending_gateway.utils.identifiers import new_id


class DocumentService:
    """Records submitted files; the file bytes live in external object storage"""

    def __init__(
        self,
        gateway: PersistenceGateway,
        executor: ResilientExecutor,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.executor = executor
        self.clock = clock

    async def upload_document(
        self, user_id: str, document_type: DocumentType, file_name: str, url: str = ""
    ) -> Document:
        file_name = file_name.strip()
        if not file_name:
            raise validation_error("File name is required")

        user = await self.executor.run(lambda: self.gateway.get(User, user_id))
        if user is None:
            raise validation_error("User not found", user_id=user_id)

        document = Document(
            id=new_id(),
            user_id=user_id,
            document_type=DocumentType(document_type),
            file_name=file_name,
            status=DocumentStatus.PENDING,
            submitted_at=self.clock(),
            url=url,
        )
        stored = await self.executor.run(lambda: insert_once(self.gateway, document))

        logging.info(
            "Document submitted",
            extra={
                "step": "document_submitted",
                "user_id": user_id,
                "document_id": stored.id,
                "document_type": stored.document_type.value,
            },
        )
        return stored

    async def list_documents(self, user_id: str) -> List[Document]:
        documents = await self.executor.run(lambda: self.gateway.list(Document, user_id=user_id))
        return sorted(documents, key=lambda d: d.submitted_at, reverse=True)
