"""Document submissions"""

from typing import List

from fastapi import APIRouter, Depends

from lending_gateway.api.dependencies import get_documents
from lending_gateway.api.v1.schemas import DocumentCreate, DocumentResponse
from lending_gateway.domain.documents import DocumentService

router = APIRouter()


@router.post("/users/{user_id}/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(user_id: str, body: DocumentCreate, documents: DocumentService = Depends(get_documents)):
    document = await documents.upload_document(user_id, **body.model_dump())
    return DocumentResponse.model_validate(document)


@router.get("/users/{user_id}/documents", response_model=List[DocumentResponse])
async def list_documents(user_id: str, documents: DocumentService = Depends(get_documents)):
    return [DocumentResponse.model_validate(d) for d in await documents.list_documents(user_id)]
