"""Unit tests for document submissions"""

import pytest
from lending_gateway.domain.exceptions import ErrorKind, LendingError
from lending_gateway.domain.models import Document, DocumentStatus, DocumentType, User


async def test_upload_document(documents, add_user, gateway, clock):
    """Test a submission is stored PENDING and earns no points"""
    await add_user("u1")

    document = await documents.upload_document("u1", DocumentType.IDENTITY, " rg-front.jpg ", url="s3://docs/rg.jpg")

    assert document.status == DocumentStatus.PENDING
    assert document.file_name == "rg-front.jpg"
    assert document.submitted_at == clock()
    assert await gateway.get(Document, document.id) == document
    assert (await gateway.get(User, "u1")).points == 0


async def test_upload_document_accepts_type_names(documents, add_user):
    """Test plain strings are coerced to the document type"""
    await add_user("u1")

    document = await documents.upload_document("u1", "BANK_STATEMENT", "statement.pdf")

    assert document.document_type == DocumentType.BANK_STATEMENT


async def test_upload_document_requires_file_name(documents, add_user):
    """Test blank file names are rejected"""
    await add_user("u1")

    with pytest.raises(LendingError) as exc_info:
        await documents.upload_document("u1", DocumentType.OTHER, "  ")

    assert exc_info.value.kind == ErrorKind.VALIDATION


async def test_upload_document_unknown_user(documents):
    """Test submissions need an existing user"""
    with pytest.raises(LendingError) as exc_info:
        await documents.upload_document("missing", DocumentType.OTHER, "file.pdf")

    assert exc_info.value.kind == ErrorKind.VALIDATION


async def test_list_documents_per_user(documents, add_user):
    """Test users only see their own submissions"""
    await add_user("u1")
    await add_user("u2")
    mine = await documents.upload_document("u1", DocumentType.PROOF_OF_INCOME, "payslip.pdf")
    await documents.upload_document("u2", DocumentType.PROOF_OF_ADDRESS, "bill.pdf")

    assert await documents.list_documents("u1") == [mine]
