"""Contract documents API - evidentiary attachments and their review."""

from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Response, status

from rental_api.api.deps import CurrentUser, DbSession
from rental_api.schemas.contract_document import (
    ChecklistResponse,
    DocumentRejectRequest,
    DocumentResponse,
    DocumentUpload,
)
from rental_api.security.rbac import Permission, contract_read_scope, require_permission
from rental_api.services.contract_document_service import ContractDocumentRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{contract_id}/documents", response_model=List[DocumentResponse])
async def list_documents(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    documents = await ContractDocumentRegistry(db).list_documents(contract_id, contract_read_scope(current_user))
    return [DocumentResponse.model_validate(d) for d in documents]


@router.get("/{contract_id}/documents/checklist", response_model=ChecklistResponse)
async def get_document_checklist(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    return await ContractDocumentRegistry(db).checklist(contract_id, contract_read_scope(current_user))


@router.post(
    "/{contract_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.UPLOAD_DOCUMENTS))],
)
async def upload_document(contract_id: UUID, data: DocumentUpload, db: DbSession, current_user: CurrentUser):
    """Attach a file that is already in the file store."""
    document = await ContractDocumentRegistry(db).upload(contract_id, current_user.id, data)
    return DocumentResponse.model_validate(document)


@router.delete("/{contract_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(contract_id: UUID, document_id: UUID, db: DbSession, current_user: CurrentUser):
    await ContractDocumentRegistry(db).delete(contract_id, document_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{contract_id}/documents/{document_id}/validate",
    response_model=DocumentResponse,
    dependencies=[Depends(require_permission(Permission.REVIEW_DOCUMENTS))],
)
async def validate_document(contract_id: UUID, document_id: UUID, db: DbSession):
    document = await ContractDocumentRegistry(db).validate(contract_id, document_id)
    return DocumentResponse.model_validate(document)


@router.post(
    "/{contract_id}/documents/{document_id}/reject",
    response_model=DocumentResponse,
    dependencies=[Depends(require_permission(Permission.REVIEW_DOCUMENTS))],
)
async def reject_document(contract_id: UUID, document_id: UUID, data: DocumentRejectRequest, db: DbSession):
    document = await ContractDocumentRegistry(db).reject(contract_id, document_id, data.reason)
    return DocumentResponse.model_validate(document)
