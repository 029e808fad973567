"""Schemas for contract document attachments and the required-documents checklist."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rental_api.models.contract_document import DocumentStatus
from rental_api.schemas.contract import PartySummary


class DocumentUpload(BaseModel):
    """Metadata of a file already placed in the file store."""

    category: str = Field(..., min_length=1, max_length=100)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=500)
    file_size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1, max_length=100)


class DocumentRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    contract_id: UUID
    uploaded_by_id: int
    category: str
    file_name: str
    file_url: str
    file_size: int
    mime_type: str
    status: DocumentStatus
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    uploaded_by: Optional[PartySummary] = None


class ChecklistItem(BaseModel):
    category: str
    label: str
    party: Literal["owner", "tenant"]
    status: Optional[DocumentStatus] = None
    document_id: Optional[UUID] = None


class ChecklistResponse(BaseModel):
    contract_id: UUID
    items: List[ChecklistItem]
    complete: bool
