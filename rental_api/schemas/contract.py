"""Request/response schemas for rental contracts."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from rental_api.models.contract import ContractStatus
from rental_api.models.property import PropertyStatus


class ContractCreate(BaseModel):
    property_id: UUID
    tenant_identifier: Union[int, str] = Field(..., description="Tenant user id or email address")
    start_date: date
    end_date: date
    monthly_rent: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    charges: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    deposit: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    terms: Optional[str] = None
    content: Optional[dict] = None
    custom_clauses: Optional[dict] = None


class ContractUpdate(BaseModel):
    """Partial update. Status is deliberately absent: it only moves through
    the lifecycle operations."""

    model_config = ConfigDict(extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    charges: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    deposit: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    terms: Optional[str] = None
    content: Optional[dict] = None
    custom_clauses: Optional[dict] = None


class SignContractRequest(BaseModel):
    signature_data: Optional[str] = Field(None, description="Base64 image, SVG path or typed name")


class CancelContractRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class PartySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None


class PropertySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    status: PropertyStatus


class ContractResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    property_id: UUID
    tenant_id: int
    owner_id: int
    start_date: date
    end_date: date
    monthly_rent: float
    charges: Optional[float] = None
    deposit: Optional[float] = None
    terms: Optional[str] = None
    content: Optional[dict] = None
    custom_clauses: Optional[dict] = None
    owner_signature: Optional[str] = None
    signed_by_owner: Optional[datetime] = None
    tenant_signature: Optional[str] = None
    signed_by_tenant: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    status: ContractStatus
    version: int
    is_fully_signed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    property: Optional[PropertySummary] = Field(None, validation_alias="rental_property")
    tenant: Optional[PartySummary] = None
    owner: Optional[PartySummary] = None


class ContractListResponse(BaseModel):
    items: List[ContractResponse]
    total: int
    page: int
    page_size: int


class ContractStatistics(BaseModel):
    perspective: Literal["owner", "tenant"]
    total: int
    by_status: Dict[ContractStatus, int]


class PartySignatureCheck(BaseModel):
    signed: bool
    recorded_hash: Optional[str] = None
    matches: Optional[bool] = None


class SignatureVerification(BaseModel):
    contract_id: UUID
    current_hash: str
    owner: PartySignatureCheck
    tenant: PartySignatureCheck

    @computed_field
    @property
    def intact(self) -> bool:
        """No recorded signature disagrees with the current terms."""
        return all(check.matches is not False for check in (self.owner, self.tenant))
