"""Contracts API - rental contract lifecycle.

Features:
- Create, read, update, delete (draft only)
- Send, sign, activate, terminate, cancel transitions
- Signature verification against the current terms
- Per-status statistics for dashboards
"""

from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status

from rental_api.api.deps import CurrentUser, DbSession
from rental_api.exceptions import ForbiddenError
from rental_api.models.contract import ContractParty, ContractStatus
from rental_api.models.user import UserRole
from rental_api.schemas.contract import (
    CancelContractRequest,
    ContractCreate,
    ContractListResponse,
    ContractResponse,
    ContractStatistics,
    ContractUpdate,
    SignatureVerification,
    SignContractRequest,
)
from rental_api.schemas.contract_content import SignatureProvenance
from rental_api.security.rbac import Permission, contract_read_scope, require_permission
from rental_api.services.contract_service import ContractLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter()


def _provenance(request: Request) -> SignatureProvenance:
    return SignatureProvenance(
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.get("", response_model=ContractListResponse)
async def list_contracts(
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    property_id: Optional[UUID] = None,
    tenant_id: Optional[int] = None,
    owner_id: Optional[int] = None,
    status_filter: Optional[ContractStatus] = Query(None, alias="status"),
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """List contracts the caller is a party to (admins: all contracts)."""
    contracts, total = await ContractLifecycleManager(db).list_contracts(
        property_id=property_id,
        tenant_id=tenant_id,
        owner_id=owner_id,
        status=status_filter,
        participant_id=contract_read_scope(current_user),
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ContractListResponse(
        items=[ContractResponse.model_validate(c) for c in contracts],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/statistics", response_model=ContractStatistics)
async def get_contract_statistics(db: DbSession, current_user: CurrentUser):
    """Counts by status for the caller, as owner or tenant depending on role."""
    if current_user.role == UserRole.OWNER:
        perspective = ContractParty.OWNER
    elif current_user.role == UserRole.TENANT:
        perspective = ContractParty.TENANT
    else:
        raise ForbiddenError("Statistics are available to owners and tenants only")
    return await ContractLifecycleManager(db).get_statistics(current_user.id, perspective)


@router.post(
    "",
    response_model=ContractResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.CREATE_CONTRACTS))],
)
async def create_contract(data: ContractCreate, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).create_contract(current_user.id, data)
    return ContractResponse.model_validate(contract)


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).get_contract(contract_id, contract_read_scope(current_user))
    return ContractResponse.model_validate(contract)


@router.patch("/{contract_id}", response_model=ContractResponse)
async def update_contract(contract_id: UUID, data: ContractUpdate, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).update_contract(contract_id, current_user.id, data)
    return ContractResponse.model_validate(contract)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    await ContractLifecycleManager(db).delete_contract(contract_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ========================
# Transitions
# ========================


@router.post("/{contract_id}/send", response_model=ContractResponse)
async def send_contract(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).send(contract_id, current_user.id)
    return ContractResponse.model_validate(contract)


@router.post(
    "/{contract_id}/sign",
    response_model=ContractResponse,
    dependencies=[Depends(require_permission(Permission.SIGN_CONTRACTS))],
)
async def sign_contract(
    contract_id: UUID,
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    data: Optional[SignContractRequest] = None,
):
    """Sign as whichever party the caller is. IP and user agent come from the request."""
    contract = await ContractLifecycleManager(db).sign(
        contract_id,
        current_user.id,
        signature_data=data.signature_data if data else None,
        provenance=_provenance(request),
    )
    return ContractResponse.model_validate(contract)


@router.post("/{contract_id}/activate", response_model=ContractResponse)
async def activate_contract(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).activate(contract_id, current_user.id)
    return ContractResponse.model_validate(contract)


@router.post("/{contract_id}/terminate", response_model=ContractResponse)
async def terminate_contract(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    contract = await ContractLifecycleManager(db).terminate(contract_id, current_user.id)
    return ContractResponse.model_validate(contract)


@router.post("/{contract_id}/cancel", response_model=ContractResponse)
async def cancel_contract(
    contract_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    data: Optional[CancelContractRequest] = None,
):
    contract = await ContractLifecycleManager(db).cancel(
        contract_id,
        current_user.id,
        reason=data.reason if data else None,
    )
    return ContractResponse.model_validate(contract)


@router.get("/{contract_id}/signatures/verify", response_model=SignatureVerification)
async def verify_contract_signatures(contract_id: UUID, db: DbSession, current_user: CurrentUser):
    """Check that the recorded signature hashes still match the contract terms."""
    return await ContractLifecycleManager(db).verify_signatures(contract_id, contract_read_scope(current_user))
