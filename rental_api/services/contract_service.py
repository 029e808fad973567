"""Rental contract lifecycle.

Owns the contract state machine::

    DRAFT -> SENT -> SIGNED_OWNER | SIGNED_TENANT -> COMPLETED -> ACTIVE -> TERMINATED
                 \\______________ CANCELLED <______________/

Every operation loads the contract, checks the caller's side of the agreement
and the current status against the freshly loaded row, applies the transition
and commits once. Writes are guarded by the ``version`` column: an UPDATE based
on a stale read raises ``StaleDataError``, surfaced as a retryable
``ConflictError``. Property availability changes commit in the same
transaction as the contract status. Creates and date moves lock the property row
and re-check overlaps after the write is flushed. Notifications are queued in a SAVEPOINT
and never fail the transition.
"""

from datetime import date
from typing import Awaitable, Callable, Optional, Union
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from rental_api.database import utcnow
from rental_api.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from rental_api.models.contract import Contract, ContractParty, ContractStatus
from rental_api.models.property import Property, PropertyStatus
from rental_api.models.user import User, UserRole
from rental_api.schemas.contract import (
    ContractCreate,
    ContractStatistics,
    ContractUpdate,
    SignatureVerification,
)
from rental_api.schemas.contract_content import (
    CancellationRecord,
    ContractContent,
    SignatureProvenance,
)
from rental_api.services.notification_service import NotificationDispatcher
from rental_api.services.signature_audit import (
    compute_content_hash,
    record_signature,
    verify_signature,
)

logger = logging.getLogger(__name__)

# Statuses whose date range blocks other contracts on the same property
OVERLAP_GUARDED_STATUSES = (
    ContractStatus.DRAFT,
    ContractStatus.SENT,
    ContractStatus.SIGNED_OWNER,
    ContractStatus.SIGNED_TENANT,
    ContractStatus.COMPLETED,
    ContractStatus.ACTIVE,
)

# Terms are frozen once fully executed
FROZEN_STATUSES = {ContractStatus.EXPIRED, ContractStatus.COMPLETED, ContractStatus.ACTIVE}

OWNER_SIGNABLE_STATUSES = {ContractStatus.DRAFT, ContractStatus.SENT, ContractStatus.SIGNED_TENANT}
TENANT_SIGNABLE_STATUSES = {ContractStatus.SENT, ContractStatus.SIGNED_OWNER}

CANCELLABLE_STATUSES = {
    ContractStatus.SENT,
    ContractStatus.SIGNED_OWNER,
    ContractStatus.SIGNED_TENANT,
    ContractStatus.COMPLETED,
}

SORTABLE_FIELDS = {
    "created_at": Contract.created_at,
    "updated_at": Contract.updated_at,
    "start_date": Contract.start_date,
    "end_date": Contract.end_date,
    "monthly_rent": Contract.monthly_rent,
    "status": Contract.status,
}

# Columns that may be changed but never cleared by update
REQUIRED_FIELDS = {"start_date", "end_date", "monthly_rent"}


def contract_link(contract_id) -> str:
    return f"/contracts/{contract_id}"


class ContractLifecycleManager:
    """Service object bound to one request's session."""

    def __init__(self, db: AsyncSession, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier or NotificationDispatcher(db)

    # ------------------------------------------------------------------
    # Loading and guards
    # ------------------------------------------------------------------

    async def _load(self, contract_id) -> Contract:
        contract = await self.db.get(Contract, contract_id, populate_existing=True)
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        return contract

    async def _with_parties(self, contract: Contract) -> Contract:
        await contract.awaitable_attrs.rental_property
        await contract.awaitable_attrs.tenant
        await contract.awaitable_attrs.owner
        return contract

    @staticmethod
    def _require_party(contract: Contract, caller_id: Optional[int]) -> Optional[ContractParty]:
        """Side of the agreement ``caller_id`` is on.

        ``None`` as caller means an unrestricted read (administrators).
        """
        if caller_id is None:
            return None
        party = contract.party_of(caller_id)
        if party is None:
            raise ForbiddenError("Only the owner or the tenant of this contract can access it")
        return party

    @staticmethod
    def _require_owner(contract: Contract, caller_id: int, action: str) -> None:
        if contract.party_of(caller_id) != ContractParty.OWNER:
            raise ForbiddenError(f"Only the owner can {action} this contract")

    @staticmethod
    def _require_status(contract: Contract, allowed, action: str) -> None:
        if contract.status not in allowed:
            expected = ", ".join(sorted(status.value for status in allowed))
            raise InvalidStateError(
                f"Cannot {action} a contract with status {contract.status.value} (expected {expected})",
                current_status=contract.status.value,
            )

    @staticmethod
    def _check_dates(start_date: date, end_date: date) -> None:
        if start_date >= end_date:
            raise ValidationError(
                "End date must be after start date",
                errors=[{"field": "end_date", "message": f"{end_date} is not after {start_date}"}],
            )

    async def _check_overlap(self, property_id, start_date: date, end_date: date, exclude_id=None) -> None:
        # Inclusive ranges: a contract ending on the day another starts overlaps it
        stmt = select(Contract.id, Contract.start_date, Contract.end_date, Contract.status).where(
            Contract.property_id == property_id,
            Contract.status.in_(OVERLAP_GUARDED_STATUSES),
            Contract.start_date <= end_date,
            Contract.end_date >= start_date,
        )
        if exclude_id is not None:
            stmt = stmt.where(Contract.id != exclude_id)
        clash = (await self.db.execute(stmt.limit(1))).first()
        if clash is not None:
            raise ConflictError(
                f"Property already has a {clash.status.value} contract from {clash.start_date} "
                f"to {clash.end_date} overlapping these dates"
            )

    async def _lock_property(self, property_id) -> Optional[Property]:
        """Row lock that serializes date-range writes on one property."""
        result = await self.db.execute(select(Property).where(Property.id == property_id).with_for_update())
        return result.scalar_one_or_none()

    async def _resolve_tenant(self, identifier: Union[int, str]) -> User:
        """Find the tenant by user id or email address."""
        user = None
        if isinstance(identifier, int):
            user = await self.db.get(User, identifier)
        else:
            value = identifier.strip()
            if "@" in value:
                result = await self.db.execute(select(User).where(func.lower(User.email) == value.lower()))
                user = result.scalar_one_or_none()
            elif value.isdigit():
                user = await self.db.get(User, int(value))

        if user is None:
            raise NotFoundError("Tenant", detail=f"No user account found for tenant '{identifier}'")
        if user.role != UserRole.TENANT:
            raise ValidationError(
                f"User '{identifier}' is registered as {user.role.value}, not as a tenant",
                errors=[{"field": "tenant_identifier", "message": "User does not have the tenant role"}],
            )
        return user

    async def _persist(
        self,
        contract: Contract,
        action: str,
        notification: Optional[dict] = None,
        after_flush: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        """Flush the version-checked write, run ``after_flush``, queue the notification, commit.

        ``after_flush`` sees the pending write inside the same transaction; a
        ``ConflictError`` from it rolls the write back.
        """
        contract_id = contract.id
        try:
            await self.db.flush()
        except StaleDataError:
            # rollback expires every loaded instance
            await self.db.rollback()
            logger.warning(f"Concurrent modification of contract {contract_id} during {action}")
            raise ConflictError(
                "Contract was modified by another request; reload it and retry",
                retryable=True,
            )

        if after_flush is not None:
            try:
                await after_flush()
            except ConflictError:
                await self.db.rollback()
                logger.warning(f"Contract {contract_id} {action} rejected: overlapping dates")
                raise

        if notification is not None:
            await self.notifier.enqueue(**notification)

        await self.db.commit()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_contract(self, owner_id: int, data: ContractCreate) -> Contract:
        self._check_dates(data.start_date, data.end_date)

        rental_property = await self._lock_property(data.property_id)
        if rental_property is None:
            raise NotFoundError("Property", data.property_id)
        if rental_property.owner_id != owner_id:
            raise ForbiddenError("You can only create contracts for your own properties")

        tenant = await self._resolve_tenant(data.tenant_identifier)

        contract = Contract(
            property_id=data.property_id,
            tenant_id=tenant.id,
            owner_id=owner_id,
            start_date=data.start_date,
            end_date=data.end_date,
            monthly_rent=data.monthly_rent,
            charges=data.charges,
            deposit=data.deposit,
            terms=data.terms,
            content=ContractContent.from_terms(data.content).to_column(),
            custom_clauses=data.custom_clauses,
            status=ContractStatus.DRAFT,
        )
        self.db.add(contract)
        # Checked after the insert is flushed so a concurrent create committed
        # in between is seen
        await self._persist(
            contract,
            "create",
            after_flush=lambda: self._check_overlap(
                data.property_id, data.start_date, data.end_date, exclude_id=contract.id
            ),
        )

        logger.info(f"Contract {contract.id} created by owner {owner_id} for tenant {tenant.id}")
        return await self._with_parties(contract)

    async def get_contract(self, contract_id, caller_id: Optional[int]) -> Contract:
        contract = await self._load(contract_id)
        self._require_party(contract, caller_id)
        return await self._with_parties(contract)

    async def update_contract(self, contract_id, caller_id: int, data: ContractUpdate) -> Contract:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "update")
        if contract.status in FROZEN_STATUSES:
            raise InvalidStateError(
                f"Cannot modify a contract with status {contract.status.value}",
                current_status=contract.status.value,
            )

        changes = data.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS & changes.keys():
            if changes[field] is None:
                raise ValidationError(f"{field} cannot be cleared")

        overlap_check = None
        if "start_date" in changes or "end_date" in changes:
            start_date = changes.get("start_date", contract.start_date)
            end_date = changes.get("end_date", contract.end_date)
            self._check_dates(start_date, end_date)
            if contract.status in OVERLAP_GUARDED_STATUSES:
                await self._lock_property(contract.property_id)
                overlap_check = lambda: self._check_overlap(  # noqa: E731
                    contract.property_id, start_date, end_date, exclude_id=contract.id
                )

        if "content" in changes:
            # Audit sections survive any content replacement
            current = ContractContent.from_column(contract.content)
            changes["content"] = current.with_terms(changes["content"]).to_column()

        for field, value in changes.items():
            setattr(contract, field, value)

        await self._persist(contract, "update", after_flush=overlap_check)
        logger.info(f"Contract {contract.id} updated by owner {caller_id}: {sorted(changes)}")
        return await self._with_parties(contract)

    async def delete_contract(self, contract_id, caller_id: int) -> None:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "delete")
        if contract.status != ContractStatus.DRAFT:
            raise InvalidStateError(
                f"Only draft contracts can be deleted; cancel this {contract.status.value} contract instead",
                current_status=contract.status.value,
            )

        await self.db.delete(contract)
        await self._persist(contract, "delete")
        logger.info(f"Contract {contract_id} deleted by owner {caller_id}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def send(self, contract_id, caller_id: int) -> Contract:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "send")
        self._require_status(contract, {ContractStatus.DRAFT}, "send")

        contract.status = ContractStatus.SENT
        await self._persist(
            contract,
            "send",
            notification={
                "recipient_user_id": contract.tenant_id,
                "notification_type": "contract_sent",
                "title": "New contract to sign",
                "message": "You have received a rental contract. Review and sign it.",
                "action_url": contract_link(contract.id),
                "metadata": {"contract_id": str(contract.id)},
            },
        )
        logger.info(f"Contract {contract.id} sent to tenant {contract.tenant_id}")
        return await self._with_parties(contract)

    async def sign(
        self,
        contract_id,
        caller_id: int,
        signature_data: Optional[str] = None,
        provenance: Optional[SignatureProvenance] = None,
    ) -> Contract:
        """Record the caller's signature.

        The signing side is derived from the caller's identity. Every check
        runs before the first attribute is touched, so a rejected call leaves
        the contract exactly as loaded.
        """
        contract = await self._load(contract_id)
        party = contract.party_of(caller_id)
        if party is None:
            raise ForbiddenError("Only the owner or the tenant of this contract can sign it")

        if party == ContractParty.OWNER:
            if contract.signed_by_owner is not None:
                raise InvalidStateError("The owner has already signed this contract", current_status=contract.status.value)
            self._require_status(contract, OWNER_SIGNABLE_STATUSES, "sign as owner")
        else:
            if contract.signed_by_tenant is not None:
                raise InvalidStateError("The tenant has already signed this contract", current_status=contract.status.value)
            self._require_status(contract, TENANT_SIGNABLE_STATUSES, "sign as tenant")

        now = utcnow()
        content = ContractContent.from_column(contract.content)
        metadata = record_signature(
            content.signature_metadata,
            party,
            provenance,
            content_hash=compute_content_hash(contract.content, contract.custom_clauses),
            timestamp=now,
        )
        contract.content = content.model_copy(update={"signature_metadata": metadata}).to_column()

        if party == ContractParty.OWNER:
            contract.owner_signature = signature_data
            contract.signed_by_owner = now
        else:
            contract.tenant_signature = signature_data
            contract.signed_by_tenant = now

        if contract.is_fully_signed:
            contract.status = ContractStatus.COMPLETED
            contract.signed_at = now
            message = f"The {party.value} signed the contract. It is now fully signed."
        else:
            contract.status = ContractStatus.SIGNED_OWNER if party == ContractParty.OWNER else ContractStatus.SIGNED_TENANT
            message = f"The {party.value} signed the contract and is waiting for your signature."

        await self._persist(
            contract,
            "sign",
            notification={
                "recipient_user_id": contract.counterparty_id(party),
                "notification_type": "contract_signed",
                "title": "Contract signed",
                "message": message,
                "action_url": contract_link(contract.id),
                "metadata": {"contract_id": str(contract.id), "signed_by": party.value},
            },
        )
        logger.info(f"Contract {contract.id} signed by {party.value} {caller_id}; status {contract.status.value}")
        return await self._with_parties(contract)

    async def activate(self, contract_id, caller_id: int) -> Contract:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "activate")
        self._require_status(contract, {ContractStatus.COMPLETED}, "activate")

        rental_property = await contract.awaitable_attrs.rental_property
        contract.status = ContractStatus.ACTIVE
        rental_property.status = PropertyStatus.OCCUPIED

        await self._persist(
            contract,
            "activate",
            notification={
                "recipient_user_id": contract.tenant_id,
                "notification_type": "contract_activated",
                "title": "Lease active",
                "message": f"Your lease for {rental_property.title} is now active.",
                "action_url": contract_link(contract.id),
                "metadata": {"contract_id": str(contract.id)},
            },
        )
        logger.info(f"Contract {contract.id} activated; property {rental_property.id} occupied")
        return await self._with_parties(contract)

    async def terminate(self, contract_id, caller_id: int) -> Contract:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "terminate")
        self._require_status(contract, {ContractStatus.ACTIVE}, "terminate")

        rental_property = await contract.awaitable_attrs.rental_property
        contract.status = ContractStatus.TERMINATED
        rental_property.status = PropertyStatus.AVAILABLE

        await self._persist(
            contract,
            "terminate",
            notification={
                "recipient_user_id": contract.tenant_id,
                "notification_type": "contract_terminated",
                "title": "Lease terminated",
                "message": f"Your lease for {rental_property.title} has been terminated.",
                "action_url": contract_link(contract.id),
                "metadata": {"contract_id": str(contract.id)},
            },
        )
        logger.info(f"Contract {contract.id} terminated; property {rental_property.id} available")
        return await self._with_parties(contract)

    async def cancel(self, contract_id, caller_id: int, reason: Optional[str] = None) -> Contract:
        contract = await self._load(contract_id)
        self._require_owner(contract, caller_id, "cancel")
        self._require_status(contract, CANCELLABLE_STATUSES, "cancel")

        record = CancellationRecord(
            reason=reason,
            cancelled_at=utcnow(),
            cancelled_by=caller_id,
            previous_status=contract.status,
        )
        content = ContractContent.from_column(contract.content)
        contract.content = content.model_copy(update={"cancellation": record}).to_column()
        contract.status = ContractStatus.CANCELLED

        message = "The owner cancelled the contract."
        if reason:
            message = f"The owner cancelled the contract. Reason: {reason}"
        await self._persist(
            contract,
            "cancel",
            notification={
                "recipient_user_id": contract.tenant_id,
                "notification_type": "contract_cancelled",
                "title": "Contract cancelled",
                "message": message,
                "action_url": contract_link(contract.id),
                "metadata": {"contract_id": str(contract.id), "reason": reason},
            },
        )
        logger.info(f"Contract {contract.id} cancelled by owner {caller_id} (was {record.previous_status.value})")
        return await self._with_parties(contract)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_contracts(
        self,
        *,
        property_id=None,
        tenant_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        status: Optional[ContractStatus] = None,
        participant_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[Contract], int]:
        """Filtered, sorted page of contracts and the total match count.

        ``participant_id`` restricts to contracts where that user is either
        party.
        """
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by '{sort_by}'; use one of {', '.join(sorted(SORTABLE_FIELDS))}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")

        conditions = []
        if property_id is not None:
            conditions.append(Contract.property_id == property_id)
        if tenant_id is not None:
            conditions.append(Contract.tenant_id == tenant_id)
        if owner_id is not None:
            conditions.append(Contract.owner_id == owner_id)
        if status is not None:
            conditions.append(Contract.status == status)
        if participant_id is not None:
            conditions.append((Contract.owner_id == participant_id) | (Contract.tenant_id == participant_id))

        count_query = select(func.count()).select_from(Contract).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        sort_column = SORTABLE_FIELDS[sort_by]
        order = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        query = (
            select(Contract)
            .where(*conditions)
            .options(
                selectinload(Contract.rental_property),
                selectinload(Contract.tenant),
                selectinload(Contract.owner),
            )
            .order_by(order, Contract.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_statistics(self, subject_id: int, perspective: ContractParty) -> ContractStatistics:
        """Per-status contract counts for a user acting as owner or tenant."""
        column = Contract.owner_id if perspective == ContractParty.OWNER else Contract.tenant_id
        result = await self.db.execute(
            select(Contract.status, func.count(Contract.id)).where(column == subject_id).group_by(Contract.status)
        )

        by_status = {status: 0 for status in ContractStatus}
        for status, count in result.all():
            by_status[status] = count

        return ContractStatistics(
            perspective=perspective.value,
            total=sum(by_status.values()),
            by_status=by_status,
        )

    async def verify_signatures(self, contract_id, caller_id: Optional[int]) -> SignatureVerification:
        """Recompute the content hash and compare it with each recorded signature."""
        contract = await self._load(contract_id)
        self._require_party(contract, caller_id)

        current_hash = compute_content_hash(contract.content, contract.custom_clauses)
        metadata = ContractContent.from_column(contract.content).signature_metadata
        return SignatureVerification(
            contract_id=contract.id,
            current_hash=current_hash,
            owner=verify_signature(metadata, ContractParty.OWNER, current_hash, signed=contract.signed_by_owner is not None),
            tenant=verify_signature(metadata, ContractParty.TENANT, current_hash, signed=contract.signed_by_tenant is not None),
        )
