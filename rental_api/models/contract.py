"""Rental contract model - the lease agreement between an owner and a tenant."""

from enum import Enum
import uuid

from sqlalchemy import (
    Column, DateTime, Text, Integer, Date, Numeric, JSON, ForeignKey, Uuid, Enum as SAEnum,
    CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from rental_api.database import Base, utcnow


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    SIGNED_OWNER = "SIGNED_OWNER"
    SIGNED_TENANT = "SIGNED_TENANT"
    COMPLETED = "COMPLETED"
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class ContractParty(str, Enum):
    """Side of the agreement a user acts for."""
    OWNER = "owner"
    TENANT = "tenant"


class Contract(Base):
    """Lease agreement and its lifecycle state.

    ``version`` is the mapper's version counter: every UPDATE is issued as
    ``... WHERE id = :id AND version = :loaded_version`` so a write based on a
    stale read fails instead of overwriting a concurrent transition.
    """

    __tablename__ = "contracts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Parties
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Commercial terms
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    monthly_rent = Column(Numeric(10, 2), nullable=False)
    charges = Column(Numeric(10, 2), nullable=True)
    deposit = Column(Numeric(10, 2), nullable=True)

    terms = Column(Text, nullable=True)

    # Open payloads; content also carries signature_metadata and cancellation
    content = Column(JSON, nullable=True)
    custom_clauses = Column(JSON, nullable=True)

    # Signatures
    owner_signature = Column(Text, nullable=True)  # Base64 image or typed name
    signed_by_owner = Column(DateTime(timezone=True), nullable=True)
    tenant_signature = Column(Text, nullable=True)
    signed_by_tenant = Column(DateTime(timezone=True), nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)  # both parties signed

    status = Column(
        SAEnum(ContractStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ContractStatus.DRAFT,
        index=True,
    )
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_contracts_date_range"),
        Index("ix_contracts_property_dates", "property_id", "start_date", "end_date"),
    )

    rental_property = relationship("Property")
    tenant = relationship("User", foreign_keys=[tenant_id])
    owner = relationship("User", foreign_keys=[owner_id])
    documents = relationship(
        "ContractDocument",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractDocument.created_at.desc()",
    )

    def __repr__(self):
        return f"<Contract {self.id} - {self.status.value if self.status else None}>"

    @property
    def is_fully_signed(self) -> bool:
        return self.signed_by_owner is not None and self.signed_by_tenant is not None

    def party_of(self, user_id) -> ContractParty | None:
        """Which side ``user_id`` is on, or None for outsiders."""
        if user_id is None:
            return None
        if self.owner_id == user_id:
            return ContractParty.OWNER
        if self.tenant_id == user_id:
            return ContractParty.TENANT
        return None

    def counterparty_id(self, party: ContractParty) -> int:
        return self.tenant_id if party == ContractParty.OWNER else self.owner_id
