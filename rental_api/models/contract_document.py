"""Evidentiary files attached to a contract (identity proofs, payslips, diagnostics)."""

from enum import Enum
import uuid

from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship

from rental_api.database import Base, utcnow


class DocumentStatus(str, Enum):
    UPLOADED = "UPLOADED"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class ContractDocument(Base):
    __tablename__ = "contract_documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    contract_id = Column(Uuid, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    category = Column(String(100), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(500), nullable=False)  # reference into the file store
    file_size = Column(Integer, nullable=False)  # bytes
    mime_type = Column(String(100), nullable=False)

    status = Column(
        SAEnum(DocumentStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DocumentStatus.UPLOADED,
    )
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    contract = relationship("Contract", back_populates="documents")
    uploaded_by = relationship("User")

    def __repr__(self):
        return f"<ContractDocument {self.category}:{self.file_name} - {self.status.value if self.status else None}>"
