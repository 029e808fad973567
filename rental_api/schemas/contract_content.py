"""
Typed envelope for the open ``contracts.content`` JSON column.

The column stays free-form so negotiated terms can grow without migrations,
but the sections the lifecycle writes itself (signature audit trail and
cancellation record) are typed here and can never be supplied by callers.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rental_api.models.contract import ContractParty, ContractStatus

CONTENT_SCHEMA_VERSION = 1

# Keys owned by the lifecycle; everything else in content is caller terms
AUDIT_SECTIONS = frozenset({"schema_version", "signature_metadata", "cancellation"})


class SignatureProvenance(BaseModel):
    """Where a signature request came from."""

    ip: Optional[str] = None
    user_agent: Optional[str] = None


class SignatureEvent(BaseModel):
    timestamp: datetime
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    content_hash: str


class SignatureMetadata(BaseModel):
    """Per-party signature audit entries."""

    owner: Optional[SignatureEvent] = None
    tenant: Optional[SignatureEvent] = None

    def for_party(self, party: ContractParty) -> Optional[SignatureEvent]:
        return getattr(self, party.value)


class CancellationRecord(BaseModel):
    reason: Optional[str] = None
    cancelled_at: datetime
    cancelled_by: int
    previous_status: ContractStatus


class ContractContent(BaseModel):
    """Versioned envelope stored in ``Contract.content``.

    Caller-defined keys are kept as pydantic extras; ``terms_payload()``
    returns exactly those.
    """

    model_config = ConfigDict(extra="allow")

    schema_version: int = CONTENT_SCHEMA_VERSION
    signature_metadata: SignatureMetadata = Field(default_factory=SignatureMetadata)
    cancellation: Optional[CancellationRecord] = None

    @classmethod
    def from_column(cls, raw: Optional[dict]) -> "ContractContent":
        """Parse the stored column (None for legacy rows)."""
        return cls.model_validate(raw or {})

    @classmethod
    def from_terms(cls, terms: Optional[dict]) -> "ContractContent":
        """New envelope around caller-supplied terms, dropping forged audit keys."""
        return cls(**strip_audit_sections(terms))

    def terms_payload(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def with_terms(self, terms: Optional[dict]) -> "ContractContent":
        """Replace the caller terms while keeping the audit sections."""
        return ContractContent(
            schema_version=self.schema_version,
            signature_metadata=self.signature_metadata,
            cancellation=self.cancellation,
            **strip_audit_sections(terms),
        )

    def to_column(self) -> dict:
        return self.model_dump(mode="json")


def strip_audit_sections(payload: Optional[dict]) -> dict:
    return {key: value for key, value in (payload or {}).items() if key not in AUDIT_SECTIONS}
