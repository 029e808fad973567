"""Signature audit trail.

Fingerprints the agreed terms of a contract and stamps signature events with
the request provenance. Everything here is side-effect free; persisting the
returned metadata is the caller's job.
"""

from datetime import datetime
import hashlib
import json
from typing import Optional

from rental_api.database import utcnow
from rental_api.models.contract import ContractParty
from rental_api.schemas.contract_content import (
    SignatureEvent,
    SignatureMetadata,
    SignatureProvenance,
    strip_audit_sections,
)
from rental_api.schemas.contract import PartySignatureCheck


def canonical_json(payload) -> str:
    """Stable serialization: sorted keys, no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def compute_content_hash(content: Optional[dict], custom_clauses: Optional[dict]) -> str:
    """
    SHA-256 over the caller-defined terms and the custom clauses.

    Audit sections stored in ``content`` (signature metadata, cancellation)
    are left out, so recording a signature does not change the hash the
    other party signs.
    """
    document = {
        "content": strip_audit_sections(content),
        "custom_clauses": custom_clauses or {},
    }
    return hashlib.sha256(canonical_json(document).encode("utf-8")).hexdigest()


def record_signature(
    existing: Optional[SignatureMetadata],
    party: ContractParty,
    provenance: Optional[SignatureProvenance],
    *,
    content_hash: str,
    timestamp: Optional[datetime] = None,
) -> SignatureMetadata:
    """
    Return new metadata with ``party``'s signature event added.

    ``existing`` is not modified. The other party's entry is carried over
    as-is.
    """
    provenance = provenance or SignatureProvenance()
    event = SignatureEvent(
        timestamp=timestamp or utcnow(),
        ip=provenance.ip,
        user_agent=provenance.user_agent,
        content_hash=content_hash,
    )
    base = existing or SignatureMetadata()
    return base.model_copy(update={party.value: event})


def verify_signature(
    metadata: SignatureMetadata,
    party: ContractParty,
    current_hash: str,
    signed: bool = False,
) -> PartySignatureCheck:
    """Compare ``party``'s recorded hash with ``current_hash``.

    ``signed`` reports a signature that predates the audit trail; such an
    entry has no recorded hash and ``matches`` stays None.
    """
    event = metadata.for_party(party)
    if event is None:
        return PartySignatureCheck(signed=signed)
    return PartySignatureCheck(
        signed=True,
        recorded_hash=event.content_hash,
        matches=event.content_hash == current_hash,
    )
