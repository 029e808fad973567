"""
Tests for the ContractContent envelope stored in contracts.content.
"""
from datetime import datetime, timezone

from rental_api.models.contract import ContractStatus
from rental_api.schemas.contract_content import (
    CONTENT_SCHEMA_VERSION,
    CancellationRecord,
    ContractContent,
    strip_audit_sections,
)


class TestContractContent:

    def test_legacy_row_without_content(self):
        content = ContractContent.from_column(None)
        assert content.schema_version == CONTENT_SCHEMA_VERSION
        assert content.signature_metadata.owner is None
        assert content.cancellation is None
        assert content.terms_payload() == {}

    def test_caller_terms_are_kept_as_extras(self):
        content = ContractContent.from_terms({"furnished": True, "inventory": ["sofa"]})
        assert content.terms_payload() == {"furnished": True, "inventory": ["sofa"]}
        column = content.to_column()
        assert column["furnished"] is True
        assert column["schema_version"] == CONTENT_SCHEMA_VERSION

    def test_forged_audit_sections_are_dropped(self):
        content = ContractContent.from_terms({
            "furnished": True,
            "signature_metadata": {"owner": {"content_hash": "forged"}},
            "cancellation": {"reason": "forged"},
        })
        assert content.signature_metadata.owner is None
        assert content.cancellation is None

    def test_with_terms_preserves_audit_sections(self):
        record = CancellationRecord(
            reason="changed plans",
            cancelled_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            cancelled_by=1,
            previous_status=ContractStatus.SENT,
        )
        content = ContractContent.from_terms({"furnished": True}).model_copy(update={"cancellation": record})
        replaced = content.with_terms({"furnished": False, "cancellation": None})
        assert replaced.cancellation == record
        assert replaced.terms_payload() == {"furnished": False}

    def test_column_round_trip_keeps_previous_status(self):
        record = CancellationRecord(
            cancelled_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            cancelled_by=1,
            previous_status=ContractStatus.SIGNED_OWNER,
        )
        column = ContractContent(cancellation=record).to_column()
        assert column["cancellation"]["previous_status"] == "SIGNED_OWNER"
        assert ContractContent.from_column(column).cancellation.previous_status == ContractStatus.SIGNED_OWNER

    def test_strip_audit_sections(self):
        assert strip_audit_sections(None) == {}
        assert strip_audit_sections({"schema_version": 1, "a": 1}) == {"a": 1}
