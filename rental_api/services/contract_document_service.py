"""Contract document registry.

Files live in the external file store; this service only records their
metadata against a contract and runs the review workflow
(UPLOADED -> VALIDATED | REJECTED).
"""

from typing import Iterable, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rental_api.config import settings
from rental_api.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from rental_api.models.contract import Contract, ContractParty
from rental_api.models.contract_document import ContractDocument, DocumentStatus
from rental_api.schemas.contract_document import ChecklistItem, ChecklistResponse, DocumentUpload

logger = logging.getLogger(__name__)

# (category, label) per party, in display order
# Statuses a document may be moved out of, per review outcome
REVIEWABLE_FROM = {
    DocumentStatus.VALIDATED: {DocumentStatus.UPLOADED, DocumentStatus.REJECTED},
    DocumentStatus.REJECTED: {DocumentStatus.UPLOADED},
}

REQUIRED_DOCUMENTS = {
    ContractParty.OWNER: [
        ("DDT_DPE", "Energy performance diagnostic"),
        ("DDT_ERP", "Risk and pollution report"),
    ],
    ContractParty.TENANT: [
        ("IDENTITE_LOCATAIRE", "Identity proof"),
        ("JUSTIFICATIF_DOMICILE", "Proof of address"),
        ("CONTRAT_TRAVAIL", "Employment contract or employer certificate"),
        ("FICHE_PAIE_1", "Latest payslip"),
    ],
}


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes} bytes"


class ContractDocumentRegistry:
    def __init__(
        self,
        db: AsyncSession,
        max_file_size: Optional[int] = None,
        allowed_mime_types: Optional[Iterable[str]] = None,
    ):
        self.db = db
        self.max_file_size = max_file_size if max_file_size is not None else settings.MAX_DOCUMENT_SIZE
        self.allowed_mime_types = set(
            allowed_mime_types if allowed_mime_types is not None else settings.ALLOWED_DOCUMENT_MIME_TYPES
        )

    async def _load_contract(self, contract_id) -> Contract:
        contract = await self.db.get(Contract, contract_id)
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        return contract

    async def _load_document(self, contract_id, document_id) -> ContractDocument:
        document = await self.db.get(ContractDocument, document_id, populate_existing=True)
        # A document from another contract is reported as missing
        if document is None or document.contract_id != contract_id:
            raise NotFoundError("Document", document_id)
        return document

    @staticmethod
    def _require_party(contract: Contract, caller_id: int) -> ContractParty:
        party = contract.party_of(caller_id)
        if party is None:
            raise ForbiddenError("Only the owner or the tenant of this contract can access its documents")
        return party

    async def list_documents(self, contract_id, caller_id: Optional[int] = None) -> list[ContractDocument]:
        """Documents of a contract, newest first, with uploader loaded.

        Without ``caller_id`` no party check is made.
        """
        contract = await self._load_contract(contract_id)
        if caller_id is not None:
            self._require_party(contract, caller_id)

        result = await self.db.execute(
            select(ContractDocument)
            .where(ContractDocument.contract_id == contract_id)
            .options(selectinload(ContractDocument.uploaded_by))
            .order_by(ContractDocument.created_at.desc(), ContractDocument.id)
        )
        return list(result.scalars().all())

    async def upload(self, contract_id, caller_id: int, file: DocumentUpload) -> ContractDocument:
        contract = await self._load_contract(contract_id)
        self._require_party(contract, caller_id)

        if file.file_size > self.max_file_size:
            raise ValidationError(
                f"File too large: {format_size(file.file_size)} ({file.file_size} bytes) exceeds the "
                f"{format_size(self.max_file_size)} ({self.max_file_size} bytes) limit",
                errors=[{
                    "field": "file_size",
                    "message": "File exceeds maximum size",
                    "limit": self.max_file_size,
                    "actual": file.file_size,
                }],
            )
        if file.mime_type not in self.allowed_mime_types:
            raise ValidationError(
                f"File type {file.mime_type} is not accepted; allowed: {', '.join(sorted(self.allowed_mime_types))}",
                errors=[{"field": "mime_type", "message": "Unsupported file type"}],
            )

        document = ContractDocument(
            contract_id=contract.id,
            uploaded_by_id=caller_id,
            category=file.category,
            file_name=file.file_name,
            file_url=file.file_url,
            file_size=file.file_size,
            mime_type=file.mime_type,
            status=DocumentStatus.UPLOADED,
        )
        self.db.add(document)
        await self.db.commit()
        await document.awaitable_attrs.uploaded_by

        logger.info(f"Document {document.id} ({document.category}) uploaded to contract {contract.id} by user {caller_id}")
        return document

    async def delete(self, contract_id, document_id, caller_id: int) -> None:
        document = await self._load_document(contract_id, document_id)
        if document.uploaded_by_id != caller_id:
            raise ForbiddenError("Only the user who uploaded a document can delete it")

        await self.db.delete(document)
        await self.db.commit()
        logger.info(f"Document {document_id} deleted from contract {contract_id} by user {caller_id}")

    async def _review(
        self,
        contract_id,
        document_id,
        status: DocumentStatus,
        rejection_reason: Optional[str] = None,
    ) -> ContractDocument:
        document = await self._load_document(contract_id, document_id)
        if document.status not in REVIEWABLE_FROM[status]:
            raise InvalidStateError(
                f"Cannot mark a {document.status.value} document as {status.value}",
                current_status=document.status.value,
            )

        document.status = status
        document.rejection_reason = rejection_reason
        await self.db.commit()
        await document.awaitable_attrs.uploaded_by

        logger.info(f"Document {document.id} on contract {contract_id} marked {status.value}")
        return document

    async def validate(self, contract_id, document_id) -> ContractDocument:
        return await self._review(contract_id, document_id, DocumentStatus.VALIDATED)

    async def reject(self, contract_id, document_id, reason: str) -> ContractDocument:
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        return await self._review(contract_id, document_id, DocumentStatus.REJECTED, rejection_reason=reason.strip())

    async def checklist(self, contract_id, caller_id: Optional[int] = None) -> ChecklistResponse:
        """Required documents for both parties with the latest matching upload."""
        documents = await self.list_documents(contract_id, caller_id)

        latest: dict[str, ContractDocument] = {}
        for document in documents:
            # newest first, so the first hit per category wins
            latest.setdefault(document.category, document)

        items = []
        for party, requirements in REQUIRED_DOCUMENTS.items():
            for category, label in requirements:
                document = latest.get(category)
                items.append(ChecklistItem(
                    category=category,
                    label=label,
                    party=party.value,
                    status=document.status if document else None,
                    document_id=document.id if document else None,
                ))

        return ChecklistResponse(
            contract_id=contract_id,
            items=items,
            complete=all(item.status == DocumentStatus.VALIDATED for item in items),
        )
