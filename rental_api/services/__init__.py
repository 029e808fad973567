# Services module
from rental_api.services.contract_service import ContractLifecycleManager
from rental_api.services.contract_document_service import ContractDocumentRegistry
from rental_api.services.notification_service import NotificationDispatcher

__all__ = [
    "ContractLifecycleManager",
    "ContractDocumentRegistry",
    "NotificationDispatcher",
]
