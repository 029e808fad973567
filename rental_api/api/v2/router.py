from fastapi import APIRouter
from rental_api.api.v2 import (
    contracts,
    contract_documents,
)

api_router = APIRouter()

# Include all v2 routers
api_router.include_router(contracts.router, prefix="/contracts", tags=["contracts"])
api_router.include_router(contract_documents.router, prefix="/contracts", tags=["contract-documents"])
