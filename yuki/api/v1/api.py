from fastapi import APIRouter
from yuki.api.v1.endpoints import accounts, categories, chat, currencies, documents, ledger, query, receipts, settings

api_router = APIRouter()

api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(currencies.router, prefix="/currencies", tags=["currencies"])
api_router.include_router(query.router, prefix="/query", tags=["query"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
