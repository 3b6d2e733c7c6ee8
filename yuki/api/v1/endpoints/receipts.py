from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from yuki.core.deps import get_db
from yuki.schemas.ledger import PurchasedItemResponse, ReceiptResponse
from yuki.services.ledger_service import LedgerService

router = APIRouter()


@router.get("/", response_model=List[ReceiptResponse])
def list_receipts(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return LedgerService.list_receipts(db, limit=limit, offset=offset)


@router.get("/items", response_model=List[PurchasedItemResponse])
def list_purchased_items(
    receipt_id: Optional[str] = Query(None),
    name: Optional[str] = Query(None, description="Substring of the normalized item name"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return LedgerService.list_purchased_items(db, receipt_id=receipt_id, name=name, limit=limit)
