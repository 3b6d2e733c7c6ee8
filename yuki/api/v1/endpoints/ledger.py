from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from yuki.core.deps import get_db
from yuki.core.exceptions import DatabaseError, NotFoundError, ReferentialError
from yuki.schemas.ledger import LedgerEntryCreate, LedgerEntryResponse, LedgerFilter, LedgerSource, ManualEntryCreate
from yuki.services.account_service import AccountService
from yuki.services.category_service import CategoryService
from yuki.services.currency_service import CurrencyService
from yuki.services.ledger_service import LedgerService
from yuki.services.normalization import normalize_amount_sign, normalize_category

router = APIRouter()


@router.get("/", response_model=List[LedgerEntryResponse])
def list_entries(
    start_date: Optional[date] = Query(None, description="Inclusive lower bound"),
    end_date: Optional[date] = Query(None, description="Inclusive upper bound"),
    category_id: Optional[str] = Query(None),
    account_id: Optional[str] = Query(None),
    document_id: Optional[str] = Query(None),
    source: Optional[LedgerSource] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    filters = LedgerFilter(
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        account_id=account_id,
        document_id=document_id,
        source=source,
        limit=limit,
        offset=offset,
    )
    return LedgerService.list_ledger_entries(db, filters)


@router.post("/", response_model=LedgerEntryResponse)
def create_manual_entry(entry_data: ManualEntryCreate, db: Session = Depends(get_db)):
    """Record an entry by hand. The amount is a magnitude; is_expense decides the sign."""
    try:
        entry = LedgerEntryCreate(
            date=entry_data.date,
            description=entry_data.description.strip(),
            amount=normalize_amount_sign(entry_data.amount, is_expense=entry_data.is_expense),
            currency=(entry_data.currency or CurrencyService.get_primary(db).code).upper(),
            category_id=normalize_category(entry_data.category, CategoryService.category_ids(db)),
            merchant=entry_data.merchant,
            notes=entry_data.notes,
            account_id=entry_data.account_id or AccountService.get_default_account(db).id,
            source="manual",
        )
        return LedgerService.save_ledger_entry(db, entry)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{entry_id}", response_model=LedgerEntryResponse)
def get_entry(entry_id: str, db: Session = Depends(get_db)):
    try:
        return LedgerService.get_ledger_entry(db, entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, db: Session = Depends(get_db)):
    try:
        LedgerService.delete_ledger_entry(db, entry_id)
        return {"message": "Ledger entry deleted successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
