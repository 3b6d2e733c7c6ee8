from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from yuki.core.deps import get_db
from yuki.core.exceptions import NotFoundError, ReferentialError, ValidationError
from yuki.schemas.currency import ConversionResponse, CurrencyCreate, CurrencyResponse, CurrencyUpdate
from yuki.services.currency_service import CurrencyService

router = APIRouter()


@router.get("/", response_model=List[CurrencyResponse])
def get_currencies(db: Session = Depends(get_db)):
    return CurrencyService.get_currencies(db)


@router.get("/convert", response_model=ConversionResponse)
def convert_amount(
    amount: float = Query(..., description="Amount to convert"),
    from_currency: str = Query(..., min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
    db: Session = Depends(get_db),
):
    try:
        converted = CurrencyService.convert(db, amount, from_currency, to_currency)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ConversionResponse(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        converted=round(converted, 2),
    )


@router.post("/", response_model=CurrencyResponse)
def create_currency(currency_data: CurrencyCreate, db: Session = Depends(get_db)):
    try:
        return CurrencyService.create_currency(db, currency_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{code}", response_model=CurrencyResponse)
def update_currency(code: str, currency_data: CurrencyUpdate, db: Session = Depends(get_db)):
    try:
        return CurrencyService.update_currency(db, code, currency_data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{code}/primary", response_model=CurrencyResponse)
def set_primary_currency(code: str, db: Session = Depends(get_db)):
    """Switch the primary currency; other rates are re-expressed against it"""
    try:
        return CurrencyService.set_primary(db, code)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{code}")
def delete_currency(code: str, db: Session = Depends(get_db)):
    try:
        CurrencyService.delete_currency(db, code)
        return {"message": "Currency deleted successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))
