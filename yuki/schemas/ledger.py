from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime, date as date_type
from decimal import Decimal

LedgerSource = Literal["document", "image", "conversation", "manual", "scanned-pdf"]


class LedgerEntryBase(BaseModel):
    date: date_type
    description: str = Field(..., min_length=1)
    amount: Decimal
    currency: str = "USD"
    category_id: str = "other"
    merchant: Optional[str] = None
    notes: Optional[str] = None


class LedgerEntryCreate(LedgerEntryBase):
    document_id: Optional[str] = None
    account_id: Optional[str] = None
    source: LedgerSource = "manual"


class ManualEntryCreate(BaseModel):
    """Entry typed by the user: an unsigned magnitude plus an expense flag."""
    date: date_type
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    is_expense: bool = True
    currency: Optional[str] = None
    category: str = "Other"
    merchant: Optional[str] = None
    notes: Optional[str] = None
    account_id: Optional[str] = None


class LedgerEntryResponse(LedgerEntryBase):
    id: str
    document_id: Optional[str] = None
    account_id: Optional[str] = None
    source: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerFilter(BaseModel):
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    document_id: Optional[str] = None
    source: Optional[LedgerSource] = None
    limit: int = Field(100, ge=1, le=1000)
    offset: int = Field(0, ge=0)


class ReceiptLine(BaseModel):
    name: str
    amount: Decimal


class ReceiptCreate(BaseModel):
    document_id: Optional[str] = None
    ledger_id: Optional[str] = None
    merchant: str
    date: Optional[date_type] = None
    items: List[ReceiptLine] = []
    tax: Optional[Decimal] = None
    total: Decimal
    category: Optional[str] = None


class ReceiptResponse(ReceiptCreate):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchasedItemCreate(BaseModel):
    receipt_id: Optional[str] = None
    ledger_id: Optional[str] = None
    name: str
    quantity: float = 1
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = None
    total_price: Decimal
    category: Optional[str] = None
    brand: Optional[str] = None
    purchased_at: date_type


class PurchasedItemResponse(PurchasedItemCreate):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
