from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date as date_type
from decimal import Decimal


class Transaction(BaseModel):
    """One transaction as returned by statement extraction."""
    date: date_type
    description: str = Field(..., min_length=1)
    amount: Decimal  # negative = expense, positive = income
    currency: str
    category: str
    merchant: Optional[str] = None


class Item(BaseModel):
    name: str = Field(..., min_length=1)  # lowercase-hyphenated
    quantity: Optional[float] = None
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = None
    total_price: Decimal
    category: Optional[str] = None
    brand: Optional[str] = None


class Receipt(BaseModel):
    merchant: str
    date: date_type
    items: List[Item] = []
    tax: Optional[Decimal] = None
    total: Decimal
    category: str


class ExpenseDetection(BaseModel):
    is_transaction: bool
    date: Optional[date_type] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None  # already signed
    category: Optional[str] = None
    merchant: Optional[str] = None
    confidence: Optional[Literal["high", "medium", "low"]] = None

    @classmethod
    def negative(cls) -> "ExpenseDetection":
        return cls(is_transaction=False)
