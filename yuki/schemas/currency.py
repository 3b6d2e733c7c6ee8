from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CurrencyBase(BaseModel):
    code: str = Field(..., min_length=3, max_length=3)
    name: str
    symbol: str
    rate_to_primary: float = Field(1.0, gt=0)


class CurrencyCreate(CurrencyBase):
    pass


class CurrencyUpdate(BaseModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    rate_to_primary: Optional[float] = Field(None, gt=0)


class CurrencyResponse(CurrencyBase):
    is_primary: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversionResponse(BaseModel):
    amount: float
    from_currency: str
    to_currency: str
    converted: float
