from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

AccountType = Literal["checking", "savings", "credit", "cash", "investment", "mobile-money", "other"]


class AccountBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType = "checking"
    institution: Optional[str] = None
    currency: str = Field("USD", min_length=3, max_length=3)


class AccountCreate(AccountBase):
    is_default: bool = False


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    institution: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class AccountResponse(AccountBase):
    id: str
    is_default: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
