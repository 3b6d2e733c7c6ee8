from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from yuki.core.deps import get_db
from yuki.core.exceptions import NotFoundError, ReferentialError
from yuki.schemas.account import AccountCreate, AccountResponse, AccountUpdate
from yuki.services.account_service import AccountService

router = APIRouter()


@router.get("/", response_model=List[AccountResponse])
def get_accounts(db: Session = Depends(get_db)):
    return AccountService.get_accounts(db)


@router.post("/", response_model=AccountResponse)
def create_account(account_data: AccountCreate, db: Session = Depends(get_db)):
    return AccountService.create_account(db, account_data)


@router.put("/{account_id}", response_model=AccountResponse)
def update_account(account_id: str, account_data: AccountUpdate, db: Session = Depends(get_db)):
    try:
        return AccountService.update_account(db, account_id, account_data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{account_id}/default", response_model=AccountResponse)
def set_default_account(account_id: str, db: Session = Depends(get_db)):
    try:
        return AccountService.set_default(db, account_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{account_id}")
def delete_account(account_id: str, db: Session = Depends(get_db)):
    """Delete an account. Its ledger entries move to the default account."""
    try:
        moved = AccountService.delete_account(db, account_id)
        return {"message": "Account deleted successfully", "entries_reassigned": moved}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))
