from sqlalchemy.orm import Session
from typing import List

from yuki.core.exceptions import NotFoundError, ReferentialError
from yuki.models.account import Account
from yuki.models.ledger_entry import LedgerEntry
from yuki.schemas.account import AccountCreate, AccountUpdate
from yuki.services.ledger_service import write_transaction


class AccountService:

    @staticmethod
    def get_accounts(db: Session) -> List[Account]:
        return db.query(Account).order_by(Account.is_default.desc(), Account.name).all()

    @staticmethod
    def get_account(db: Session, account_id: str) -> Account:
        account = db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account not found")
        return account

    @staticmethod
    def get_default_account(db: Session) -> Account:
        account = db.query(Account).filter(Account.is_default.is_(True)).first()
        if not account:
            raise NotFoundError("No default account configured")
        return account

    @staticmethod
    def create_account(db: Session, account_data: AccountCreate) -> Account:
        data = account_data.model_dump()
        make_default = data.pop("is_default")
        data["currency"] = data["currency"].upper()
        account = Account(**data, is_default=False)

        with write_transaction(db):
            db.add(account)
            db.flush()
            if make_default:
                AccountService._swap_default(db, account)
        db.refresh(account)
        return account

    @staticmethod
    def update_account(db: Session, account_id: str, account_data: AccountUpdate) -> Account:
        account = AccountService.get_account(db, account_id)
        update_data = account_data.model_dump(exclude_unset=True)
        if update_data.get("currency"):
            update_data["currency"] = update_data["currency"].upper()

        with write_transaction(db):
            for field, value in update_data.items():
                setattr(account, field, value)
        db.refresh(account)
        return account

    @staticmethod
    def _swap_default(db: Session, account: Account) -> None:
        db.query(Account).filter(Account.id != account.id).update(
            {Account.is_default: False}, synchronize_session=False
        )
        account.is_default = True

    @staticmethod
    def set_default(db: Session, account_id: str) -> Account:
        """Make this the only default account."""
        account = AccountService.get_account(db, account_id)
        with write_transaction(db):
            AccountService._swap_default(db, account)
        db.expire_all()
        return AccountService.get_account(db, account_id)

    @staticmethod
    def delete_account(db: Session, account_id: str) -> int:
        """Delete a non-default account; its entries move to the default account. Returns the number moved."""
        account = AccountService.get_account(db, account_id)
        if account.is_default:
            raise ReferentialError("The default account cannot be deleted")
        default = AccountService.get_default_account(db)

        with write_transaction(db):
            moved = db.query(LedgerEntry).filter(
                LedgerEntry.account_id == account_id
            ).update({LedgerEntry.account_id: default.id}, synchronize_session=False)
            db.delete(account)
        db.expire_all()
        return moved
