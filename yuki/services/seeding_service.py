import logging

from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.seed_data import CURRENCY_CATALOG, DEFAULT_ACCOUNT, DEFAULT_CATEGORIES
from yuki.models.account import Account
from yuki.models.category import Category
from yuki.models.currency import Currency
from yuki.services.ledger_service import write_transaction

logger = logging.getLogger(__name__)


class SeedingService:
    """
    Idempotent reference-data seeding.
    Safe to call on startup; re-runnable without duplicates.
    """

    @staticmethod
    def seed_categories(db: Session) -> int:
        """Insert default categories that are missing. Returns number inserted."""
        existing = {category_id for (category_id,) in db.query(Category.id).all()}
        inserted = 0
        with write_transaction(db):
            for cat in DEFAULT_CATEGORIES:
                if cat["id"] in existing:
                    continue
                db.add(Category(
                    id=cat["id"],
                    name=cat["name"],
                    icon=cat["icon"],
                    color=cat["color"],
                    is_default=True,
                    is_hidden=False,
                ))
                inserted += 1
        return inserted

    @staticmethod
    def seed_primary_currency(db: Session) -> bool:
        """Create the primary currency when no currency is primary yet."""
        if db.query(Currency).filter(Currency.is_primary.is_(True)).first():
            return False

        code = settings.DEFAULT_CURRENCY.upper()
        catalog = CURRENCY_CATALOG.get(code, {"name": code, "symbol": code})
        with write_transaction(db):
            currency = db.get(Currency, code)
            if currency is None:
                currency = Currency(code=code, name=catalog["name"], symbol=catalog["symbol"])
                db.add(currency)
            currency.rate_to_primary = 1.0
            currency.is_primary = True
        return True

    @staticmethod
    def seed_default_account(db: Session) -> bool:
        """Create the default account when no account is default yet."""
        if db.query(Account).filter(Account.is_default.is_(True)).first():
            return False

        with write_transaction(db):
            account = db.get(Account, DEFAULT_ACCOUNT["id"])
            if account is None:
                account = Account(
                    id=DEFAULT_ACCOUNT["id"],
                    name=DEFAULT_ACCOUNT["name"],
                    type=DEFAULT_ACCOUNT["type"],
                    institution=DEFAULT_ACCOUNT["institution"],
                    currency=settings.DEFAULT_CURRENCY.upper(),
                )
                db.add(account)
            account.is_default = True
        return True

    @staticmethod
    def seed_all(db: Session) -> dict:
        stats = {
            "categories": SeedingService.seed_categories(db),
            "primary_currency": SeedingService.seed_primary_currency(db),
            "default_account": SeedingService.seed_default_account(db),
        }
        logger.info(f"Seeding complete: {stats}")
        return stats
