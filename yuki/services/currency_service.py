from sqlalchemy.orm import Session
from typing import List

from yuki.core.exceptions import NotFoundError, ReferentialError, ValidationError
from yuki.models.currency import Currency
from yuki.schemas.currency import CurrencyCreate, CurrencyUpdate
from yuki.services.ledger_service import write_transaction
from yuki.services.normalization import convert_from_primary, convert_to_primary


class CurrencyService:

    @staticmethod
    def get_currencies(db: Session) -> List[Currency]:
        return db.query(Currency).order_by(Currency.is_primary.desc(), Currency.code).all()

    @staticmethod
    def get_currency(db: Session, code: str) -> Currency:
        currency = db.get(Currency, code.upper())
        if not currency:
            raise NotFoundError(f"Currency {code.upper()} not found")
        return currency

    @staticmethod
    def get_primary(db: Session) -> Currency:
        currency = db.query(Currency).filter(Currency.is_primary.is_(True)).first()
        if not currency:
            raise NotFoundError("No primary currency configured")
        return currency

    @staticmethod
    def create_currency(db: Session, currency_data: CurrencyCreate) -> Currency:
        code = currency_data.code.upper()
        if db.get(Currency, code) is not None:
            raise ValidationError(f"Currency {code} already exists")

        currency = Currency(
            code=code,
            name=currency_data.name,
            symbol=currency_data.symbol,
            rate_to_primary=currency_data.rate_to_primary,
            is_primary=False,
        )
        with write_transaction(db):
            db.add(currency)
        db.refresh(currency)
        return currency

    @staticmethod
    def update_currency(db: Session, code: str, currency_data: CurrencyUpdate) -> Currency:
        currency = CurrencyService.get_currency(db, code)
        update_data = currency_data.model_dump(exclude_unset=True)
        # The primary currency is always 1.0 relative to itself
        if currency.is_primary and update_data.get("rate_to_primary") not in (None, 1, 1.0):
            raise ReferentialError("The primary currency's rate is fixed at 1.0")

        with write_transaction(db):
            for field, value in update_data.items():
                setattr(currency, field, value)
        db.refresh(currency)
        return currency

    @staticmethod
    def delete_currency(db: Session, code: str) -> None:
        """Entries keep their stored currency code; only the reference row goes away."""
        currency = CurrencyService.get_currency(db, code)
        if currency.is_primary:
            raise ReferentialError("The primary currency cannot be deleted")
        with write_transaction(db):
            db.delete(currency)

    @staticmethod
    def set_primary(db: Session, code: str) -> Currency:
        """Make ``code`` primary and re-express every other rate relative to it."""
        new_primary = CurrencyService.get_currency(db, code)
        if new_primary.is_primary:
            return new_primary
        pivot = new_primary.rate_to_primary
        if not pivot or pivot <= 0:
            raise ValidationError(f"Currency {new_primary.code} has no usable conversion rate")

        with write_transaction(db):
            for currency in db.query(Currency).all():
                if currency.code == new_primary.code:
                    currency.rate_to_primary = 1.0
                    currency.is_primary = True
                else:
                    currency.rate_to_primary = currency.rate_to_primary / pivot
                    currency.is_primary = False
        db.refresh(new_primary)
        return new_primary

    @staticmethod
    def convert(db: Session, amount: float, from_code: str, to_code: str) -> float:
        source = CurrencyService.get_currency(db, from_code)
        target = CurrencyService.get_currency(db, to_code)
        in_primary = convert_to_primary(amount, source.rate_to_primary)
        return convert_from_primary(in_primary, target.rate_to_primary)
