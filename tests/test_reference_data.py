from datetime import date
from decimal import Decimal

import pytest

from yuki.core.exceptions import ReferentialError, ValidationError
from yuki.models.ledger_entry import LedgerEntry
from yuki.schemas.account import AccountCreate
from yuki.schemas.category import CategoryCreate, CategoryUpdate
from yuki.schemas.currency import CurrencyCreate, CurrencyUpdate
from yuki.schemas.ledger import LedgerEntryCreate
from yuki.services.account_service import AccountService
from yuki.services.category_service import CategoryService
from yuki.services.currency_service import CurrencyService
from yuki.services.ledger_service import LedgerService
from yuki.services.normalization import normalize_category
from yuki.services.seeding_service import SeedingService


def _book(db, **overrides):
    data = {
        "date": date(2024, 3, 1),
        "description": "Something",
        "amount": Decimal("-10"),
        "category_id": "other",
        "account_id": "default",
    }
    data.update(overrides)
    return LedgerService.save_ledger_entry(db, LedgerEntryCreate(**data))


def test_seeding_is_idempotent(db_session):
    stats = SeedingService.seed_all(db_session)
    assert stats == {"categories": 0, "primary_currency": False, "default_account": False}
    assert CurrencyService.get_primary(db_session).code == "USD"
    assert AccountService.get_default_account(db_session).id == "default"


# Accounts

def test_exactly_one_default_account(db_session):
    savings = AccountService.create_account(db_session, AccountCreate(name="Savings", type="savings", currency="usd", is_default=True))

    defaults = [a for a in AccountService.get_accounts(db_session) if a.is_default]
    assert [a.id for a in defaults] == [savings.id]
    assert savings.currency == "USD"


def test_deleting_an_account_moves_entries_to_default(db_session):
    cash = AccountService.create_account(db_session, AccountCreate(name="Wallet", type="cash"))
    _book(db_session, account_id=cash.id)

    assert AccountService.delete_account(db_session, cash.id) == 1
    assert db_session.query(LedgerEntry).one().account_id == "default"


def test_default_account_cannot_be_deleted(db_session):
    with pytest.raises(ReferentialError):
        AccountService.delete_account(db_session, "default")


# Categories

def test_user_category_id_is_its_slug(db_session):
    category = CategoryService.create_category(db_session, CategoryCreate(name="Home Office"))
    assert category.id == "home-office"
    names = CategoryService.list_category_names(db_session)
    assert normalize_category("home office", names) == "home-office"


def test_duplicate_category_names_are_refused(db_session):
    with pytest.raises(ValidationError):
        CategoryService.create_category(db_session, CategoryCreate(name="groceries"))


def test_default_categories_cannot_be_deleted_or_renamed(db_session):
    with pytest.raises(ReferentialError):
        CategoryService.delete_category(db_session, "dining")
    with pytest.raises(ReferentialError):
        CategoryService.update_category(db_session, "dining", CategoryUpdate(name="Restaurants"))


def test_hidden_categories_are_listed_only_on_request(db_session):
    CategoryService.set_hidden(db_session, "gifts", True)

    visible = {c.id for c in CategoryService.get_categories(db_session)}
    everything = {c.id for c in CategoryService.get_categories(db_session, include_hidden=True)}
    assert "gifts" not in visible
    assert "gifts" in everything
    # Old entries keep resolving
    assert "Gifts" in CategoryService.list_category_names(db_session)


def test_other_cannot_be_hidden(db_session):
    with pytest.raises(ReferentialError):
        CategoryService.set_hidden(db_session, "other", True)


def test_deleting_a_user_category_moves_entries_to_other(db_session):
    CategoryService.create_category(db_session, CategoryCreate(name="Pets"))
    _book(db_session, category_id="pets")

    assert CategoryService.delete_category(db_session, "pets") == 1
    assert db_session.query(LedgerEntry).one().category_id == "other"


def test_merge_moves_entries_to_target(db_session):
    CategoryService.create_category(db_session, CategoryCreate(name="Coffee"))
    _book(db_session, category_id="coffee")

    target = CategoryService.merge_categories(db_session, "coffee", "dining")

    assert target.id == "dining"
    assert db_session.query(LedgerEntry).one().category_id == "dining"
    assert "Coffee" not in CategoryService.list_category_names(db_session)


def test_renamed_category_keeps_its_id_for_new_entries(db_session):
    CategoryService.create_category(db_session, CategoryCreate(name="Coffee"))
    renamed = CategoryService.update_category(db_session, "coffee", CategoryUpdate(name="Cafe"))

    assert renamed.id == "coffee"
    assert CategoryService.category_ids(db_session)["Cafe"] == "coffee"
    assert normalize_category("Cafe", CategoryService.category_ids(db_session)) == "coffee"


# Currencies

def test_exactly_one_primary_currency_with_unit_rate(db_session):
    CurrencyService.create_currency(db_session, CurrencyCreate(code="eur", name="Euro", symbol="€", rate_to_primary=1.1))

    new_primary = CurrencyService.set_primary(db_session, "EUR")

    assert new_primary.rate_to_primary == 1.0
    primaries = [c for c in CurrencyService.get_currencies(db_session) if c.is_primary]
    assert [c.code for c in primaries] == ["EUR"]
    usd = CurrencyService.get_currency(db_session, "usd")
    assert usd.rate_to_primary == pytest.approx(1 / 1.1)


def test_primary_currency_rate_is_fixed(db_session):
    with pytest.raises(ReferentialError):
        CurrencyService.update_currency(db_session, "USD", CurrencyUpdate(rate_to_primary=2.0))


def test_primary_currency_cannot_be_deleted(db_session):
    with pytest.raises(ReferentialError):
        CurrencyService.delete_currency(db_session, "USD")


def test_convert_goes_through_the_primary(db_session):
    CurrencyService.create_currency(db_session, CurrencyCreate(code="EUR", name="Euro", symbol="€", rate_to_primary=1.1))
    CurrencyService.create_currency(db_session, CurrencyCreate(code="GBP", name="Pound", symbol="£", rate_to_primary=1.25))

    assert CurrencyService.convert(db_session, 100, "EUR", "USD") == pytest.approx(110.0)
    assert CurrencyService.convert(db_session, 110, "USD", "EUR") == pytest.approx(100.0)
    assert CurrencyService.convert(db_session, 100, "EUR", "GBP") == pytest.approx(88.0)
