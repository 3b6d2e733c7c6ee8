from datetime import date, timedelta
from decimal import Decimal

import pytest

from tests.conftest import FakeGateway
from yuki.models.ledger_entry import LedgerEntry
from yuki.services.category_service import CategoryService
from yuki.services.document_service import TextExtraction
from yuki.services.expense_detector import ExpenseDetector, is_non_transactional, record_conversation_entry
from yuki.services.ingestion_service import IngestionService
from yuki.services.providers.base import ImageInput

CATEGORIES = ["Dining", "Groceries", "Transportation", "Income", "Other"]
TODAY = date(2024, 3, 10)


@pytest.mark.parametrize("message", [
    "How much did I spend last month?",
    "what did I buy at costco",
    "I might buy a new laptop",
    "I'm thinking about getting a bike",
    "Should I cancel Netflix?",
    "I'm going to buy a couch next week",
    "We are planning to book flights for $600",
    "If I buy the TV it will cost $900",
    "Maybe I'll grab lunch for $12",
    "   ",
])
def test_questions_and_plans_are_not_transactions(message):
    assert is_non_transactional(message) is True


@pytest.mark.parametrize("message", [
    "I spent $20 on lunch yesterday",
    "I spent $15 on gas going to work yesterday",
    "Paid $40 for dinner with friends I want to see more often",
    "Bought a $5 coffee even though I might regret it",
    "Got $30 back from the refund if I remember right",
])
def test_past_purchases_are_transactional(message):
    assert is_non_transactional(message) is False


def test_purchase_mentioning_a_plan_still_reaches_the_model():
    gateway = FakeGateway([{"is_transaction": True, "amount": 15, "type": "expense", "description": "Gas"}])
    detection = ExpenseDetector(gateway).detect("I spent $15 on gas going to work yesterday", CATEGORIES, today=TODAY)

    assert gateway.calls == 1
    assert detection.is_transaction is True
    assert detection.amount == Decimal("-15")


def test_lunch_yesterday_is_a_twenty_dollar_expense():
    gateway = FakeGateway([{
        "is_transaction": True,
        "date": "2024-03-09",
        "description": "Lunch",
        "amount": 20,
        "type": "expense",
        "category": "dining",
        "merchant": None,
        "confidence": "high",
    }])
    detection = ExpenseDetector(gateway).detect("I spent $20 on lunch yesterday", CATEGORIES, today=TODAY)

    assert detection.is_transaction is True
    assert detection.amount == Decimal("-20")
    assert detection.confidence in ("medium", "high")
    assert detection.date == TODAY - timedelta(days=1)
    assert detection.category == "Dining"
    assert "2024-03-10" in gateway.prompts[0]


def test_spending_question_is_rejected_without_a_model_call():
    gateway = FakeGateway()
    detection = ExpenseDetector(gateway).detect("How much did I spend last month?", CATEGORIES, today=TODAY)

    assert detection.is_transaction is False
    assert gateway.calls == 0


def test_income_keeps_a_positive_sign():
    gateway = FakeGateway([{"is_transaction": True, "amount": 150, "type": "income", "description": "Freelance gig"}])
    detection = ExpenseDetector(gateway).detect("Got paid $150 for a freelance gig", CATEGORIES, today=TODAY)

    assert detection.amount == Decimal("150")
    assert detection.date == TODAY
    assert detection.confidence == "low"
    assert detection.category == "Other"


def test_model_saying_no_is_respected():
    gateway = FakeGateway([{"is_transaction": False}])
    assert ExpenseDetector(gateway).detect("Lunch was great", CATEGORIES).is_transaction is False


@pytest.mark.parametrize("payload", [
    {"is_transaction": True, "amount": 0, "type": "expense"},
    {"is_transaction": True, "amount": "lots", "type": "expense"},
    "not json",
])
def test_unusable_detections_are_negative(payload):
    gateway = FakeGateway([payload])
    assert ExpenseDetector(gateway).detect("Bought stuff", CATEGORIES).is_transaction is False


def test_recording_a_detection_creates_a_conversation_entry(db_session):
    gateway = FakeGateway([{
        "is_transaction": True, "date": "2024-03-09", "description": "Lunch",
        "amount": 20, "type": "expense", "category": "Dining", "confidence": "high",
    }])
    detection = ExpenseDetector(gateway).detect(
        "I spent $20 on lunch yesterday", CategoryService.list_category_names(db_session), today=TODAY
    )
    entry = record_conversation_entry(db_session, detection)

    assert entry.source == "conversation"
    assert entry.amount == Decimal("-20")
    assert entry.category_id == "dining"
    assert entry.account_id == "default"
    assert entry.currency == "USD"


def test_negative_detection_cannot_be_recorded(db_session):
    from yuki.schemas.extraction import ExpenseDetection

    with pytest.raises(ValueError):
        record_conversation_entry(db_session, ExpenseDetection.negative())


@pytest.mark.parametrize("spelling", ["dining", "Dining", "DINING"])
def test_every_producer_lands_on_the_same_category(db_session, storage, monkeypatch, spelling):
    """Statement rows, scanned receipts and chat messages all map a category name the same way."""
    gateway = FakeGateway([
        [{"date": "2024-03-01", "description": "Bistro", "amount": -30, "category": spelling}],
        {"merchant": "Bistro", "date": "2024-03-02", "total": 18, "category": spelling, "items": []},
        {"is_transaction": True, "amount": 12, "type": "expense", "description": "Tacos", "category": spelling},
    ])
    monkeypatch.setattr(storage, "extract_text", lambda path: TextExtraction(text="", is_scanned=True))
    monkeypatch.setattr(storage, "load_vision_images", lambda path, extension: [ImageInput(data=b"page")])

    ingestion = IngestionService(db_session, gateway, storage=storage)
    ingestion.process_upload("statement.csv", b"2024-03-01,BISTRO,-30.00", "statement")
    ingestion.process_upload("scan.pdf", b"%PDF-1.4 scanned", "statement")

    detection = ExpenseDetector(gateway).detect("I paid $12 for tacos", CategoryService.list_category_names(db_session))
    record_conversation_entry(db_session, detection)

    entries = db_session.query(LedgerEntry).all()
    assert len(entries) == 3
    assert {e.category_id for e in entries} == {"dining"}
    assert {e.source for e in entries} == {"document", "scanned-pdf", "conversation"}


def test_recording_uses_the_id_of_a_renamed_category(db_session):
    from yuki.schemas.category import CategoryCreate, CategoryUpdate

    CategoryService.create_category(db_session, CategoryCreate(name="Coffee"))
    CategoryService.update_category(db_session, "coffee", CategoryUpdate(name="Cafe"))
    gateway = FakeGateway([{"is_transaction": True, "amount": 4.5, "type": "expense", "description": "Latte", "category": "Cafe"}])

    detection = ExpenseDetector(gateway).detect("Paid $4.50 for a latte", CategoryService.list_category_names(db_session))
    entry = record_conversation_entry(db_session, detection)

    assert entry.category_id == "coffee"
