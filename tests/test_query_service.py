from datetime import date
from decimal import Decimal

import pytest

from tests.conftest import FakeGateway
from yuki.core.exceptions import NotFoundError, ProviderError
from yuki.models.chat_history import ChatHistoryEntry
from yuki.models.ledger_entry import LedgerEntry
from yuki.schemas.ledger import LedgerEntryCreate
from yuki.services.conversation_service import ConversationService
from yuki.services.ledger_service import LedgerService
from yuki.services.query_service import GREETING_REPLY, NO_DATA_REPLY, THANKS_REPLY, QueryService, canned_reply

LISTING_SQL = "SELECT date, description, amount FROM ledger ORDER BY date DESC LIMIT 50"

CHART_ONLY = {"cards": [{
    "type": "chart",
    "content": {"chart_type": "bar", "title": "Recent", "data": [{"label": "Coffee", "value": 4.5}]},
}]}


@pytest.fixture()
def ledger(db_session):
    LedgerService.save_ledger_entries(db_session, [
        LedgerEntryCreate(date=date(2024, 3, 1), description="Coffee", amount=Decimal("-4.50"), category_id="dining", account_id="default"),
        LedgerEntryCreate(date=date(2024, 3, 2), description="Groceries run", amount=Decimal("-62.10"), category_id="groceries", account_id="default"),
        LedgerEntryCreate(date=date(2024, 3, 3), description="Salary", amount=Decimal("2500.00"), category_id="income", account_id="default"),
    ])
    return db_session


def test_canned_replies():
    assert canned_reply("Hello!") == GREETING_REPLY
    assert canned_reply("thanks a lot") is not None
    assert canned_reply("help") is not None
    assert canned_reply("How much did I spend on dining?") is None


@pytest.mark.parametrize("question", [
    "How much did I spend on Thanksgiving dinner?",
    "hey, how much did I spend on dining?",
    "Hi, show me my recent transactions",
    "thanks, now what about groceries?",
])
def test_questions_wrapped_in_small_talk_still_need_the_model(question):
    assert canned_reply(question) is None


@pytest.mark.parametrize("message,reply", [
    ("Hey there!", GREETING_REPLY),
    ("good morning", GREETING_REPLY),
    ("Thank you so much!", THANKS_REPLY),
    ("ok great, thanks", THANKS_REPLY),
])
def test_small_talk_gets_the_canned_reply(message, reply):
    assert canned_reply(message) == reply


def test_thanksgiving_question_reaches_the_model(ledger):
    gateway = FakeGateway([
        {"needs_data": True, "sql_query": "SELECT SUM(amount) AS total FROM ledger WHERE category_id = 'dining'", "query_type": "aggregate"},
        {"cards": [{"type": "text", "content": {"body": "You spent $4.50 on dining."}}]},
    ])
    result = QueryService(ledger, gateway).ask("How much did I spend on Thanksgiving dinner?")

    assert gateway.calls == 2
    assert result.sql_query is not None


def test_greeting_needs_no_model(db_session):
    gateway = FakeGateway()
    result = QueryService(db_session, gateway).ask("hello")

    assert gateway.calls == 0
    assert len(result.response.cards) == 1
    assert result.response.cards[0].type == "text"
    assert result.sql_query is None


def test_missing_gateway_gives_an_error_card(db_session):
    result = QueryService(db_session, None).ask("How much did I spend on dining?")

    assert len(result.response.cards) == 1
    assert result.response.cards[0].content.is_error is True


def test_listing_question_never_returns_a_lone_chart(ledger):
    gateway = FakeGateway([{"needs_data": True, "sql_query": LISTING_SQL, "query_type": "list"}, CHART_ONLY])
    result = QueryService(ledger, gateway).ask("List my recent transactions")

    assert result.sql_query == LISTING_SQL
    assert len(result.response.cards) == 1
    card = result.response.cards[0]
    assert card.type == "table"
    assert card.content.columns == ["date", "description", "amount"]
    assert len(card.content.rows) == 3
    assert card.content.rows[0][1] == "Salary"


def test_aggregate_answer_keeps_the_model_cards(ledger):
    gateway = FakeGateway([
        {"needs_data": True, "sql_query": "SELECT SUM(-amount) AS spent FROM ledger WHERE amount < 0"},
        {"cards": [{"type": "text", "content": {"body": "You spent $66.60."}}]},
    ])
    result = QueryService(ledger, gateway).ask("How much did I spend?")

    assert result.response.cards[0].content.body == "You spent $66.60."
    assert "spent" in gateway.prompts[1]
    assert "66.6" in gateway.prompts[1]


def test_invalid_card_payload_becomes_one_error_card(ledger):
    gateway = FakeGateway([
        {"needs_data": True, "sql_query": LISTING_SQL},
        {"cards": [{"type": "hologram", "content": {}}]},
    ])
    result = QueryService(ledger, gateway).ask("What did I buy?")

    assert len(result.response.cards) == 1
    assert result.response.cards[0].type == "text"
    assert result.response.cards[0].content.is_error is True


def test_provider_error_becomes_one_error_card(ledger):
    gateway = FakeGateway([ProviderError("slow down", kind="rate_limit")])
    result = QueryService(ledger, gateway).ask("Spending by category")

    assert len(result.response.cards) == 1
    assert result.response.cards[0].content.is_error is True
    assert "rate_limit" in result.response.cards[0].content.body


def test_generated_writes_are_never_executed(ledger):
    gateway = FakeGateway([{"needs_data": True, "sql_query": "DELETE FROM ledger"}])
    result = QueryService(ledger, gateway).ask("Clean up my ledger")

    assert result.response.cards[0].content.is_error is True
    assert ledger.query(LedgerEntry).count() == 3
    assert gateway.calls == 1


def test_broken_sql_becomes_an_error_card(ledger):
    gateway = FakeGateway([{"needs_data": True, "sql_query": "SELECT nope FROM not_a_table"}])
    result = QueryService(ledger, gateway).ask("Show me something odd")

    assert result.response.cards[0].content.is_error is True


def test_zero_rows_gives_the_no_data_card(db_session):
    gateway = FakeGateway([{"needs_data": True, "sql_query": LISTING_SQL}])
    result = QueryService(db_session, gateway).ask("List my recent transactions")

    assert len(result.response.cards) == 1
    assert result.response.cards[0].content.body == NO_DATA_REPLY
    assert gateway.calls == 1


def test_bare_sql_plan_is_accepted(ledger):
    gateway = FakeGateway([
        "```sql\nSELECT COUNT(*) AS n FROM ledger\n```",
        {"cards": [{"type": "text", "content": {"body": "3 transactions."}}]},
    ])
    result = QueryService(ledger, gateway).ask("How many transactions do I have?")

    assert result.sql_query == "SELECT COUNT(*) AS n FROM ledger"
    assert result.response.cards[0].content.body == "3 transactions."


def test_question_without_data_is_answered_conversationally(db_session):
    gateway = FakeGateway([
        {"needs_data": False, "sql_query": None},
        {"cards": [{"type": "text", "content": {"body": "Try the 50/30/20 rule."}}]},
    ])
    result = QueryService(db_session, gateway).ask("Any budgeting tips?")

    assert result.sql_query is None
    assert result.response.cards[0].content.body == "Try the 50/30/20 rule."


def test_exchange_is_recorded_in_history(ledger):
    gateway = FakeGateway([{"needs_data": True, "sql_query": LISTING_SQL}, CHART_ONLY])
    result = QueryService(ledger, gateway).ask("List my recent transactions")

    entry = ledger.query(ChatHistoryEntry).one()
    assert entry.question == "List my recent transactions"
    assert entry.sql_query == LISTING_SQL
    assert entry.card_count == 1
    assert entry.response["cards"][0]["type"] == "table"
    assert result.session_id is not None


def test_follow_up_questions_see_the_conversation(ledger):
    gateway = FakeGateway([
        {"needs_data": True, "sql_query": LISTING_SQL},
        {"cards": [{"type": "text", "content": {"body": "Three transactions."}}]},
        {"needs_data": False},
        {"cards": [{"type": "text", "content": {"body": "Yes."}}]},
    ])
    service = QueryService(ledger, gateway)
    first = service.ask("What did I do this month?")
    service.ask("Was that a lot?", session_id=first.session_id)

    assert "What did I do this month?" in gateway.prompts[2]
    assert "Three transactions." in gateway.prompts[2]
    messages = ConversationService.recent_messages(ledger, first.session_id)
    assert [m.role for m in messages] == ["user", "assistant", "user", "assistant"]


def test_unknown_session_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        QueryService(db_session, FakeGateway()).ask("hi", session_id="missing")


def test_clear_history(ledger):
    QueryService(ledger, FakeGateway()).ask("hello")
    assert ConversationService.clear_history(ledger) == 1
    assert ConversationService.list_history(ledger) == []
