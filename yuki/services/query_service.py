"""
Query Engine - natural-language questions answered with response cards

Flow per question:
    canned reply for greetings/thanks/help (no model call)
    -> model call 1: question + schema -> SQL
    -> read-only guard and execution
    -> model call 2: question + SQL + rows -> cards
    -> card validation

Model and SQL failures never escape: they become a single error text card.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.exceptions import ProviderError, ValidationError
from yuki.schemas.cards import (
    ResponseData,
    TableCard,
    TableContent,
    error_response,
    parse_response_data,
    text_response,
)
from yuki.schemas.query import QueryResult
from yuki.services.conversation_service import ConversationService
from yuki.services.prompts import (
    ANALYZE_QUERY_PROMPT,
    CONVERSATION_PROMPT,
    FORMAT_RESULTS_PROMPT,
    SCHEMA_DESCRIPTION,
)
from yuki.services.providers.base import ModelGateway
from yuki.services.response_parsing import extract_json_object
from yuki.services.sql_guard import validate_select

logger = logging.getLogger(__name__)

_GREETING = re.compile(r"^(?:hi|hello|hey|howdy|hola|greetings|yo|sup|what'?s up|good (?:morning|afternoon|evening))\b")
_THANKS = re.compile(r"\b(?:thanks?|thank you|thx|ty)\b")
# Words that can surround a greeting or thanks without turning it into a question
_SMALL_TALK_FILLER = {
    "there", "yuki", "again", "a", "lot", "so", "much", "very", "you", "all", "for", "that",
    "the", "help", "and", "ok", "okay", "great", "awesome", "cool", "perfect", "nice",
}

GREETING_REPLY = (
    "Hey there! I'm Yuki, your personal finance helper. I can help you track expenses, "
    "analyze spending patterns, and make sense of your financial data. "
    "What would you like to know about your finances?"
)
THANKS_REPLY = "You're welcome! Let me know if you need anything else with your finances."
HELP_REPLY = (
    "I can help you with:\n\n"
    "• **Track expenses** - Tell me about purchases or upload receipts\n"
    "• **Analyze spending** - Ask about spending by category, time period, or merchant\n"
    "• **View transactions** - See your recent activity\n"
    "• **Understand trends** - Spot patterns in your financial habits\n\n"
    "Just ask me anything about your finances!"
)
NO_DATA_REPLY = (
    "I don't have any data matching that query yet. Try uploading some financial documents "
    "or receipts first, and then I can help you analyze your spending!"
)

# Rows sent back to the model for shaping; the fallback table uses all fetched rows
PROMPT_ROW_LIMIT = 50

_LISTING_QUESTION = re.compile(r"\b(list|transactions|recent)\b", re.IGNORECASE)


def canned_reply(question: str) -> Optional[str]:
    """Fixed replies for small talk. None means the question needs the model.

    A greeting or thanks only gets the canned reply when nothing but filler
    comes with it; "hey, how much did I spend on dining?" is a real question.
    """
    phrase = " ".join(re.sub(r"[^a-z0-9'\s]", " ", question.lower()).split())
    if not phrase:
        return None
    if phrase == "help" or "what can you do" in phrase or "how do you work" in phrase:
        return HELP_REPLY

    greeting = _GREETING.match(phrase)
    thanks = _THANKS.search(phrase)
    if not greeting and not thanks:
        return None
    leftover = _THANKS.sub(" ", _GREETING.sub(" ", phrase, count=1)).split()
    if any(word not in _SMALL_TALK_FILLER for word in leftover):
        return None
    return THANKS_REPLY if thanks else GREETING_REPLY


def is_listing_question(question: str) -> bool:
    return bool(_LISTING_QUESTION.search(question))


@dataclass
class QueryRows:
    columns: List[str]
    rows: List[Tuple[Any, ...]]


class QueryService:

    def __init__(self, db: Session, gateway: Optional[ModelGateway]):
        self.db = db
        self.gateway = gateway

    def ask(self, question: str, session_id: Optional[str] = None) -> QueryResult:
        """Answer a question and record it in the chat history."""
        question = question.strip()
        session = ConversationService.get_or_create_session(self.db, session_id, question)
        sql_query, response = self._answer(question, session.id)
        ConversationService.record_exchange(self.db, question, sql_query, response, session_id=session.id)
        return QueryResult(session_id=session.id, sql_query=sql_query, response=response)

    def _answer(self, question: str, session_id: str) -> Tuple[Optional[str], ResponseData]:
        canned = canned_reply(question)
        if canned is not None:
            return None, text_response(canned)

        if self.gateway is None:
            return None, error_response("No language model is configured. Set one up in Settings to ask questions.")

        history = ConversationService.format_history(ConversationService.recent_messages(self.db, session_id))
        sql_query = None
        try:
            plan = self._analyze(question, history)
            if not plan.get("needs_data", True) or not plan.get("sql_query"):
                return None, self._converse(question, history)

            sql_query = validate_select(plan["sql_query"])
            result = self._execute(sql_query)
            if not result.rows:
                return sql_query, text_response(NO_DATA_REPLY)

            response = self._format(question, sql_query, result)
            return sql_query, self._enforce_listing_shape(question, response, result)

        except ProviderError as e:
            logger.error(f"Model call failed while answering ({e.kind}): {e.message}")
            return sql_query, error_response(f"I couldn't reach the language model ({e.kind}). {e.message}")
        except ValidationError as e:
            logger.warning(f"Rejected model output: {e.message} {e.details or ''}")
            return sql_query, error_response(f"I couldn't answer that safely: {e.message}")
        except SQLAlchemyError as e:
            logger.warning(f"Generated query failed: {e}")
            return sql_query, error_response("I couldn't run the query for that question. Try rephrasing it.")

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    def _analyze(self, question: str, history: str) -> dict:
        prompt = ANALYZE_QUERY_PROMPT.format(
            schema=SCHEMA_DESCRIPTION,
            today=date.today().isoformat(),
            history=history,
            question=question,
        )
        content = self.gateway.complete(prompt)
        plan = extract_json_object(content)
        if plan is None:
            # A model that answers with bare SQL is still usable
            if re.match(r"^\s*(```\w*\s*)?(select|with)\b", content, re.IGNORECASE):
                return {"needs_data": True, "sql_query": content}
            raise ValidationError("Query analysis did not return JSON", error_code="invalid_plan")
        return plan

    def _converse(self, question: str, history: str) -> ResponseData:
        content = self.gateway.complete(CONVERSATION_PROMPT.format(history=history, question=question))
        payload = extract_json_object(content)
        if payload is None:
            raise ValidationError("Conversation reply did not match the card protocol", error_code="invalid_cards")
        return parse_response_data(payload)

    def _format(self, question: str, sql_query: str, result: QueryRows) -> ResponseData:
        shown = [list(row) for row in result.rows[:PROMPT_ROW_LIMIT]]
        prompt = FORMAT_RESULTS_PROMPT.format(
            question=question,
            sql=sql_query,
            columns=", ".join(result.columns),
            row_count=len(result.rows),
            rows=json.dumps(shown, default=str),
        )
        content = self.gateway.complete(prompt)
        payload = extract_json_object(content)
        if payload is None:
            raise ValidationError("Formatted answer was not JSON", error_code="invalid_json")
        return parse_response_data(payload)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, sql_query: str) -> QueryRows:
        """Run a validated SELECT on its own read-only connection."""
        engine = self.db.get_bind()
        with engine.connect() as conn:
            is_sqlite = conn.dialect.name == "sqlite"
            if is_sqlite:
                conn.exec_driver_sql("PRAGMA query_only = ON")
            else:
                conn.exec_driver_sql("SET TRANSACTION READ ONLY")
            try:
                result = conn.exec_driver_sql(sql_query)
                columns = list(result.keys())
                rows = [tuple(row) for row in result.fetchmany(settings.QUERY_ROW_LIMIT)]
            finally:
                conn.rollback()
                if is_sqlite:
                    conn.exec_driver_sql("PRAGMA query_only = OFF")
        logger.info(f"Query returned {len(rows)} rows")
        return QueryRows(columns=columns, rows=rows)

    # ------------------------------------------------------------------
    # Shaping
    # ------------------------------------------------------------------

    def _enforce_listing_shape(self, question: str, response: ResponseData, result: QueryRows) -> ResponseData:
        """A listing question answered with nothing but a chart gets the rows as a table instead."""
        if not is_listing_question(question):
            return response
        if len(response.cards) == 1 and response.cards[0].type == "chart":
            logger.info("Replacing lone chart card with a table for a listing question")
            return ResponseData(cards=[self.table_from_rows(result)])
        return response

    @staticmethod
    def table_from_rows(result: QueryRows, title: str = "Transactions") -> TableCard:
        rows = [["" if value is None else str(value) for value in row] for row in result.rows]
        return TableCard(content=TableContent(
            title=title,
            columns=[str(column) for column in result.columns],
            rows=rows,
            summary=f"{len(rows)} rows",
        ))
