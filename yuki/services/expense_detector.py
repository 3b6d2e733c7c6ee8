"""
Conversational Expense Detector

Decides whether a chat message records a transaction that already happened
("I spent $20 on lunch yesterday") and, when it does, books it through the
same normalization path statement extraction uses.

Questions and hypotheticals are rejected before any model call.
"""

import logging
import re
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from yuki.models.ledger_entry import LedgerEntry
from yuki.schemas.extraction import ExpenseDetection, Transaction
from yuki.services.account_service import AccountService
from yuki.services.category_service import CategoryService
from yuki.services.currency_service import CurrencyService
from yuki.services.ledger_service import LedgerService
from yuki.services.normalization import match_category_name, normalize_amount_sign, to_decimal, transaction_to_entry
from yuki.services.prompts import DETECT_EXPENSE_PROMPT
from yuki.services.providers.base import ModelGateway
from yuki.services.response_parsing import extract_json_object, parse_date

logger = logging.getLogger(__name__)

INTERROGATIVES = (
    "how", "what", "when", "where", "which", "who", "why",
    "did", "do", "does", "can", "could", "should", "would", "will",
    "is", "are", "was", "were", "show", "list", "tell",
)

# Plans and hypotheticals are recognised at the opening of the message only;
# "I spent $15 on gas going to work" is still a purchase.
_HYPOTHETICAL_OPENING = re.compile(
    r"^(?:(?:i|we)\s+(?:am\s+|are\s+)?|(?:i'm|we're|im)\s+)?"
    r"(?:might|may|maybe|perhaps|could|plan(?:ning)?\s+to|want\s+to|wanna|would\s+like\s+to|"
    r"going\s+to|gonna|thinking\s+(?:about|of)|considering|hop(?:e|ing)\s+to|if)\b"
)

CONFIDENCE_LEVELS = ("high", "medium", "low")


def is_non_transactional(message: str) -> bool:
    """Questions and plans never record a transaction."""
    text = message.strip().lower().replace("\u2019", "'")
    if not text:
        return True
    if text.endswith("?"):
        return True
    first_word = re.split(r"[\s,]+", text, maxsplit=1)[0].strip("'\"")
    if first_word in INTERROGATIVES:
        return True
    return bool(_HYPOTHETICAL_OPENING.match(text))


class ExpenseDetector:

    def __init__(self, gateway: ModelGateway):
        self.gateway = gateway

    def detect(self, message: str, categories: Sequence[str], today: Optional[date] = None) -> ExpenseDetection:
        if is_non_transactional(message):
            logger.info("Message is a question or plan, not a transaction")
            return ExpenseDetection.negative()

        today = today or date.today()
        prompt = DETECT_EXPENSE_PROMPT.format(
            today=today.isoformat(),
            categories=", ".join(categories),
            message=message.strip(),
        )
        content = self.gateway.complete(prompt)
        data = extract_json_object(content)
        if not data or data.get("is_transaction") is not True:
            return ExpenseDetection.negative()
        return self._validate(data, categories, today)

    def _validate(self, data: dict, categories: Sequence[str], today: date) -> ExpenseDetection:
        try:
            raw_amount = to_decimal(data.get("amount"))
        except ValueError:
            logger.warning(f"Detection had no usable amount: {data.get('amount')!r}")
            return ExpenseDetection.negative()
        if raw_amount == 0:
            return ExpenseDetection.negative()

        kind = str(data.get("type") or "").strip().lower()
        if kind in ("expense", "income"):
            is_expense = kind == "expense"
        else:
            is_expense = raw_amount < 0

        description = str(data.get("description") or "").strip()
        merchant = data.get("merchant")
        merchant = str(merchant).strip() if merchant not in (None, "", "null") else None
        if not description:
            description = merchant or ("Expense" if is_expense else "Income")

        confidence = str(data.get("confidence") or "").strip().lower()
        if confidence not in CONFIDENCE_LEVELS:
            confidence = "low"

        return ExpenseDetection(
            is_transaction=True,
            date=parse_date(data.get("date")) or today,
            description=description,
            amount=normalize_amount_sign(raw_amount, is_expense=is_expense),
            category=match_category_name(str(data.get("category") or ""), categories),
            merchant=merchant,
            confidence=confidence,
        )


def record_conversation_entry(db: Session, detection: ExpenseDetection) -> LedgerEntry:
    """Book a positive detection into the ledger as a conversation entry."""
    if not detection.is_transaction:
        raise ValueError("Only positive detections can be recorded")

    transaction = Transaction(
        date=detection.date,
        description=detection.description,
        amount=detection.amount,
        currency=CurrencyService.get_primary(db).code,
        category=detection.category,
        merchant=detection.merchant,
    )
    entry = transaction_to_entry(
        transaction,
        CategoryService.category_ids(db),
        source="conversation",
        account_id=AccountService.get_default_account(db).id,
    )
    return LedgerService.save_ledger_entry(db, entry)
