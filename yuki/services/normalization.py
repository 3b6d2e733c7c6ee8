"""
Classification and normalization rules shared by every producer of ledger entries.

Statement extraction, the scanned-receipt fallback, the conversational
detector and manual entry all turn their output into a LedgerEntryCreate
through ``transaction_to_entry`` so that category ids and amount signs come
out the same way regardless of where a transaction was found.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from yuki.core.seed_data import FALLBACK_CATEGORY_ID, FALLBACK_CATEGORY_NAME
from yuki.schemas.extraction import Transaction
from yuki.schemas.ledger import LedgerEntryCreate

Number = Union[int, float, str, Decimal]

_WHITESPACE = re.compile(r"\s+")
_NON_TOKEN = re.compile(r"[^a-z0-9]+")
_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")
# Symbols and whitespace around an amount; letters are kept so they can be rejected
_AMOUNT_SYMBOLS = re.compile(r"[^0-9A-Za-z.+\-]")
_CURRENCY_PREFIX = re.compile(r"^[A-Z]{3}(?![A-Za-z])")
_CURRENCY_SUFFIX = re.compile(r"(?<![A-Za-z])[A-Z]{3}$")


def slugify(name: str) -> str:
    """Canonical identifier form: trimmed, lowercase, whitespace runs become hyphens."""
    return _WHITESPACE.sub("-", (name or "").strip().lower())


KnownCategories = Union[Mapping[str, str], Iterable[str]]


def _category_pairs(known: KnownCategories) -> List[Tuple[str, str]]:
    """(name, id) pairs. A plain list of names gets ids in identifier form."""
    if isinstance(known, Mapping):
        return list(known.items())
    return [(name, slugify(name)) for name in known]


def normalize_category(name: Optional[str], known: KnownCategories) -> str:
    """Map a free-text category name to a category id.

    ``known`` is either a name to id mapping read from the categories table or
    a list of names whose ids are their identifier form. A category renamed
    after creation keeps its original id, so callers working against the
    database pass the mapping. Matches case-insensitively on the name, its
    identifier form or the id itself, so an id fed back in maps to itself.
    No match is "other".
    """
    if not name or not name.strip():
        return FALLBACK_CATEGORY_ID

    wanted = name.strip().lower()
    wanted_slug = slugify(name)
    for known_name, category_id in _category_pairs(known):
        if known_name.strip().lower() == wanted or slugify(known_name) == wanted_slug or category_id == wanted_slug:
            return category_id
    return FALLBACK_CATEGORY_ID


def match_category_name(name: Optional[str], known_names: Iterable[str]) -> str:
    """Like normalize_category but returns the display name ("Other" when unmatched)."""
    if name and name.strip():
        wanted_slug = slugify(name)
        for known in known_names:
            if known.strip().lower() == name.strip().lower() or slugify(known) == wanted_slug:
                return known
    return FALLBACK_CATEGORY_NAME


def to_decimal(value: Number) -> Decimal:
    """Parse a model-supplied amount. Tolerates currency symbols, ISO codes and thousands separators.

    Any other letters make the value unparseable rather than being dropped,
    and NaN or infinity is never an amount.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        negative = cleaned.startswith("(") and cleaned.endswith(")")
        cleaned = _AMOUNT_SYMBOLS.sub("", cleaned)
        cleaned = _CURRENCY_SUFFIX.sub("", _CURRENCY_PREFIX.sub("", cleaned))
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"not an amount: {value!r}")
        if negative:
            amount = -abs(amount)
    else:
        raise ValueError(f"not an amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    return amount


def normalize_amount_sign(raw: Number, is_expense: bool) -> Decimal:
    """Expenses are stored as negative magnitudes, income as positive."""
    magnitude = abs(to_decimal(raw))
    return -magnitude if is_expense else magnitude


def normalize_item_name(name: str) -> str:
    """'Organic Apples 2lb' -> 'organic-apples-2lb'"""
    return _NON_TOKEN.sub("-", (name or "").lower()).strip("-")


def resolve_currency(code: Optional[str], primary: str) -> str:
    if code and isinstance(code, str):
        candidate = code.strip().upper()
        if _CURRENCY_CODE.match(candidate):
            return candidate
    return primary


def convert_to_primary(amount: float, rate: float) -> float:
    return amount * rate


def convert_from_primary(amount: float, rate: float) -> float:
    if rate == 0:
        return 0.0
    return amount / rate


def transaction_to_entry(
    transaction: Transaction,
    known: KnownCategories,
    source: str,
    document_id: Optional[str] = None,
    account_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> LedgerEntryCreate:
    """Build the ledger row for a transaction whose amount is already signed."""
    return LedgerEntryCreate(
        date=transaction.date,
        description=transaction.description,
        amount=transaction.amount,
        currency=transaction.currency,
        category_id=normalize_category(transaction.category, known),
        merchant=transaction.merchant,
        notes=notes,
        document_id=document_id,
        account_id=account_id,
        source=source,
    )
