"""
Extraction Engine - turns document text or images into transactions and receipts

Model output is treated as untrusted input: every row is validated before it
leaves this module. Statement rows that are missing a date, description or
amount are dropped; receipt items without a name or price are dropped.
A response with no JSON payload at all is a ValidationError.
"""

import logging
import math
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from yuki.core.config import settings
from yuki.core.exceptions import ValidationError
from yuki.core.seed_data import ITEM_CATEGORIES
from yuki.schemas.extraction import Item, Receipt, Transaction
from yuki.services.normalization import (
    match_category_name,
    normalize_item_name,
    resolve_currency,
    to_decimal,
)
from yuki.services.prompts import RECEIPT_EXTRACTION_PROMPT, STATEMENT_EXTRACTION_PROMPT
from yuki.services.providers.base import ImageInput, ModelGateway
from yuki.services.response_parsing import extract_json_array, extract_json_object, parse_date

logger = logging.getLogger(__name__)

UNKNOWN_MERCHANT = "Unknown"


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return to_decimal(value)
    except ValueError:
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


class ExtractionService:
    """Prompt construction and response validation for the four extraction modes."""

    def __init__(self, gateway: ModelGateway, primary_currency: str = None):
        self.gateway = gateway
        self.primary_currency = primary_currency or settings.DEFAULT_CURRENCY

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def extract_statement_from_text(self, text: str, categories: Sequence[str]) -> List[Transaction]:
        """Extract every transaction from statement text.

        Malformed rows are dropped, never fatal. Categories outside the
        provided list become "Other".
        """
        if not text or not text.strip():
            raise ValidationError("Statement has no text to extract", error_code="empty_document")

        prompt = STATEMENT_EXTRACTION_PROMPT.format(
            categories=", ".join(categories),
            currency=self.primary_currency,
            text=text,
        )
        content = self.gateway.complete(prompt)
        logger.info(f"Statement response: {len(content)} characters")

        rows = extract_json_array(content)
        if rows is None:
            # Some models wrap the array in an object
            wrapper = extract_json_object(content)
            if wrapper and isinstance(wrapper.get("transactions"), list):
                rows = wrapper["transactions"]
        if rows is None:
            raise ValidationError("Model response contained no transaction list", error_code="no_json")

        transactions = []
        for index, row in enumerate(rows):
            transaction = self._validate_transaction(row, categories)
            if transaction is None:
                logger.warning(f"Dropping malformed transaction row {index}: {row!r}")
                continue
            transactions.append(transaction)

        logger.info(f"Extracted {len(transactions)} of {len(rows)} transaction rows")
        return transactions

    def _validate_transaction(self, row: Any, categories: Sequence[str]) -> Optional[Transaction]:
        if not isinstance(row, dict):
            return None

        parsed_date = parse_date(row.get("date"))
        description = _optional_str(row.get("description")) or _optional_str(row.get("merchant"))
        amount = _optional_decimal(row.get("amount"))
        if parsed_date is None or description is None or amount is None:
            return None

        try:
            return Transaction(
                date=parsed_date,
                description=description,
                amount=amount,
                currency=resolve_currency(row.get("currency"), self.primary_currency),
                category=match_category_name(_optional_str(row.get("category")), categories),
                merchant=_optional_str(row.get("merchant")),
            )
        except PydanticValidationError:
            return None

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------

    def extract_receipt_from_text(self, text: str, categories: Sequence[str]) -> Receipt:
        if not text or not text.strip():
            raise ValidationError("Receipt has no text to extract", error_code="empty_document")

        prompt = self._receipt_prompt(categories, source="text below", text_block=f"\nReceipt:\n{text}\n")
        content = self.gateway.complete(prompt)
        return self._parse_receipt(content, categories)

    def extract_from_image(self, images: Sequence[ImageInput], categories: Sequence[str]) -> Receipt:
        """Vision extraction for photographed receipts and scanned PDFs."""
        if not images:
            raise ValidationError("No image to extract from", error_code="empty_document")

        prompt = self._receipt_prompt(categories, source="image(s) attached", text_block="")
        content = self.gateway.complete(prompt, images=images)
        return self._parse_receipt(content, categories)

    def _receipt_prompt(self, categories: Sequence[str], source: str, text_block: str) -> str:
        return RECEIPT_EXTRACTION_PROMPT.format(
            source=source,
            item_categories=", ".join(ITEM_CATEGORIES),
            categories=", ".join(categories),
            today=date.today().isoformat(),
            text_block=text_block,
        )

    def _parse_receipt(self, content: str, categories: Sequence[str]) -> Receipt:
        data = extract_json_object(content)
        if data is None:
            raise ValidationError("Model response contained no receipt object", error_code="no_json")

        items = []
        raw_items = data.get("items") if isinstance(data.get("items"), list) else []
        for index, raw in enumerate(raw_items):
            item = self._validate_item(raw)
            if item is None:
                logger.warning(f"Dropping malformed receipt item {index}: {raw!r}")
                continue
            items.append(item)

        tax = _optional_decimal(data.get("tax"))
        total = _optional_decimal(data.get("total"))
        if total is None:
            total = sum((item.total_price for item in items), Decimal("0")) + (tax or Decimal("0"))
            logger.warning(f"Receipt total missing, computed {total} from items")

        receipt_date = parse_date(data.get("date"))
        if receipt_date is None:
            receipt_date = date.today()

        try:
            receipt = Receipt(
                merchant=_optional_str(data.get("merchant")) or UNKNOWN_MERCHANT,
                date=receipt_date,
                items=items,
                tax=tax,
                total=abs(total),
                category=match_category_name(_optional_str(data.get("category")), categories),
            )
        except PydanticValidationError as e:
            raise ValidationError("Model response was not a valid receipt", error_code="invalid_receipt", details=str(e))
        logger.info(f"Parsed receipt from {receipt.merchant}: {len(items)} items, total {receipt.total}")
        return receipt

    def _validate_item(self, raw: Any) -> Optional[Item]:
        if not isinstance(raw, dict):
            return None

        name = normalize_item_name(_optional_str(raw.get("name")) or "")
        total_price = _optional_decimal(raw.get("total_price"))
        if not name or total_price is None:
            return None

        quantity = raw.get("quantity")
        try:
            quantity = float(quantity) if quantity not in (None, "") else None
        except (TypeError, ValueError):
            quantity = None
        if quantity is not None and not math.isfinite(quantity):
            quantity = None

        category = _optional_str(raw.get("category"))
        if category is not None:
            category = category.lower().replace(" ", "_")
            if category not in ITEM_CATEGORIES:
                category = "other"

        try:
            return Item(
                name=name,
                quantity=quantity,
                unit=_optional_str(raw.get("unit")),
                unit_price=_optional_decimal(raw.get("unit_price")),
                total_price=abs(total_price),
                category=category,
                brand=_optional_str(raw.get("brand")),
            )
        except PydanticValidationError:
            return None

