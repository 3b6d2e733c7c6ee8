"""
Upload pipeline - save, extract, classify, persist

Each upload takes exactly one of four routes, chosen from the document type
the user picked and the form of the content:

    statement + text  -> one ledger entry per transaction
    statement + image -> exactly one ledger entry for the receipt total
    receipt   + text  -> receipt row and purchased items, no ledger entry
    receipt   + image -> receipt row and purchased items, no ledger entry

The document row is committed before extraction so a file is never lost,
only unparsed. Extraction results are persisted in a single transaction;
a failure or cancellation before that point writes nothing else.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from yuki.core.exceptions import (
    BaseAppException,
    DuplicateError,
    ProcessingCancelled,
    ProviderError,
    ValidationError,
)
from yuki.models.document import Document
from yuki.schemas.cards import text_card
from yuki.schemas.document import ProcessingResult
from yuki.schemas.extraction import Receipt, Transaction
from yuki.schemas.ledger import LedgerEntryCreate, PurchasedItemCreate, ReceiptCreate, ReceiptLine
from yuki.services.account_service import AccountService
from yuki.services.category_service import CategoryService
from yuki.services.currency_service import CurrencyService
from yuki.services.document_service import DocumentStorage, file_extension, file_hash, is_image
from yuki.services.extraction_service import ExtractionService
from yuki.services.ledger_service import LedgerService
from yuki.services.normalization import normalize_amount_sign, transaction_to_entry
from yuki.services.providers.base import ModelGateway

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("statement", "receipt")


class ContentForm(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class ExtractionRoute(str, Enum):
    STATEMENT_TEXT = "statement_text"
    STATEMENT_IMAGE = "statement_image"
    RECEIPT_TEXT = "receipt_text"
    RECEIPT_IMAGE = "receipt_image"


_ROUTES: Dict[Tuple[str, ContentForm], ExtractionRoute] = {
    ("statement", ContentForm.TEXT): ExtractionRoute.STATEMENT_TEXT,
    ("statement", ContentForm.IMAGE): ExtractionRoute.STATEMENT_IMAGE,
    ("receipt", ContentForm.TEXT): ExtractionRoute.RECEIPT_TEXT,
    ("receipt", ContentForm.IMAGE): ExtractionRoute.RECEIPT_IMAGE,
}


def route_upload(document_type: str, content_form: ContentForm) -> ExtractionRoute:
    """The single routing decision for an upload."""
    try:
        return _ROUTES[(document_type, ContentForm(content_form))]
    except (KeyError, ValueError):
        raise ValidationError(f"Unknown document type '{document_type}'", error_code="unknown_document_type")


@dataclass
class LedgerEntries:
    entries: List[LedgerEntryCreate]


@dataclass
class ReceiptItems:
    receipt: ReceiptCreate
    items: List[PurchasedItemCreate] = field(default_factory=list)


ExtractionOutcome = Union[LedgerEntries, ReceiptItems]


@dataclass
class PreparedContent:
    """What a route handler needs to know about the stored file."""
    document: Document
    extension: str
    form: ContentForm
    text: Optional[str] = None


class IngestionService:
    """Runs uploads through the route table and persists their outcomes."""

    def __init__(self, db: Session, gateway: ModelGateway, storage: DocumentStorage = None):
        self.db = db
        self.storage = storage or DocumentStorage()
        self.primary_currency = CurrencyService.get_primary(db).code
        self.extractor = ExtractionService(gateway, primary_currency=self.primary_currency)
        self._handlers: Dict[ExtractionRoute, Callable[[PreparedContent, Dict[str, str]], ExtractionOutcome]] = {
            ExtractionRoute.STATEMENT_TEXT: self._handle_statement_text,
            ExtractionRoute.STATEMENT_IMAGE: self._handle_statement_image,
            ExtractionRoute.RECEIPT_TEXT: self._handle_receipt_text,
            ExtractionRoute.RECEIPT_IMAGE: self._handle_receipt_image,
        }

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def process_batch(
        self,
        files: Sequence[Tuple[str, bytes]],
        document_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ProcessingResult]:
        """Process files one at a time. A failed file never stops the rest."""
        results = []
        for filename, content in files:
            if cancel_event is not None and cancel_event.is_set():
                results.append(self._failure(filename, None, None, "Upload cancelled before processing"))
                continue
            results.append(self.process_upload(filename, content, document_type, cancel_event))
        return results

    def process_upload(
        self,
        filename: str,
        content: bytes,
        document_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessingResult:
        logger.info(f"Processing {filename} as {document_type} ({len(content)} bytes)")
        document = None
        route = None
        try:
            if document_type not in DOCUMENT_TYPES:
                raise ValidationError(f"Unknown document type '{document_type}'", error_code="unknown_document_type")
            extension = file_extension(filename)
            document = self._store_document(filename, content, extension, document_type)

            prepared = self._prepare(document, extension)
            route = route_upload(document_type, prepared.form)
            logger.info(f"{filename}: route {route.value}")

            categories = CategoryService.category_ids(self.db)
            outcome = self._handlers[route](prepared, categories)

            if cancel_event is not None and cancel_event.is_set():
                raise ProcessingCancelled("Upload cancelled before results were saved")

            return self._persist(filename, document, route, outcome)

        except DuplicateError as e:
            logger.warning(f"{filename}: {e.message}")
            return self._failure(filename, e.existing_id, route, e.message)
        except ProviderError as e:
            logger.error(f"{filename}: model call failed ({e.kind}): {e.message}")
            return self._failure(filename, document.id if document else None, route,
                                 f"The language model could not process this file ({e.kind}): {e.message}")
        except (ValidationError, ProcessingCancelled) as e:
            logger.warning(f"{filename}: {e.message}")
            return self._failure(filename, document.id if document else None, route, e.message)
        except BaseAppException as e:
            logger.error(f"{filename}: processing failed: {e.message}")
            return self._failure(filename, document.id if document else None, route, e.message)
        except PydanticValidationError as e:
            logger.error(f"{filename}: extracted data failed validation: {e}")
            return self._failure(filename, document.id if document else None, route,
                                 "The extracted data failed validation")

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _store_document(self, filename: str, content: bytes, extension: str, document_type: str) -> Document:
        digest = file_hash(content)
        # Rejected duplicates must not leave a stored file behind
        LedgerService.check_duplicate(self.db, digest, filename)

        document_id = str(uuid.uuid4())
        filepath = self.storage.save(content, document_id, filename)
        try:
            return LedgerService.save_document(
                self.db, filename, filepath, extension, digest,
                document_type=document_type, document_id=document_id,
            )
        except BaseAppException:
            self.storage.delete(filepath)
            raise

    def _prepare(self, document: Document, extension: str) -> PreparedContent:
        if is_image(extension):
            return PreparedContent(document=document, extension=extension, form=ContentForm.IMAGE)
        if extension == "pdf":
            extraction = self.storage.extract_text(document.filepath)
            if extraction.is_scanned:
                return PreparedContent(document=document, extension=extension, form=ContentForm.IMAGE)
            return PreparedContent(document=document, extension=extension, form=ContentForm.TEXT, text=extraction.text)
        return PreparedContent(
            document=document, extension=extension, form=ContentForm.TEXT,
            text=self.storage.read_text_file(document.filepath),
        )

    # ------------------------------------------------------------------
    # Route handlers
    # ------------------------------------------------------------------

    def _default_account_id(self) -> str:
        return AccountService.get_default_account(self.db).id

    def _handle_statement_text(self, prepared: PreparedContent, categories: Dict[str, str]) -> ExtractionOutcome:
        transactions = self.extractor.extract_statement_from_text(prepared.text, list(categories))
        account_id = self._default_account_id()
        return LedgerEntries(entries=[
            transaction_to_entry(
                transaction, categories, source="document",
                document_id=prepared.document.id, account_id=account_id,
            )
            for transaction in transactions
        ])

    def _handle_statement_image(self, prepared: PreparedContent, categories: Dict[str, str]) -> ExtractionOutcome:
        """Scanned statements are read as a receipt and booked as one entry for the total."""
        images = self.storage.load_vision_images(prepared.document.filepath, prepared.extension)
        receipt = self.extractor.extract_from_image(images, list(categories))
        transaction = Transaction(
            date=receipt.date,
            description=receipt.merchant,
            amount=normalize_amount_sign(receipt.total, is_expense=True),
            currency=self.primary_currency,
            category=receipt.category,
            merchant=receipt.merchant,
        )
        source = "scanned-pdf" if prepared.extension == "pdf" else "image"
        return LedgerEntries(entries=[
            transaction_to_entry(
                transaction, categories, source=source,
                document_id=prepared.document.id, account_id=self._default_account_id(),
            )
        ])

    def _handle_receipt_text(self, prepared: PreparedContent, categories: Dict[str, str]) -> ExtractionOutcome:
        receipt = self.extractor.extract_receipt_from_text(prepared.text, list(categories))
        return self._receipt_outcome(prepared.document, receipt)

    def _handle_receipt_image(self, prepared: PreparedContent, categories: Dict[str, str]) -> ExtractionOutcome:
        images = self.storage.load_vision_images(prepared.document.filepath, prepared.extension)
        receipt = self.extractor.extract_from_image(images, list(categories))
        return self._receipt_outcome(prepared.document, receipt)

    def _receipt_outcome(self, document: Document, receipt: Receipt) -> ReceiptItems:
        receipt_row = ReceiptCreate(
            document_id=document.id,
            ledger_id=None,
            merchant=receipt.merchant,
            date=receipt.date,
            items=[ReceiptLine(name=item.name, amount=item.total_price) for item in receipt.items],
            tax=receipt.tax,
            total=receipt.total,
            category=receipt.category,
        )
        items = [
            PurchasedItemCreate(
                name=item.name,
                quantity=item.quantity if item.quantity is not None else 1,
                unit=item.unit,
                unit_price=item.unit_price,
                total_price=item.total_price,
                category=item.category,
                brand=item.brand,
                purchased_at=receipt.date,
            )
            for item in receipt.items
        ]
        return ReceiptItems(receipt=receipt_row, items=items)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, filename: str, document: Document, route: ExtractionRoute, outcome: ExtractionOutcome) -> ProcessingResult:
        if isinstance(outcome, LedgerEntries):
            rows = LedgerService.save_ledger_entries(self.db, outcome.entries)
            if route == ExtractionRoute.STATEMENT_IMAGE:
                body = f"Processed {filename}: recorded one transaction of {abs(rows[0].amount)} {rows[0].currency} at {rows[0].description}."
            else:
                body = f"Processed {filename}: found {len(rows)} transactions."
            return ProcessingResult(
                filename=filename,
                success=True,
                document_id=document.id,
                route=route.value,
                ledger_entries_created=len(rows),
                card=text_card(body),
            )

        receipt = LedgerService.save_receipt_with_items(self.db, outcome.receipt, outcome.items)
        body = f"Processed {filename}: receipt from {receipt.merchant} with {len(outcome.items)} items, total {receipt.total}."
        return ProcessingResult(
            filename=filename,
            success=True,
            document_id=document.id,
            route=route.value,
            purchased_items_created=len(outcome.items),
            receipt_id=receipt.id,
            card=text_card(body),
        )

    @staticmethod
    def _failure(filename: str, document_id: Optional[str], route: Optional[ExtractionRoute], message: str) -> ProcessingResult:
        return ProcessingResult(
            filename=filename,
            success=False,
            document_id=document_id,
            route=route.value if route else None,
            card=text_card(f"Could not process {filename}: {message}", is_error=True),
        )
