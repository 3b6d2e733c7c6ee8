"""
Ledger Writer - transactional persistence of documents, ledger entries,
receipts and purchased items.

Every public write either commits its whole aggregate or rolls back and
re-raises; callers never see a half-written receipt or an orphaned entry.
"""

import json
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.exceptions import DatabaseError, DuplicateError, NotFoundError, ReferentialError, ValidationError
from yuki.models.account import Account
from yuki.models.category import Category
from yuki.models.document import Document
from yuki.models.ledger_entry import LedgerEntry
from yuki.models.purchased_item import PurchasedItem
from yuki.models.receipt import Receipt
from yuki.schemas.ledger import LedgerEntryCreate, LedgerFilter, PurchasedItemCreate, ReceiptCreate

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

DUPLICATE_POLICIES = ("reject", "version")


def _audit(event: str, **fields) -> None:
    audit_logger.info(json.dumps({"event": event, **fields}, default=str))


@contextmanager
def write_transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any failure."""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Write failed and was rolled back: {e}")
        raise DatabaseError("Database write failed", details=str(e))
    except Exception:
        db.rollback()
        raise


class LedgerService:

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @staticmethod
    def save_document(
        db: Session,
        filename: str,
        filepath: str,
        filetype: str,
        file_hash: str,
        document_type: str = "statement",
        document_id: Optional[str] = None,
        duplicate_policy: Optional[str] = None,
    ) -> Document:
        """Insert a document row. Under the "reject" policy a repeated hash raises DuplicateError."""
        LedgerService.check_duplicate(db, file_hash, filename, duplicate_policy)

        document = Document(
            filename=filename,
            filepath=filepath,
            filetype=filetype,
            document_type=document_type,
            hash=file_hash,
        )
        if document_id:
            document.id = document_id

        with write_transaction(db):
            db.add(document)
        db.refresh(document)
        _audit("document_saved", document_id=document.id, filename=filename, hash=file_hash)
        return document

    @staticmethod
    def check_duplicate(db: Session, file_hash: str, filename: str, duplicate_policy: Optional[str] = None) -> None:
        policy = duplicate_policy or settings.DUPLICATE_UPLOAD_POLICY
        if policy not in DUPLICATE_POLICIES:
            raise ValidationError(f"Unknown duplicate policy '{policy}'")

        existing = LedgerService.find_document_by_hash(db, file_hash)
        if existing is None:
            return
        if policy == "reject":
            raise DuplicateError(
                f"'{filename}' was already uploaded as '{existing.filename}'",
                existing_id=existing.id,
            )
        logger.info(f"Storing {filename} as a new version of document {existing.id}")

    @staticmethod
    def find_document_by_hash(db: Session, file_hash: str) -> Optional[Document]:
        return db.query(Document).filter(Document.hash == file_hash).order_by(Document.uploaded_at).first()

    @staticmethod
    def get_document(db: Session, document_id: str) -> Document:
        document = db.get(Document, document_id)
        if not document:
            raise NotFoundError("Document not found")
        return document

    @staticmethod
    def list_documents(db: Session, limit: int = 100, offset: int = 0) -> List[Document]:
        return (
            db.query(Document)
            .order_by(Document.uploaded_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def delete_document(db: Session, document_id: str) -> str:
        """Delete a document with its receipts, items and ledger entries in one transaction.

        Returns the stored file path so the caller can remove the file once
        the rows are gone.
        """
        document = LedgerService.get_document(db, document_id)
        filepath = document.filepath

        receipt_ids = select(Receipt.id).where(Receipt.document_id == document_id)
        entry_ids = select(LedgerEntry.id).where(LedgerEntry.document_id == document_id)

        with write_transaction(db):
            removed_items = db.query(PurchasedItem).filter(
                (PurchasedItem.receipt_id.in_(receipt_ids)) | (PurchasedItem.ledger_id.in_(entry_ids))
            ).delete(synchronize_session=False)
            db.query(Receipt).filter(Receipt.document_id == document_id).delete(synchronize_session=False)
            removed_entries = db.query(LedgerEntry).filter(
                LedgerEntry.document_id == document_id
            ).delete(synchronize_session=False)
            db.query(Document).filter(Document.id == document_id).delete(synchronize_session=False)
        db.expire_all()

        _audit("document_deleted", document_id=document_id, ledger_entries=removed_entries, purchased_items=removed_items)
        return filepath

    # ------------------------------------------------------------------
    # Ledger entries
    # ------------------------------------------------------------------

    @staticmethod
    def _check_references(db: Session, entry: LedgerEntryCreate) -> None:
        if db.get(Category, entry.category_id) is None:
            raise ReferentialError(f"Unknown category '{entry.category_id}'")
        if entry.account_id is not None and db.get(Account, entry.account_id) is None:
            raise ReferentialError(f"Unknown account '{entry.account_id}'")
        if entry.document_id is not None and db.get(Document, entry.document_id) is None:
            raise ReferentialError(f"Unknown document '{entry.document_id}'")

    @staticmethod
    def _build_entry(entry: LedgerEntryCreate) -> LedgerEntry:
        return LedgerEntry(**entry.model_dump())

    @staticmethod
    def save_ledger_entry(db: Session, entry: LedgerEntryCreate) -> LedgerEntry:
        LedgerService._check_references(db, entry)
        row = LedgerService._build_entry(entry)
        with write_transaction(db):
            db.add(row)
        db.refresh(row)
        _audit("ledger_entry_saved", entry_id=row.id, source=row.source, amount=row.amount)
        return row

    @staticmethod
    def save_ledger_entries(db: Session, entries: Sequence[LedgerEntryCreate]) -> List[LedgerEntry]:
        """Bulk insert, all-or-nothing."""
        for entry in entries:
            LedgerService._check_references(db, entry)
        rows = [LedgerService._build_entry(entry) for entry in entries]
        with write_transaction(db):
            db.add_all(rows)
        for row in rows:
            db.refresh(row)
        _audit("ledger_entries_saved", count=len(rows))
        return rows

    @staticmethod
    def get_ledger_entry(db: Session, entry_id: str) -> LedgerEntry:
        entry = db.get(LedgerEntry, entry_id)
        if not entry:
            raise NotFoundError("Ledger entry not found")
        return entry

    @staticmethod
    def list_ledger_entries(db: Session, filters: Optional[LedgerFilter] = None) -> List[LedgerEntry]:
        filters = filters or LedgerFilter()
        query = db.query(LedgerEntry)
        if filters.start_date:
            query = query.filter(LedgerEntry.date >= filters.start_date)
        if filters.end_date:
            query = query.filter(LedgerEntry.date <= filters.end_date)
        if filters.category_id:
            query = query.filter(LedgerEntry.category_id == filters.category_id)
        if filters.account_id:
            query = query.filter(LedgerEntry.account_id == filters.account_id)
        if filters.document_id:
            query = query.filter(LedgerEntry.document_id == filters.document_id)
        if filters.source:
            query = query.filter(LedgerEntry.source == filters.source)
        return (
            query.order_by(LedgerEntry.date.desc(), LedgerEntry.created_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )

    @staticmethod
    def delete_ledger_entry(db: Session, entry_id: str) -> None:
        """Hard delete. Purchased items and receipts linked to the entry go with it."""
        LedgerService.get_ledger_entry(db, entry_id)
        with write_transaction(db):
            db.query(PurchasedItem).filter(PurchasedItem.ledger_id == entry_id).delete(synchronize_session=False)
            db.query(Receipt).filter(Receipt.ledger_id == entry_id).delete(synchronize_session=False)
            db.query(LedgerEntry).filter(LedgerEntry.id == entry_id).delete(synchronize_session=False)
        db.expire_all()
        _audit("ledger_entry_deleted", entry_id=entry_id)

    # ------------------------------------------------------------------
    # Receipts and purchased items
    # ------------------------------------------------------------------

    @staticmethod
    def _build_receipt(receipt: ReceiptCreate) -> Receipt:
        data = receipt.model_dump()
        data["items"] = [{"name": line.name, "amount": float(line.amount)} for line in receipt.items]
        return Receipt(**data)

    @staticmethod
    def save_receipt(db: Session, receipt: ReceiptCreate) -> Receipt:
        row = LedgerService._build_receipt(receipt)
        with write_transaction(db):
            db.add(row)
        db.refresh(row)
        return row

    @staticmethod
    def save_purchased_items(db: Session, items: Sequence[PurchasedItemCreate]) -> List[PurchasedItem]:
        """Bulk insert, all-or-nothing."""
        rows = [PurchasedItem(**item.model_dump()) for item in items]
        with write_transaction(db):
            db.add_all(rows)
        return rows

    @staticmethod
    def save_receipt_with_items(
        db: Session, receipt: ReceiptCreate, items: Sequence[PurchasedItemCreate]
    ) -> Receipt:
        """Receipt row and its purchased items in one transaction."""
        row = LedgerService._build_receipt(receipt)
        with write_transaction(db):
            db.add(row)
            db.flush()
            db.add_all([
                PurchasedItem(**{**item.model_dump(), "receipt_id": row.id})
                for item in items
            ])
        db.refresh(row)
        _audit("receipt_saved", receipt_id=row.id, document_id=row.document_id, items=len(items))
        return row

    @staticmethod
    def list_receipts(db: Session, limit: int = 100, offset: int = 0) -> List[Receipt]:
        return db.query(Receipt).order_by(Receipt.created_at.desc()).offset(offset).limit(limit).all()

    @staticmethod
    def list_purchased_items(
        db: Session, receipt_id: Optional[str] = None, name: Optional[str] = None, limit: int = 200
    ) -> List[PurchasedItem]:
        query = db.query(PurchasedItem)
        if receipt_id:
            query = query.filter(PurchasedItem.receipt_id == receipt_id)
        if name:
            query = query.filter(PurchasedItem.name.contains(name.lower()))
        return query.order_by(PurchasedItem.purchased_at.desc()).limit(limit).all()
