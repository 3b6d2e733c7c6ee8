from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from yuki.core.deps import get_db, get_model_gateway, provider_error_status
from yuki.core.exceptions import BaseAppException, ProviderError
from yuki.schemas.cards import error_response, text_response
from yuki.schemas.extraction import ExpenseDetection
from yuki.schemas.query import ChatMessageRequest, RecordResult
from yuki.services.category_service import CategoryService
from yuki.services.expense_detector import ExpenseDetector, record_conversation_entry
from yuki.services.providers import ModelGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/detect", response_model=ExpenseDetection)
def detect_expense(
    request: ChatMessageRequest,
    db: Session = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """Classify a chat message without recording anything"""
    try:
        return ExpenseDetector(gateway).detect(request.message, CategoryService.list_category_names(db))
    except ProviderError as e:
        raise HTTPException(status_code=provider_error_status(e), detail=str(e))


@router.post("/record", response_model=RecordResult, response_model_exclude_none=True)
def record_expense(
    request: ChatMessageRequest,
    db: Session = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """Detect a past transaction in a chat message and book it into the ledger"""
    try:
        detection = ExpenseDetector(gateway).detect(request.message, CategoryService.list_category_names(db))
    except ProviderError as e:
        raise HTTPException(status_code=provider_error_status(e), detail=str(e))

    if not detection.is_transaction:
        return RecordResult(
            detected=False,
            response=text_response("That doesn't look like a transaction you made, so nothing was recorded."),
        )

    try:
        entry = record_conversation_entry(db, detection)
    except BaseAppException as e:
        logger.error(f"Could not record detected transaction: {e.message}")
        return RecordResult(detected=True, response=error_response(f"I couldn't save that transaction: {e.message}"))

    kind = "expense" if entry.amount < 0 else "income"
    return RecordResult(
        detected=True,
        ledger_entry_id=entry.id,
        response=text_response(
            f"Recorded {kind} of {abs(entry.amount)} {entry.currency} for {entry.description} on {entry.date.isoformat()}."
        ),
    )
