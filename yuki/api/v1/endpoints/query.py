from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from yuki.core.deps import get_db, get_optional_model_gateway
from yuki.core.exceptions import DatabaseError, NotFoundError
from yuki.schemas.query import ChatHistoryResponse, QueryRequest, QueryResult
from yuki.services.conversation_service import ConversationService
from yuki.services.providers import ModelGateway
from yuki.services.query_service import QueryService

router = APIRouter()


@router.post("/", response_model=QueryResult, response_model_exclude_none=True)
def ask_question(
    request: QueryRequest,
    db: Session = Depends(get_db),
    gateway: Optional[ModelGateway] = Depends(get_optional_model_gateway),
):
    """Answer a natural-language question about the ledger with response cards.

    Model and SQL failures come back as a single error card with status 200;
    only an unknown session id is an HTTP error.
    """
    try:
        return QueryService(db, gateway).ask(request.question, session_id=request.session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/history", response_model=List[ChatHistoryResponse])
def get_history(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return ConversationService.list_history(db, limit=limit, offset=offset)


@router.delete("/history")
def clear_history(db: Session = Depends(get_db)):
    removed = ConversationService.clear_history(db)
    return {"message": "Chat history cleared", "entries_removed": removed}
