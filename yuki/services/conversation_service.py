from sqlalchemy.orm import Session
from typing import List, Optional

from yuki.core.config import settings
from yuki.core.exceptions import NotFoundError
from yuki.models.chat_history import ChatHistoryEntry
from yuki.models.conversation import ConversationMessage, ConversationSession
from yuki.schemas.cards import ResponseData
from yuki.services.ledger_service import write_transaction

TITLE_LENGTH = 60


class ConversationService:
    """Chat history log and per-session conversation context."""

    @staticmethod
    def get_or_create_session(db: Session, session_id: Optional[str], first_message: str) -> ConversationSession:
        if session_id:
            session = db.get(ConversationSession, session_id)
            if not session:
                raise NotFoundError("Conversation session not found")
            return session

        session = ConversationSession(title=first_message.strip()[:TITLE_LENGTH])
        with write_transaction(db):
            db.add(session)
        db.refresh(session)
        return session

    @staticmethod
    def recent_messages(db: Session, session_id: str, limit: int = None) -> List[ConversationMessage]:
        limit = limit or settings.CONVERSATION_HISTORY_LIMIT
        rows = (
            db.query(ConversationMessage)
            .filter(ConversationMessage.session_id == session_id)
            # A question and its answer can share a timestamp; "assistant" sorts before "user"
            .order_by(ConversationMessage.created_at.desc(), ConversationMessage.role.asc())
            .limit(limit)
            .all()
        )
        return list(reversed(rows))

    @staticmethod
    def format_history(messages: List[ConversationMessage]) -> str:
        if not messages:
            return ""
        lines = ["Recent conversation:"]
        for message in messages:
            lines.append(f"{message.role}: {message.content}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def record_exchange(
        db: Session,
        question: str,
        sql_query: Optional[str],
        response: ResponseData,
        session_id: Optional[str] = None,
    ) -> ChatHistoryEntry:
        """Append the exchange to the history log and, when given, to the session."""
        payload = response.to_json_dict()
        entry = ChatHistoryEntry(
            question=question,
            sql_query=sql_query,
            response=payload,
            card_count=len(response.cards),
        )
        with write_transaction(db):
            db.add(entry)
            if session_id:
                db.add(ConversationMessage(session_id=session_id, role="user", content=question))
                db.add(ConversationMessage(
                    session_id=session_id,
                    role="assistant",
                    content=ConversationService.summarize(response),
                    sql_query=sql_query,
                ))
        db.refresh(entry)
        return entry

    @staticmethod
    def summarize(response: ResponseData) -> str:
        """Plain-text digest of a response, used as conversation context."""
        parts = []
        for card in response.cards:
            if card.type == "text":
                parts.append(card.content.body)
            elif card.type == "mixed":
                parts.append(card.content.body)
            elif card.type == "chart":
                parts.append(f"[{card.content.chart_type} chart: {card.content.title}]")
            elif card.type == "table":
                parts.append(f"[table: {card.content.title}, {len(card.content.rows)} rows]")
        return "\n".join(parts)

    @staticmethod
    def list_history(db: Session, limit: int = 50, offset: int = 0) -> List[ChatHistoryEntry]:
        return (
            db.query(ChatHistoryEntry)
            .order_by(ChatHistoryEntry.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def clear_history(db: Session) -> int:
        with write_transaction(db):
            removed = db.query(ChatHistoryEntry).delete(synchronize_session=False)
            db.query(ConversationMessage).delete(synchronize_session=False)
            db.query(ConversationSession).delete(synchronize_session=False)
        return removed
