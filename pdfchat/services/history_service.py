"""
Rebuilds a caller's chat history as display messages.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from .db_repositories import ChatInteractionRepository
from ..exceptions import InternalError, UnauthorizedError
from ..models import DisplayMessage
from ..models_db import ChatInteraction
from ..utils import ensure_utc, handle_processing_error, log_processing_info
import logging

logger = logging.getLogger(__name__)


def expand_interaction(row: ChatInteraction) -> List[DisplayMessage]:
    """One stored turn becomes a user message followed by its bot reply."""
    timestamp = ensure_utc(row.created_at)
    return [
        DisplayMessage(
            id=f"{row.id}-user",
            text=row.user_query,
            role="user",
            timestamp=timestamp,
        ),
        DisplayMessage(
            id=f"{row.id}-bot",
            text=row.bot_response or "",
            role="bot",
            timestamp=timestamp,
            context_used=row.pdf_context_used,
            is_error=row.is_error,
        ),
    ]


class HistoryService:
    """Service for reading back a caller's chat turns."""

    def __init__(self, repository: Optional[ChatInteractionRepository] = None):
        self.repository = repository or ChatInteractionRepository()

    def get_history(self, db: Session, user_id: Optional[str]) -> List[DisplayMessage]:
        if not user_id:
            raise UnauthorizedError("Unauthorized: You must be logged in to view chat history.")

        try:
            rows = self.repository.list_for_user(db, user_id)
        except Exception as e:
            handle_processing_error("chat_history", e, {"user_id": user_id})
            raise InternalError("Failed to fetch chat history.")

        history: List[DisplayMessage] = []
        for row in rows:
            history.extend(expand_interaction(row))

        log_processing_info("Chat history loaded", {
            "user_id": user_id,
            "interactions": len(rows)
        })
        return history
