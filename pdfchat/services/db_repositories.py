import logging
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select

from ..models_db import User, ChatInteraction

logger = logging.getLogger(__name__)


class UserRepository:
    def get_or_create(self, db: Session, user_id: str, **kwargs) -> User:
        user = db.get(User, user_id)
        if user:
            return user
        user = User(id=user_id, **kwargs)
        db.add(user)
        db.flush()
        return user


class ChatInteractionRepository:
    """Append-only access to chat turns, always scoped to one owner."""

    def __init__(self):
        self.users = UserRepository()

    def add(self, db: Session, *, user_id: str, user_query: str, bot_response: Optional[str],
            pdf_context_used: bool, is_error: bool = False, email: Optional[str] = None) -> ChatInteraction:
        try:
            self.users.get_or_create(db, user_id, email=email)
            row = ChatInteraction(
                user_id=user_id,
                user_query=user_query,
                bot_response=bot_response,
                pdf_context_used=pdf_context_used,
                is_error=is_error,
            )
            db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        # The row is committed at this point; a failed reload does not undo that.
        try:
            db.refresh(row)
        except Exception as e:
            logger.warning(f"Stored chat interaction could not be reloaded: {e}")
        return row

    def list_for_user(self, db: Session, user_id: str) -> List[ChatInteraction]:
        return db.scalars(
            select(ChatInteraction)
            .where(ChatInteraction.user_id == user_id)
            .order_by(ChatInteraction.created_at.asc(), ChatInteraction.id.asc())
        ).all()
