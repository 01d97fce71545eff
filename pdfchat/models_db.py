from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, Integer, ForeignKey, Text, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

from .db import Base
from .utils import utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)  # Clerk user id
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    interactions: Mapped[list["ChatInteraction"]] = relationship(
        "ChatInteraction", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class ChatInteraction(Base):
    """One chat turn: the user's query and the bot's reply. Rows are insert-only."""

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_query: Mapped[str] = mapped_column(Text, nullable=False)
    bot_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_context_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_error: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped[User] = relationship("User", back_populates="interactions")

    __table_args__ = (Index("ix_chat_messages_user_created", "user_id", "created_at"),)
