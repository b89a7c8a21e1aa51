"""
Conversation and message models for two-party messaging.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base
from app.db.models.base import utcnow


class ConversationModel(Base):
    """Symmetric pairing of two users.

    The pair is stored normalized so that ``user1_id < user2_id``; the unique
    constraint then guarantees one conversation per unordered pair.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_conversations_pair"),
        CheckConstraint("user1_id < user2_id", name="ck_conversations_pair_order"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user1_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user2_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    last_message_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_participant(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id


class MessageModel(Base):
    """Directed message between two users."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_pair_created_at", "sender_id", "receiver_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
