"""
Two-party messaging service.

Conversations are keyed by the unordered pair of participants and are
created lazily by the first message between them.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailedError
from app.db.database import dialect_insert
from app.db.models import ConversationModel, MessageModel, UserModel
from app.db.models.base import utcnow
from app.models.schemas import ConversationSummaryResponse, MessageResponse, PublicUser

logger = logging.getLogger(__name__)


def normalize_pair(user_a: int, user_b: int) -> Tuple[int, int]:
    """Order a pair of user ids the way conversations store them."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def between(user_a: int, user_b: int):
    """Filter for messages exchanged by two users in either direction."""
    return or_(
        and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
        and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
    )


class MessagingService:
    """Service for conversations, messages and read state."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_conversation(self, user_a: int, user_b: int) -> Optional[ConversationModel]:
        """Conversation between two users, in either argument order."""
        low, high = normalize_pair(user_a, user_b)
        result = await self.session.execute(
            select(ConversationModel).where(
                ConversationModel.user1_id == low,
                ConversationModel.user2_id == high,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_conversation(self, user_a: int, user_b: int) -> ConversationModel:
        """
        Find-or-create the conversation for a pair as one statement.

        The insert is ``ON CONFLICT DO NOTHING`` on the normalized pair, so
        concurrent first messages converge on a single row.
        """
        if user_a == user_b:
            raise ValidationFailedError(
                f"User {user_a} tried to open a conversation with themself",
                "You cannot send a message to yourself",
            )

        low, high = normalize_pair(user_a, user_b)
        stmt = (
            dialect_insert(self.session, ConversationModel)
            .values(user1_id=low, user2_id=high, last_message_time=utcnow())
            .on_conflict_do_nothing(index_elements=["user1_id", "user2_id"])
        )
        await self.session.execute(stmt)
        return await self.find_conversation(low, high)

    async def send_message(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
    ) -> Tuple[MessageModel, ConversationModel]:
        """
        Send a message, creating the conversation first if needed.

        Raises:
            ValidationFailedError: Sender and receiver are the same user
            NotFoundError: Receiver does not exist
        """
        if sender_id == receiver_id:
            raise ValidationFailedError(
                f"User {sender_id} tried to message themself",
                "You cannot send a message to yourself",
            )
        receiver = await self.session.get(UserModel, receiver_id)
        if receiver is None:
            raise NotFoundError(f"Receiver {receiver_id} does not exist", "Receiver not found")

        conversation = await self.get_or_create_conversation(sender_id, receiver_id)

        message = MessageModel(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=utcnow(),
            is_read=False,
        )
        self.session.add(message)
        conversation.last_message_time = message.created_at
        await self.session.flush()

        logger.info(
            "User id=%s messaged user id=%s (conversation id=%s)",
            sender_id,
            receiver_id,
            conversation.id,
        )
        return message, conversation

    async def get_conversation(self, conversation_id: int, user_id: int) -> ConversationModel:
        """
        Get a conversation the caller takes part in.

        Raises:
            NotFoundError: No such conversation
            PermissionDeniedError: Caller is not a participant
        """
        conversation = await self.session.get(ConversationModel, conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} does not exist", "Conversation not found")
        if not conversation.has_participant(user_id):
            logger.warning("User id=%s tried to read conversation id=%s", user_id, conversation_id)
            raise PermissionDeniedError(
                f"User {user_id} is not in conversation {conversation_id}",
                "Not authorized to view these messages",
            )
        return conversation

    async def get_messages(self, conversation_id: int, user_id: int) -> List[MessageModel]:
        """
        Messages of a conversation, oldest first.

        Every message addressed to ``user_id`` is marked read before the
        thread is returned; messages addressed to the other participant are
        left untouched.
        """
        conversation = await self.get_conversation(conversation_id, user_id)
        other_id = conversation.other_participant(user_id)

        await self.session.execute(
            update(MessageModel)
            .where(
                MessageModel.sender_id == other_id,
                MessageModel.receiver_id == user_id,
                MessageModel.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(
            select(MessageModel)
            .where(between(conversation.user1_id, conversation.user2_id))
            .order_by(MessageModel.created_at, MessageModel.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def latest_message(self, conversation: ConversationModel) -> Optional[MessageModel]:
        result = await self.session.execute(
            select(MessageModel)
            .where(between(conversation.user1_id, conversation.user2_id))
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def unread_count(self, user_id: int, conversation: Optional[ConversationModel] = None) -> int:
        """Unread messages addressed to ``user_id``, optionally within one conversation."""
        stmt = select(func.count(MessageModel.id)).where(
            MessageModel.receiver_id == user_id,
            MessageModel.is_read.is_(False),
        )
        if conversation is not None:
            stmt = stmt.where(MessageModel.sender_id == conversation.other_participant(user_id))
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_conversations(self, user_id: int) -> List[ConversationSummaryResponse]:
        """The caller's conversations, most recently active first, with summary fields."""
        result = await self.session.execute(
            select(ConversationModel)
            .where(
                or_(
                    ConversationModel.user1_id == user_id,
                    ConversationModel.user2_id == user_id,
                )
            )
            .order_by(ConversationModel.last_message_time.desc(), ConversationModel.id.desc())
        )

        summaries = []
        for conversation in result.scalars().all():
            other = await self.session.get(UserModel, conversation.other_participant(user_id))
            latest = await self.latest_message(conversation)
            summary = ConversationSummaryResponse.model_validate(conversation)
            summary.other_user = PublicUser.model_validate(other) if other else None
            summary.latest_message = MessageResponse.model_validate(latest) if latest else None
            summary.unread_count = await self.unread_count(user_id, conversation)
            summaries.append(summary)
        return summaries
