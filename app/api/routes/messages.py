"""
Messaging endpoints.
"""

from typing import List

from fastapi import APIRouter, status

from app.api.deps import CurrentUserDep, SessionDep
from app.models.schemas import (
    ConversationSummaryResponse,
    MessageResponse,
    SendMessageRequest,
    SentMessageResponse,
)
from app.services.messaging_service import MessagingService

router = APIRouter()


@router.get("/conversations", response_model=List[ConversationSummaryResponse])
async def list_conversations(current_user: CurrentUserDep, session: SessionDep):
    """
    The caller's conversations, most recent first.

    Each entry carries the other participant, the latest message and the
    number of unread messages addressed to the caller.
    """
    return await MessagingService(session).list_conversations(current_user.id)


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_conversation_messages(
    conversation_id: int,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """
    Messages of a conversation, oldest first.

    Marks every message addressed to the caller as read.
    """
    return await MessagingService(session).get_messages(conversation_id, current_user.id)


@router.post("/messages", response_model=SentMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(request: SendMessageRequest, current_user: CurrentUserDep, session: SessionDep):
    """Send a message, opening a conversation with the receiver if needed."""
    message, conversation = await MessagingService(session).send_message(
        current_user.id, request.receiver_id, request.content
    )
    return SentMessageResponse(
        **MessageResponse.model_validate(message).model_dump(),
        conversation_id=conversation.id,
    )
