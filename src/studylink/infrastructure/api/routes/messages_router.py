"""Router for the group message log."""

from fastapi import APIRouter, Query, status

from studylink.infrastructure.api.dependencies import AuthenticatedUser, Channel
from studylink.infrastructure.api.schemas import (
    GroupMessageResponse,
    MessageCreate,
    MessageListResponse,
)

router = APIRouter(tags=["Messages"])


@router.post(
    "/{group_id}/messages",
    response_model=GroupMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a message",
)
async def post_message(
    group_id: str,
    message_data: MessageCreate,
    current_user: AuthenticatedUser,
    channel: Channel,
):
    """Post a text message to the group (members and the owning teacher)."""
    return await channel.post(group_id, current_user.user_id, message_data.content)


@router.get(
    "/{group_id}/messages",
    response_model=MessageListResponse,
    summary="List messages",
)
async def list_messages(
    group_id: str,
    current_user: AuthenticatedUser,
    channel: Channel,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int | None = Query(None, ge=1, description="Page size, capped at the configured maximum"),
    after_id: int | None = Query(None, ge=0, description="Only messages with a larger ID"),
) -> MessageListResponse:
    """List the group's messages oldest first. Poll with ``after_id``."""
    result = await channel.list(group_id, current_user.user_id, page, limit, after_id)
    return MessageListResponse(
        messages=[GroupMessageResponse.model_validate(m) for m in result.messages],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )
