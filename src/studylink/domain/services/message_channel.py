"""Message channel service.

Each group carries an append-only discussion log. Clients poll it, either
by page or with an ``after_id`` cursor.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.config import get_settings
from studylink.core.logging import get_logger
from studylink.domain.entities import MessageType
from studylink.domain.exceptions import (
    GroupNotFoundError,
    GroupValidationError,
    MessageAccessDeniedError,
    NotAMemberError,
)
from studylink.infrastructure.persistence.models import GroupMessageModel
from studylink.infrastructure.persistence.repositories import (
    AssignmentRepository,
    GroupMemberRepository,
    GroupMessageRepository,
    GroupRepository,
)
from studylink.infrastructure.persistence.unit_of_work import run_atomic

logger = get_logger(__name__)

MESSAGE_MAX_LENGTH = 2000


@dataclass
class MessagePage:
    """One page of a group's message log."""

    messages: list[GroupMessageModel]
    total: int
    page: int
    limit: int


class MessageChannel:
    """Service for reading and writing a group's message log."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the channel.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session
        self.message_repo = GroupMessageRepository(session)
        self.group_repo = GroupRepository(session)
        self.member_repo = GroupMemberRepository(session)
        self.assignment_repo = AssignmentRepository(session)

    async def _can_access(self, group_id: str, user_id: str) -> bool:
        """Check whether the user is a member or the owning teacher."""
        group = await self.group_repo.get_by_id(group_id)
        if group is None:
            raise GroupNotFoundError()
        if await self.member_repo.get(group_id, user_id) is not None:
            return True
        assignment = await self.assignment_repo.get_context(group.assignment_id)
        return assignment is not None and assignment.teacher_id == user_id

    async def post(self, group_id: str, sender_id: str, content: str) -> GroupMessageModel:
        """Post a text message.

        Args:
            group_id: Group ID.
            sender_id: Member or owning teacher posting.
            content: Message text, 1 to 2000 characters after trimming.

        Returns:
            The stored message.

        Raises:
            GroupValidationError: If the content is blank or too long.
            GroupNotFoundError: If the group does not exist.
            NotAMemberError: If the sender may not write to the group.
        """
        content = (content or "").strip()
        if not content:
            raise GroupValidationError("Message content is required")
        if len(content) > MESSAGE_MAX_LENGTH:
            raise GroupValidationError(
                f"Message content must be at most {MESSAGE_MAX_LENGTH} characters"
            )

        async def operation() -> GroupMessageModel:
            if not await self._can_access(group_id, sender_id):
                raise NotAMemberError("Only group members can post messages")
            message = await self.message_repo.append(
                group_id, sender_id, content, MessageType.TEXT.value
            )
            await self.session.refresh(message, ["sender"])
            return message

        message = await run_atomic(self.session, operation, name="post_message")
        logger.debug("Message posted", group_id=group_id, message_id=message.id)
        return message

    async def post_system(self, group_id: str, actor_id: str, content: str) -> GroupMessageModel:
        """Append a SYSTEM message for a lifecycle transition.

        Runs inside the caller's unit of work and performs no access checks.
        """
        return await self.message_repo.append(
            group_id, actor_id, content[:MESSAGE_MAX_LENGTH], MessageType.SYSTEM.value
        )

    async def list(
        self,
        group_id: str,
        caller_id: str,
        page: int = 1,
        limit: int | None = None,
        after_id: int | None = None,
    ) -> MessagePage:
        """List a group's messages oldest first.

        Args:
            group_id: Group ID.
            caller_id: Member or owning teacher reading.
            page: Page number (1-indexed).
            limit: Page size, defaults to ``message_page_size`` and is capped
                at ``message_page_size_max``.
            after_id: Only return messages with a larger ID.

        Returns:
            The requested page and the total matching the cursor.

        Raises:
            GroupNotFoundError: If the group does not exist.
            MessageAccessDeniedError: If the caller may not read the group.
        """
        settings = get_settings()
        if not await self._can_access(group_id, caller_id):
            raise MessageAccessDeniedError()

        page = max(1, page)
        limit = min(max(1, limit or settings.message_page_size), settings.message_page_size_max)
        messages = await self.message_repo.list_by_group(
            group_id, skip=(page - 1) * limit, limit=limit, after_id=after_id
        )
        total = await self.message_repo.count_by_group(group_id, after_id=after_id)
        return MessagePage(messages=messages, total=total, page=page, limit=limit)
