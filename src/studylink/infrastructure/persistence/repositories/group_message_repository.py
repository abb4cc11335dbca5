"""Repository for the append-only group message log."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.infrastructure.persistence.models import GroupMessageModel


class GroupMessageRepository:
    """Repository for group messages.

    Messages are only ever appended; there is no update or per-message delete.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def append(
        self, group_id: str, sender_id: str, content: str, message_type: str = "TEXT"
    ) -> GroupMessageModel:
        """Append a message to a group's log.

        Args:
            group_id: Group ID.
            sender_id: Author of the message.
            content: Message text.
            message_type: TEXT or SYSTEM.

        Returns:
            The stored message with its cursor ID assigned.
        """
        message = GroupMessageModel(
            group_id=group_id,
            sender_id=sender_id,
            content=content,
            type=message_type,
        )
        self.session.add(message)
        await self.session.flush()
        return message

    def _filtered(self, query, group_id: str, after_id: int | None):
        query = query.where(GroupMessageModel.group_id == group_id)
        if after_id is not None:
            query = query.where(GroupMessageModel.id > after_id)
        return query

    async def list_by_group(
        self,
        group_id: str,
        skip: int = 0,
        limit: int = 50,
        after_id: int | None = None,
    ) -> list[GroupMessageModel]:
        """List a group's messages oldest first.

        Args:
            group_id: Group ID.
            skip: Number of messages to skip.
            limit: Maximum number of messages to return.
            after_id: Only return messages with a larger ID.

        Returns:
            List of messages ordered by creation time, then ID.
        """
        result = await self.session.execute(
            self._filtered(select(GroupMessageModel), group_id, after_id)
            .order_by(GroupMessageModel.created_at, GroupMessageModel.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_group(self, group_id: str, after_id: int | None = None) -> int:
        """Count a group's messages, optionally only those after a cursor."""
        result = await self.session.execute(
            self._filtered(
                select(func.count()).select_from(GroupMessageModel), group_id, after_id
            )
        )
        return result.scalar_one()
