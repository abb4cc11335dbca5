"""Repository for group database operations."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studylink.infrastructure.persistence.models import (
    GroupMemberModel,
    GroupMessageModel,
    GroupModel,
)


class GroupRepository:
    """Repository for group database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, group: GroupModel) -> GroupModel:
        """Create a new group.

        Args:
            group: Group model to create.

        Returns:
            Created group model.
        """
        self.session.add(group)
        await self.session.flush()
        return group

    async def get_by_id(self, group_id: str, for_update: bool = False) -> GroupModel | None:
        """Get a group by ID with its members freshly loaded.

        Args:
            group_id: Group ID.
            for_update: Lock the group row until the transaction ends.

        Returns:
            Group model if found, None otherwise.
        """
        query = (
            select(GroupModel)
            .where(GroupModel.id == group_id)
            .options(selectinload(GroupModel.members))
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update(of=GroupModel)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_invite_code(self, invite_code: str) -> GroupModel | None:
        """Get a group by its invite code.

        Args:
            invite_code: Normalized invite code.

        Returns:
            Group model if found, None otherwise.
        """
        result = await self.session.execute(
            select(GroupModel.id).where(GroupModel.invite_code == invite_code)
        )
        group_id = result.scalar_one_or_none()
        if group_id is None:
            return None
        return await self.get_by_id(group_id)

    async def invite_code_exists(self, invite_code: str) -> bool:
        """Check whether an invite code is already taken."""
        result = await self.session.execute(
            select(GroupModel.id).where(GroupModel.invite_code == invite_code)
        )
        return result.scalar_one_or_none() is not None

    async def list_by_assignment(self, assignment_id: str) -> list[GroupModel]:
        """List the groups of an assignment in creation order.

        Args:
            assignment_id: Assignment ID.

        Returns:
            List of group models with members loaded.
        """
        result = await self.session.execute(
            select(GroupModel)
            .where(GroupModel.assignment_id == assignment_id)
            .options(selectinload(GroupModel.members))
            .order_by(GroupModel.created_at, GroupModel.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def bump_version(
        self,
        group_id: str,
        expected_version: int,
        statuses: tuple[str, ...] = ("FORMING",),
        **values: object,
    ) -> bool:
        """Compare-and-swap the group's version, optionally updating columns.

        The update only applies while the stored version still equals
        ``expected_version`` and the status is one of ``statuses``.

        Args:
            group_id: Group ID.
            expected_version: Version read at the start of the unit of work.
            statuses: Statuses the group must be in.
            **values: Extra columns to set (e.g. ``leader_id``, ``status``).

        Returns:
            True if the row was updated, False if another writer got there first.
        """
        result = await self.session.execute(
            update(GroupModel)
            .where(
                (GroupModel.id == group_id)
                & (GroupModel.version == expected_version)
                & (GroupModel.status.in_(statuses))
            )
            .values(
                version=GroupModel.version + 1,
                updated_at=datetime.now(timezone.utc),
                **values,
            )
        )
        return result.rowcount == 1

    async def delete(self, group_id: str) -> None:
        """Delete a group together with its memberships and messages.

        Args:
            group_id: Group ID.
        """
        await self.session.execute(
            delete(GroupMessageModel).where(GroupMessageModel.group_id == group_id)
        )
        await self.session.execute(
            delete(GroupMemberModel).where(GroupMemberModel.group_id == group_id)
        )
        await self.session.execute(delete(GroupModel).where(GroupModel.id == group_id))
        await self.session.flush()
