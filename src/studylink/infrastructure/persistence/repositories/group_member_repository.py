"""Repository for group membership rows."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.infrastructure.persistence.models import GroupMemberModel


class GroupMemberRepository:
    """Repository for group membership rows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def add(
        self, group_id: str, assignment_id: str, student_id: str, role: str = "MEMBER"
    ) -> GroupMemberModel:
        """Add a student to a group.

        The unique ``(assignment_id, student_id)`` constraint is checked at
        flush time, so a concurrent insert for the same student surfaces here
        as an ``IntegrityError``.

        Args:
            group_id: Group ID.
            assignment_id: Assignment of the group.
            student_id: Student ID.
            role: LEADER or MEMBER.

        Returns:
            The created membership.
        """
        member = GroupMemberModel(
            group_id=group_id,
            assignment_id=assignment_id,
            student_id=student_id,
            role=role,
        )
        self.session.add(member)
        await self.session.flush()
        return member

    async def get(self, group_id: str, student_id: str) -> GroupMemberModel | None:
        """Get a membership by group and student."""
        result = await self.session.execute(
            select(GroupMemberModel).where(
                (GroupMemberModel.group_id == group_id)
                & (GroupMemberModel.student_id == student_id)
            )
        )
        return result.scalar_one_or_none()

    async def find_by_assignment_and_student(
        self, assignment_id: str, student_id: str
    ) -> GroupMemberModel | None:
        """Find the membership a student holds for an assignment, if any."""
        result = await self.session.execute(
            select(GroupMemberModel).where(
                (GroupMemberModel.assignment_id == assignment_id)
                & (GroupMemberModel.student_id == student_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_assigned_student_ids(self, assignment_id: str) -> set[str]:
        """Get every student holding a membership for an assignment."""
        result = await self.session.execute(
            select(GroupMemberModel.student_id).where(
                GroupMemberModel.assignment_id == assignment_id
            )
        )
        return set(result.scalars().all())

    async def set_role(self, member: GroupMemberModel, role: str) -> GroupMemberModel:
        """Change a member's role."""
        member.role = role
        await self.session.flush()
        return member

    async def remove(self, member: GroupMemberModel) -> None:
        """Delete a membership."""
        await self.session.delete(member)
        await self.session.flush()
