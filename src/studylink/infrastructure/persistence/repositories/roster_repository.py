"""Repository for reading class rosters and user display names."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.infrastructure.persistence.models import ClassStudentModel, UserModel


class RosterRepository:
    """Read-only repository over class enrollments and users."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def is_enrolled(self, student_id: str, class_id: str) -> bool:
        """Check whether a student is enrolled in a class."""
        result = await self.session.execute(
            select(ClassStudentModel.student_id).where(
                (ClassStudentModel.class_id == class_id)
                & (ClassStudentModel.student_id == student_id)
            )
        )
        return result.scalar_one_or_none() is not None

    async def list_student_ids(self, class_id: str) -> list[str]:
        """List enrolled students in roster (enrollment) order."""
        result = await self.session.execute(
            select(ClassStudentModel.student_id)
            .where(ClassStudentModel.class_id == class_id)
            .order_by(ClassStudentModel.created_at, ClassStudentModel.student_id)
        )
        return list(result.scalars().all())

    async def count_students(self, class_id: str) -> int:
        """Count enrolled students."""
        result = await self.session.execute(
            select(func.count())
            .select_from(ClassStudentModel)
            .where(ClassStudentModel.class_id == class_id)
        )
        return result.scalar_one()

    async def get_user(self, user_id: str) -> UserModel | None:
        """Get a user by ID."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_users(self, user_ids: list[str]) -> list[UserModel]:
        """Get users by ID, preserving the order of ``user_ids``."""
        if not user_ids:
            return []
        result = await self.session.execute(
            select(UserModel).where(UserModel.id.in_(user_ids))
        )
        by_id = {user.id: user for user in result.scalars().all()}
        return [by_id[user_id] for user_id in user_ids if user_id in by_id]

    async def get_display_name(self, user_id: str) -> str:
        """Get a user's display name, falling back to the ID."""
        result = await self.session.execute(
            select(UserModel.name).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none() or user_id
