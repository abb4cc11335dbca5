"""Repository for submissions written on behalf of a group."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.infrastructure.persistence.models import SubmissionModel


class SubmissionRepository:
    """Repository for submission rows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def get(self, student_id: str, assignment_id: str) -> SubmissionModel | None:
        """Get a student's submission for an assignment."""
        result = await self.session.execute(
            select(SubmissionModel).where(
                (SubmissionModel.student_id == student_id)
                & (SubmissionModel.assignment_id == assignment_id)
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        student_id: str,
        assignment_id: str,
        group_id: str,
        files: list[str],
        labor_division: list[dict[str, Any]] | None,
    ) -> SubmissionModel:
        """Create or replace a student's submission for an assignment.

        Args:
            student_id: Student ID.
            assignment_id: Assignment ID.
            group_id: Group submitting on the student's behalf.
            files: Stored file references.
            labor_division: Labor division entries, already serialized to dicts.

        Returns:
            The created or updated submission.
        """
        submission = await self.get(student_id, assignment_id)
        if submission is None:
            submission = SubmissionModel(
                id=str(uuid.uuid4()),
                student_id=student_id,
                assignment_id=assignment_id,
            )
            self.session.add(submission)

        submission.group_id = group_id
        submission.files = json.dumps(files)
        submission.labor_division = (
            json.dumps(labor_division) if labor_division is not None else None
        )
        submission.submitted_at = datetime.now(timezone.utc)
        await self.session.flush()
        return submission

    async def list_by_group(self, group_id: str) -> list[SubmissionModel]:
        """List the submissions tagged with a group."""
        result = await self.session.execute(
            select(SubmissionModel)
            .where(SubmissionModel.group_id == group_id)
            .order_by(SubmissionModel.student_id)
        )
        return list(result.scalars().all())
