"""Submission gate for group projects.

Only the leader submits, and only once the group has reached the minimum
size. A submission is recorded for every current member and freezes the
group's membership.
"""

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.logging import get_logger
from studylink.domain.entities import GroupStatus, LaborDivisionEntry
from studylink.domain.exceptions import (
    AssignmentMismatchError,
    GroupValidationError,
    NotLeaderError,
    SizeBelowMinimumError,
    StaleGroupError,
)
from studylink.domain.services.group_registry import GroupRegistry
from studylink.infrastructure.persistence.models import SubmissionModel
from studylink.infrastructure.persistence.repositories import SubmissionRepository
from studylink.infrastructure.persistence.unit_of_work import run_atomic

logger = get_logger(__name__)


class SubmissionGate:
    """Service gating group submissions."""

    def __init__(self, session: AsyncSession, registry: GroupRegistry | None = None) -> None:
        """Initialize the gate.

        Args:
            session: SQLAlchemy async session.
            registry: Group registry sharing the same session.
        """
        self.session = session
        self.registry = registry or GroupRegistry(session)
        self.submission_repo = SubmissionRepository(session)

    async def submit(
        self,
        group_id: str,
        leader_id: str,
        assignment_id: str,
        files: Sequence[str],
        labor_division: Sequence[LaborDivisionEntry] | None = None,
    ) -> list[SubmissionModel]:
        """Submit the group's work on behalf of every member.

        Resubmitting replaces the stored files and labor division in place.

        Args:
            group_id: Submitting group.
            leader_id: Caller, who must lead the group.
            assignment_id: Assignment the caller believes the group belongs to.
            files: Stored file references (at least one).
            labor_division: Who did what. Percentages are not required to sum
                to 100.

        Returns:
            One submission per current member, in join order.

        Raises:
            GroupValidationError: If no file is given.
            GroupNotFoundError: If the group does not exist.
            NotLeaderError: If the caller is not the leader.
            AssignmentMismatchError: If the group belongs to another assignment.
            SizeBelowMinimumError: If the group has fewer than ``min_size`` members.
        """
        if not files:
            raise GroupValidationError("At least one file is required")
        entries = [entry.to_dict() for entry in labor_division or []]

        async def operation() -> list[SubmissionModel]:
            group = await self.registry.load_group(group_id, for_update=True)
            if group.leader_id != leader_id:
                raise NotLeaderError("Only the group leader can submit")
            if group.assignment_id != assignment_id:
                raise AssignmentMismatchError()
            assignment = await self.registry.load_assignment(assignment_id)
            if group.member_count < assignment.config.min_size:
                raise SizeBelowMinimumError(group.member_count, assignment.config.min_size)

            submissions = [
                await self.submission_repo.upsert(
                    member.student_id, assignment_id, group_id, list(files), entries
                )
                for member in group.members
            ]
            updated = await self.registry.group_repo.bump_version(
                group_id,
                group.version,
                statuses=tuple(status.value for status in GroupStatus),
                status=GroupStatus.SUBMITTED.value,
            )
            if not updated:
                raise StaleGroupError(group_id)
            return submissions

        submissions = await run_atomic(self.session, operation, name="submit_group")
        logger.info(
            "Group submitted",
            group_id=group_id,
            assignment_id=assignment_id,
            submissions=len(submissions),
        )
        return submissions
