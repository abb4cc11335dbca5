"""Auto-assignment of ungrouped students.

The planning step is a pure function over group sizes and the ordered list
of unassigned students. The service applies a plan in a single unit of work.
"""

from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.logging import get_logger
from studylink.domain.entities import GroupStatus
from studylink.domain.exceptions import (
    AssignmentNotGroupTypeError,
    GroupValidationError,
    StaleGroupError,
)
from studylink.domain.services.group_registry import GroupRegistry
from studylink.infrastructure.persistence.unit_of_work import run_atomic

logger = get_logger(__name__)

PREFERRED_SIZE_MIN = 2
PREFERRED_SIZE_MAX = 10


@dataclass
class GroupSlot:
    """A group as seen by the planner.

    Attributes:
        group_id: Stored group ID, None for a group the plan creates.
        name: Group name.
        member_count: Members before the plan is applied.
        forming: Whether the group still accepts members.
        new_members: Students the plan places here, in order.
    """

    group_id: str | None
    name: str
    member_count: int
    forming: bool = True
    new_members: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return self.member_count + len(self.new_members)

    def accepts(self, target_size: int) -> bool:
        return self.forming and self.size < target_size


def plan_auto_assignment(
    existing: Sequence[GroupSlot], unassigned: Sequence[str], target_size: int
) -> list[GroupSlot]:
    """Plan where each unassigned student goes.

    Walks the existing groups in order with a cursor. Groups that are full
    relative to ``target_size`` or no longer forming are stepped over. When
    the cursor runs past the last group a new group ``Group N`` is opened,
    ``N`` being the number of groups so far plus one; its first student
    becomes the leader.

    Args:
        existing: Existing groups in creation order.
        unassigned: Students without a group, in roster order.
        target_size: Size each group is filled up to.

    Returns:
        The groups receiving at least one student, in the order they were
        filled. New groups have ``group_id`` None.
    """
    if target_size < 1:
        raise ValueError("target_size must be at least 1")

    slots = [
        GroupSlot(
            group_id=slot.group_id,
            name=slot.name,
            member_count=slot.member_count,
            forming=slot.forming,
        )
        for slot in existing
    ]
    cursor = 0
    for student_id in unassigned:
        while cursor < len(slots) and not slots[cursor].accepts(target_size):
            cursor += 1
        if cursor == len(slots):
            slots.append(
                GroupSlot(group_id=None, name=f"Group {len(slots) + 1}", member_count=0)
            )
        slots[cursor].new_members.append(student_id)

    return [slot for slot in slots if slot.new_members]


@dataclass
class AutoAssignResult:
    """Outcome of an auto-assignment pass."""

    assigned_count: int
    target_size: int
    created_group_ids: list[str] = field(default_factory=list)
    undersized_group_ids: list[str] = field(default_factory=list)


class AutoAssignmentService:
    """Service placing every ungrouped student of an assignment into a group."""

    def __init__(self, session: AsyncSession, registry: GroupRegistry | None = None) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            registry: Group registry sharing the same session.
        """
        self.session = session
        self.registry = registry or GroupRegistry(session)

    async def auto_assign(
        self, assignment_id: str, teacher_id: str, preferred_size: int | None = None
    ) -> AutoAssignResult:
        """Place all unassigned students into groups of the target size.

        ``target = clamp(preferred_size or max_size, min_size, max_size)``.
        A trailing group may end up below ``min_size``. It is kept and
        reported in ``undersized_group_ids``.

        Args:
            assignment_id: Group project to fill.
            teacher_id: Teacher owning the class.
            preferred_size: Optional preferred group size (2 to 10).

        Returns:
            The assignment result.

        Raises:
            GroupValidationError: If ``preferred_size`` is out of range.
            AssignmentNotFoundError: If the assignment does not exist.
            NotOwnerError: If the teacher does not own the class.
            AssignmentNotGroupTypeError: If the assignment is not a group project.
        """
        if preferred_size is not None and not (
            PREFERRED_SIZE_MIN <= preferred_size <= PREFERRED_SIZE_MAX
        ):
            raise GroupValidationError(
                f"preferred_size must be between {PREFERRED_SIZE_MIN} and {PREFERRED_SIZE_MAX}"
            )

        registry = self.registry

        async def operation() -> AutoAssignResult:
            assignment = await registry.load_assignment(assignment_id)
            registry.ensure_owner(teacher_id, assignment)
            if not assignment.is_group_project:
                raise AssignmentNotGroupTypeError()
            config = assignment.config
            target_size = config.clamp_size(preferred_size)

            unassigned = await registry.get_unassigned(assignment_id)
            if not unassigned:
                return AutoAssignResult(assigned_count=0, target_size=target_size)

            groups = await registry.group_repo.list_by_assignment(assignment_id)
            by_id = {group.id: group for group in groups}
            plan = plan_auto_assignment(
                [
                    GroupSlot(
                        group_id=group.id,
                        name=group.name,
                        member_count=group.member_count,
                        forming=group.status == GroupStatus.FORMING.value,
                    )
                    for group in groups
                ],
                unassigned,
                target_size,
            )

            result = AutoAssignResult(assigned_count=len(unassigned), target_size=target_size)
            for slot in plan:
                students = slot.new_members
                if slot.group_id is None:
                    group = await registry.insert_group(assignment_id, slot.name, students[0])
                    result.created_group_ids.append(group.id)
                    await registry.channel.post_system(
                        group.id, teacher_id, f'Group "{slot.name}" was created by auto-assignment'
                    )
                    group_id = group.id
                    students = students[1:]
                else:
                    group = by_id[slot.group_id]
                    group_id = group.id
                    if not await registry.group_repo.bump_version(group.id, group.version):
                        raise StaleGroupError(group.id)

                for student_id in students:
                    await registry.member_repo.add(group_id, assignment_id, student_id)
                for student_id in slot.new_members:
                    name = await registry.roster_repo.get_display_name(student_id)
                    await registry.channel.post_system(
                        group_id, teacher_id, f"{name} joined the group by auto-assignment"
                    )

                if slot.size < config.min_size:
                    result.undersized_group_ids.append(group_id)

            return result

        result = await run_atomic(self.session, operation, name="auto_assign")
        logger.info(
            "Auto-assignment completed",
            assignment_id=assignment_id,
            assigned_count=result.assigned_count,
            target_size=result.target_size,
            created_groups=len(result.created_group_ids),
        )
        if result.undersized_group_ids:
            logger.warning(
                "Auto-assignment left groups below the minimum size",
                assignment_id=assignment_id,
                group_ids=result.undersized_group_ids,
            )
        return result
