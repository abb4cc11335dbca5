"""Group registry service.

Owns group records for an assignment: creation, the one-group-per-student
rule, capacity checks, the unassigned-student computation and lookups.
"""

import uuid
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.config import get_settings
from studylink.core.logging import get_logger
from studylink.domain.entities import (
    AssignmentConfig,
    AssignmentContext,
    GroupCapacity,
    GroupStatus,
    MemberRole,
)
from studylink.domain.exceptions import (
    AlreadyGroupedError,
    AssignmentNotFoundError,
    AssignmentNotGroupTypeError,
    GroupDeadlinePassedError,
    GroupLockedError,
    GroupNotFoundError,
    GroupValidationError,
    InviteCodeExhaustedError,
    NotInClassError,
    NotOwnerError,
)
from studylink.domain.services.invite_code_generator import (
    InviteCodeGenerator,
    default_invite_code_generator,
)
from studylink.domain.services.message_channel import MessageChannel
from studylink.infrastructure.persistence.models import GroupModel, UserModel
from studylink.infrastructure.persistence.repositories import (
    AssignmentRepository,
    GroupMemberRepository,
    GroupRepository,
    RosterRepository,
)
from studylink.infrastructure.persistence.unit_of_work import run_atomic

logger = get_logger(__name__)

GROUP_NAME_MAX_LENGTH = 50


@dataclass
class GroupListing:
    """All groups of an assignment plus the students still without one."""

    assignment: AssignmentContext
    groups: list[GroupModel]
    unassigned_students: list[UserModel]


@dataclass
class MyGroupView:
    """A student's view of their group situation for one assignment."""

    assignment: AssignmentContext
    group: GroupModel | None
    total_students: int
    assigned_count: int
    capacity: GroupCapacity | None = field(default=None)


class GroupRegistry:
    """Service for group records of an assignment."""

    def __init__(
        self,
        session: AsyncSession,
        code_generator: InviteCodeGenerator | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            session: SQLAlchemy async session.
            code_generator: Invite code generator, defaults to the shared one.
        """
        self.session = session
        self.code_generator = code_generator or default_invite_code_generator
        self.assignment_repo = AssignmentRepository(session)
        self.roster_repo = RosterRepository(session)
        self.group_repo = GroupRepository(session)
        self.member_repo = GroupMemberRepository(session)
        self.channel = MessageChannel(session)

    # Lookups shared by the lifecycle services

    async def load_assignment(self, assignment_id: str) -> AssignmentContext:
        """Load an assignment or raise ``AssignmentNotFoundError``."""
        assignment = await self.assignment_repo.get_context(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError()
        return assignment

    async def load_group_project(self, assignment_id: str) -> AssignmentContext:
        """Load an assignment that must be a group project."""
        assignment = await self.load_assignment(assignment_id)
        if not assignment.is_group_project:
            raise AssignmentNotGroupTypeError()
        return assignment

    async def load_group(self, group_id: str, for_update: bool = False) -> GroupModel:
        """Load a group with its members or raise ``GroupNotFoundError``.

        Args:
            group_id: Group ID.
            for_update: Lock the group row for the rest of the transaction.
        """
        group = await self.group_repo.get_by_id(group_id, for_update=for_update)
        if group is None:
            raise GroupNotFoundError()
        return group

    async def ensure_enrolled(self, student_id: str, assignment: AssignmentContext) -> None:
        """Raise ``NotInClassError`` unless the student is on the class roster."""
        if not await self.roster_repo.is_enrolled(student_id, assignment.class_id):
            raise NotInClassError()

    @staticmethod
    def ensure_owner(teacher_id: str, assignment: AssignmentContext) -> None:
        """Raise ``NotOwnerError`` unless the teacher owns the assignment's class."""
        if assignment.teacher_id != teacher_id:
            raise NotOwnerError()

    @staticmethod
    def ensure_forming(group: GroupModel) -> None:
        """Raise ``GroupLockedError`` unless membership may still change."""
        if group.status != GroupStatus.FORMING.value:
            raise GroupLockedError()

    async def ensure_ungrouped(self, assignment_id: str, student_id: str) -> None:
        """Raise ``AlreadyGroupedError`` if the student already holds a membership."""
        existing = await self.member_repo.find_by_assignment_and_student(
            assignment_id, student_id
        )
        if existing is not None:
            raise AlreadyGroupedError()

    @staticmethod
    def capacity_of(group: GroupModel, config: AssignmentConfig) -> GroupCapacity:
        """Get a group's current member count against the configured maximum."""
        return GroupCapacity(count=group.member_count, max_size=config.max_size)

    # Invite codes

    async def issue_unique_invite_code(self) -> str:
        """Issue an invite code not used by any stored group.

        Returns:
            An unused invite code.

        Raises:
            InviteCodeExhaustedError: If every attempt drew a taken code.
        """
        max_attempts = get_settings().invite_code_max_attempts
        for _ in range(max_attempts):
            code = self.code_generator.issue()
            if not await self.group_repo.invite_code_exists(code):
                return code
            logger.debug("Invite code already taken, drawing again", invite_code=code)
        raise InviteCodeExhaustedError()

    # Creation

    async def insert_group(self, assignment_id: str, name: str, leader_id: str) -> GroupModel:
        """Insert a group with ``leader_id`` as its sole LEADER.

        Must run inside a unit of work. No rule checks are made here.
        """
        group = GroupModel(
            id=str(uuid.uuid4()),
            assignment_id=assignment_id,
            name=name,
            invite_code=await self.issue_unique_invite_code(),
            leader_id=leader_id,
            status=GroupStatus.FORMING.value,
            version=0,
        )
        await self.group_repo.create(group)
        await self.member_repo.add(
            group.id, assignment_id, leader_id, role=MemberRole.LEADER.value
        )
        return group

    async def create_group(self, assignment_id: str, creator_id: str, name: str) -> GroupModel:
        """Create a group with the creator as its leader.

        Args:
            assignment_id: Group project the group belongs to.
            creator_id: Student creating the group.
            name: Group name (1 to 50 characters after trimming).

        Returns:
            The created group with its single member.

        Raises:
            GroupValidationError: If the name is blank or too long.
            AssignmentNotFoundError: If the assignment does not exist.
            AssignmentNotGroupTypeError: If the assignment is not a group project.
            NotInClassError: If the creator is not enrolled in the class.
            GroupDeadlinePassedError: If the group deadline has elapsed.
            AlreadyGroupedError: If the creator already belongs to a group.
        """
        name = (name or "").strip()
        if not name:
            raise GroupValidationError("Group name is required")
        if len(name) > GROUP_NAME_MAX_LENGTH:
            raise GroupValidationError(
                f"Group name must be at most {GROUP_NAME_MAX_LENGTH} characters"
            )

        async def operation() -> GroupModel:
            assignment = await self.load_group_project(assignment_id)
            await self.ensure_enrolled(creator_id, assignment)
            if assignment.config.deadline_passed():
                raise GroupDeadlinePassedError()
            await self.ensure_ungrouped(assignment_id, creator_id)

            group = await self.insert_group(assignment_id, name, creator_id)
            creator_name = await self.roster_repo.get_display_name(creator_id)
            await self.channel.post_system(
                group.id, creator_id, f'{creator_name} created the group "{name}"'
            )
            return await self.load_group(group.id)

        group = await run_atomic(self.session, operation, name="create_group")
        logger.info(
            "Group created",
            group_id=group.id,
            assignment_id=assignment_id,
            leader_id=creator_id,
        )
        return group

    # Queries

    async def get_unassigned(self, assignment_id: str) -> list[str]:
        """Get the enrolled students without a group, in roster order.

        Args:
            assignment_id: Assignment ID.

        Returns:
            Student IDs in enrollment order.
        """
        assignment = await self.load_assignment(assignment_id)
        roster = await self.roster_repo.list_student_ids(assignment.class_id)
        assigned = await self.member_repo.list_assigned_student_ids(assignment_id)
        return [student_id for student_id in roster if student_id not in assigned]

    async def get_group(
        self,
        group_id: str,
        caller_id: str | None = None,
        caller_is_teacher: bool = False,
    ) -> GroupModel:
        """Get a group with its members.

        When ``caller_id`` is given, the group is only visible to the teacher
        owning the class and to enrolled students, as in ``list_groups``.

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotOwnerError: If a teacher caller does not own the class.
            NotInClassError: If a student caller is not enrolled.
        """
        group = await self.load_group(group_id)
        if caller_id is not None:
            assignment = await self.load_assignment(group.assignment_id)
            if caller_is_teacher:
                self.ensure_owner(caller_id, assignment)
            else:
                await self.ensure_enrolled(caller_id, assignment)
        return group

    async def list_groups(
        self, assignment_id: str, caller_id: str, caller_is_teacher: bool
    ) -> GroupListing:
        """List an assignment's groups and its unassigned students.

        Visible to the teacher owning the class and to enrolled students.

        Args:
            assignment_id: Assignment ID.
            caller_id: User asking.
            caller_is_teacher: Whether the caller acts as a teacher.

        Returns:
            The listing, groups in creation order with members in join order.
        """
        assignment = await self.load_group_project(assignment_id)
        if caller_is_teacher:
            self.ensure_owner(caller_id, assignment)
        else:
            await self.ensure_enrolled(caller_id, assignment)

        groups = await self.group_repo.list_by_assignment(assignment_id)
        unassigned_ids = await self.get_unassigned(assignment_id)
        unassigned = await self.roster_repo.get_users(unassigned_ids)
        return GroupListing(
            assignment=assignment, groups=groups, unassigned_students=unassigned
        )

    async def get_my_group(self, assignment_id: str, student_id: str) -> MyGroupView:
        """Get the student's group (if any) and formation statistics."""
        assignment = await self.load_group_project(assignment_id)
        membership = await self.member_repo.find_by_assignment_and_student(
            assignment_id, student_id
        )
        group = await self.load_group(membership.group_id) if membership else None
        assigned = await self.member_repo.list_assigned_student_ids(assignment_id)
        return MyGroupView(
            assignment=assignment,
            group=group,
            total_students=await self.roster_repo.count_students(assignment.class_id),
            assigned_count=len(assigned),
            capacity=self.capacity_of(group, assignment.config) if group else None,
        )
