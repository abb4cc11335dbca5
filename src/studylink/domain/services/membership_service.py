"""Membership lifecycle service.

Implements every membership transition of a group: join (by ID or invite
code), leave with leader hand-off, leader-side removal, leadership transfer,
dissolution, and the teacher-side lock and manual assignment.

Every transition runs as one unit of work. The group row is read for update
and the group's version is bumped with a compare-and-swap, so two writers
touching the same group never both succeed on a stale view.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.logging import get_logger
from studylink.domain.entities import GroupStatus, MemberRole
from studylink.domain.exceptions import (
    CapacityFullError,
    GroupDeadlinePassedError,
    GroupLockedError,
    InviteCodeNotFoundError,
    NoOpTransferError,
    NotAMemberError,
    NotLeaderError,
    SelfRemovalError,
    StaleGroupError,
    SwitchNotAllowedError,
)
from studylink.domain.services.group_registry import GroupRegistry
from studylink.domain.services.invite_code_generator import InviteCodeGenerator
from studylink.infrastructure.persistence.models import GroupModel
from studylink.infrastructure.persistence.unit_of_work import run_atomic

logger = get_logger(__name__)


class MembershipService:
    """Service for group membership transitions."""

    def __init__(self, session: AsyncSession, registry: GroupRegistry | None = None) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            registry: Group registry sharing the same session.
        """
        self.session = session
        self.registry = registry or GroupRegistry(session)
        self.group_repo = self.registry.group_repo
        self.member_repo = self.registry.member_repo
        self.roster_repo = self.registry.roster_repo
        self.channel = self.registry.channel

    async def _bump(self, group: GroupModel, **values: object) -> None:
        """Bump the group's version or raise ``StaleGroupError``."""
        if not await self.group_repo.bump_version(group.id, group.version, **values):
            raise StaleGroupError(group.id)

    async def _add_member(self, group: GroupModel, student_id: str, actor_id: str, text: str) -> None:
        await self.member_repo.add(group.id, group.assignment_id, student_id)
        await self._bump(group)
        name = await self.roster_repo.get_display_name(student_id)
        await self.channel.post_system(group.id, actor_id, text.format(name=name))

    async def _join_locked(self, group: GroupModel, student_id: str) -> GroupModel:
        self.registry.ensure_forming(group)
        assignment = await self.registry.load_assignment(group.assignment_id)
        await self.registry.ensure_enrolled(student_id, assignment)
        if assignment.config.deadline_passed():
            raise GroupDeadlinePassedError()
        if self.registry.capacity_of(group, assignment.config).is_full:
            raise CapacityFullError()
        await self.registry.ensure_ungrouped(assignment.id, student_id)

        await self._add_member(group, student_id, student_id, "{name} joined the group")
        return await self.registry.load_group(group.id)

    async def join(self, group_id: str, student_id: str) -> GroupModel:
        """Join a group as a MEMBER.

        Args:
            group_id: Group ID.
            student_id: Joining student.

        Returns:
            The group with the new member.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupLockedError: If the group is no longer forming.
            NotInClassError: If the student is not enrolled in the class.
            GroupDeadlinePassedError: If the group deadline has elapsed.
            CapacityFullError: If the group already holds ``max_size`` members.
            AlreadyGroupedError: If the student already belongs to a group.
        """

        async def operation() -> GroupModel:
            group = await self.registry.load_group(group_id, for_update=True)
            return await self._join_locked(group, student_id)

        group = await run_atomic(self.session, operation, name="join_group")
        logger.info("Member joined", group_id=group_id, student_id=student_id)
        return group

    async def join_by_code(self, invite_code: str, student_id: str) -> GroupModel:
        """Join the group an invite code belongs to.

        Input is normalized first, so ``" sl-7kqm "`` finds ``SL-7KQM``.

        Raises:
            InviteCodeNotFoundError: If no group carries the code.
        """
        code = InviteCodeGenerator.normalize(invite_code or "")
        if not InviteCodeGenerator.validate(code):
            raise InviteCodeNotFoundError()

        async def operation() -> GroupModel:
            found = await self.group_repo.get_by_invite_code(code)
            if found is None:
                raise InviteCodeNotFoundError()
            group = await self.registry.load_group(found.id, for_update=True)
            return await self._join_locked(group, student_id)

        group = await run_atomic(self.session, operation, name="join_group_by_code")
        logger.info("Member joined by invite code", group_id=group.id, student_id=student_id)
        return group

    async def leave(self, group_id: str, student_id: str) -> GroupModel | None:
        """Leave a group.

        A leaving leader hands leadership to the earliest-joined remaining
        member. The last member leaving deletes the group.

        Args:
            group_id: Group ID.
            student_id: Leaving student.

        Returns:
            The group after the change, or None if it was deleted.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupLockedError: If the group is no longer forming.
            SwitchNotAllowedError: If the assignment forbids leaving.
            NotAMemberError: If the student is not in the group.
        """

        async def operation() -> GroupModel | None:
            group = await self.registry.load_group(group_id, for_update=True)
            self.registry.ensure_forming(group)
            assignment = await self.registry.load_assignment(group.assignment_id)
            if not assignment.config.allow_switch:
                raise SwitchNotAllowedError()
            member = await self.member_repo.get(group_id, student_id)
            if member is None:
                raise NotAMemberError("You are not a member of this group")

            name = await self.roster_repo.get_display_name(student_id)
            remaining = [m for m in group.members if m.student_id != student_id]

            if not remaining:
                await self._bump(group)
                await self.group_repo.delete(group_id)
                return None

            await self.member_repo.remove(member)
            await self.channel.post_system(group_id, student_id, f"{name} left the group")

            if group.leader_id == student_id:
                successor = remaining[0]
                await self.member_repo.set_role(successor, MemberRole.LEADER.value)
                await self._bump(group, leader_id=successor.student_id)
                successor_name = await self.roster_repo.get_display_name(successor.student_id)
                await self.channel.post_system(
                    group_id, student_id, f"Leadership passed to {successor_name}"
                )
                logger.info(
                    "Leadership handed off",
                    group_id=group_id,
                    previous_leader_id=student_id,
                    leader_id=successor.student_id,
                )
            else:
                await self._bump(group)

            return await self.registry.load_group(group_id)

        group = await run_atomic(self.session, operation, name="leave_group")
        if group is None:
            logger.info("Last member left, group deleted", group_id=group_id, student_id=student_id)
        else:
            logger.info("Member left", group_id=group_id, student_id=student_id)
        return group

    async def remove_member(self, group_id: str, leader_id: str, target_id: str) -> GroupModel:
        """Remove a member from the group (leader only).

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotLeaderError: If the caller is not the leader.
            SelfRemovalError: If the leader targets themselves.
            GroupLockedError: If the group is no longer forming.
            NotAMemberError: If the target is not in the group.
        """

        async def operation() -> GroupModel:
            group = await self.registry.load_group(group_id, for_update=True)
            if group.leader_id != leader_id:
                raise NotLeaderError()
            if target_id == leader_id:
                raise SelfRemovalError()
            self.registry.ensure_forming(group)
            member = await self.member_repo.get(group_id, target_id)
            if member is None:
                raise NotAMemberError()

            await self.member_repo.remove(member)
            await self._bump(group)
            name = await self.roster_repo.get_display_name(target_id)
            await self.channel.post_system(
                group_id, leader_id, f"{name} was removed from the group"
            )
            return await self.registry.load_group(group_id)

        group = await run_atomic(self.session, operation, name="remove_member")
        logger.info("Member removed", group_id=group_id, student_id=target_id, leader_id=leader_id)
        return group

    async def transfer_leader(self, group_id: str, leader_id: str, new_leader_id: str) -> GroupModel:
        """Hand leadership to another member.

        The old leader becomes a MEMBER, the new one LEADER, and the group's
        ``leader_id`` follows, all in one unit of work.

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotLeaderError: If the caller is not the leader.
            GroupLockedError: If the group is no longer forming.
            NoOpTransferError: If the target already leads the group.
            NotAMemberError: If the target is not in the group.
        """

        async def operation() -> GroupModel:
            group = await self.registry.load_group(group_id, for_update=True)
            if group.leader_id != leader_id:
                raise NotLeaderError()
            self.registry.ensure_forming(group)
            if new_leader_id == leader_id:
                raise NoOpTransferError()
            new_leader = await self.member_repo.get(group_id, new_leader_id)
            if new_leader is None:
                raise NotAMemberError()
            old_leader = await self.member_repo.get(group_id, leader_id)

            if old_leader is not None:
                await self.member_repo.set_role(old_leader, MemberRole.MEMBER.value)
            await self.member_repo.set_role(new_leader, MemberRole.LEADER.value)
            await self._bump(group, leader_id=new_leader_id)
            name = await self.roster_repo.get_display_name(new_leader_id)
            await self.channel.post_system(
                group_id, leader_id, f"Leadership transferred to {name}"
            )
            return await self.registry.load_group(group_id)

        group = await run_atomic(self.session, operation, name="transfer_leader")
        logger.info(
            "Leadership transferred",
            group_id=group_id,
            previous_leader_id=leader_id,
            leader_id=new_leader_id,
        )
        return group

    async def dissolve(self, group_id: str, leader_id: str) -> None:
        """Delete the group, its memberships and its messages (leader only).

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotLeaderError: If the caller is not the leader.
            GroupLockedError: If the group is no longer forming.
        """

        async def operation() -> None:
            group = await self.registry.load_group(group_id, for_update=True)
            if group.leader_id != leader_id:
                raise NotLeaderError()
            self.registry.ensure_forming(group)
            await self._bump(group)
            await self.group_repo.delete(group_id)

        await run_atomic(self.session, operation, name="dissolve_group")
        logger.info("Group dissolved", group_id=group_id, leader_id=leader_id)

    async def lock(self, group_id: str, teacher_id: str) -> GroupModel:
        """Freeze a group's membership (owning teacher only).

        Locking an already locked group is a no-op.

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotOwnerError: If the teacher does not own the class.
            GroupLockedError: If the group was already submitted.
        """

        async def operation() -> GroupModel:
            group = await self.registry.load_group(group_id, for_update=True)
            assignment = await self.registry.load_assignment(group.assignment_id)
            self.registry.ensure_owner(teacher_id, assignment)
            if group.status == GroupStatus.LOCKED.value:
                return group
            if group.status == GroupStatus.SUBMITTED.value:
                raise GroupLockedError("Group has already submitted")
            await self._bump(group, status=GroupStatus.LOCKED.value)
            return await self.registry.load_group(group_id)

        group = await run_atomic(self.session, operation, name="lock_group")
        logger.info("Group locked", group_id=group_id, teacher_id=teacher_id)
        return group

    async def assign(self, group_id: str, teacher_id: str, student_id: str) -> GroupModel:
        """Place a student into a group (owning teacher only).

        Raises:
            GroupNotFoundError: If the group does not exist.
            NotOwnerError: If the teacher does not own the class.
            GroupLockedError: If the group is no longer forming.
            NotInClassError: If the student is not enrolled in the class.
            CapacityFullError: If the group is full.
            AlreadyGroupedError: If the student already belongs to a group.
        """

        async def operation() -> GroupModel:
            group = await self.registry.load_group(group_id, for_update=True)
            assignment = await self.registry.load_assignment(group.assignment_id)
            self.registry.ensure_owner(teacher_id, assignment)
            self.registry.ensure_forming(group)
            await self.registry.ensure_enrolled(student_id, assignment)
            if self.registry.capacity_of(group, assignment.config).is_full:
                raise CapacityFullError()
            await self.registry.ensure_ungrouped(assignment.id, student_id)

            await self._add_member(
                group, student_id, teacher_id, "{name} was assigned to the group by the teacher"
            )
            return await self.registry.load_group(group_id)

        group = await run_atomic(self.session, operation, name="assign_member")
        logger.info("Member assigned", group_id=group_id, student_id=student_id, teacher_id=teacher_id)
        return group
