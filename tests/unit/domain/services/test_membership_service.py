"""Tests for MembershipService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select, update

from studylink.domain.exceptions import (
    AlreadyGroupedError,
    CapacityFullError,
    ConcurrentModificationError,
    GroupDeadlinePassedError,
    GroupLockedError,
    GroupNotFoundError,
    InviteCodeNotFoundError,
    NoOpTransferError,
    NotAMemberError,
    NotInClassError,
    NotLeaderError,
    NotOwnerError,
    SelfRemovalError,
    SwitchNotAllowedError,
)
from studylink.domain.services import GroupRegistry, MembershipService
from studylink.infrastructure.persistence.models import (
    AssignmentModel,
    GroupMemberModel,
    GroupMessageModel,
    GroupModel,
)


async def create_group(session, assignment_id, leader_id="student-1", *member_ids):
    """Create a group led by ``leader_id`` and join ``member_ids`` in order.

    Returns:
        The group ID.
    """
    registry = GroupRegistry(session)
    group = await registry.create_group(assignment_id, leader_id, f"Team of {leader_id}")
    group_id = group.id
    service = MembershipService(session, registry)
    for member_id in member_ids:
        await service.join(group_id, member_id)
    return group_id


async def system_messages(session, group_id):
    result = await session.execute(
        select(GroupMessageModel.content)
        .where(GroupMessageModel.group_id == group_id)
        .order_by(GroupMessageModel.id)
    )
    return list(result.scalars().all())


async def set_group_status(session, group_id, status):
    await session.execute(update(GroupModel).where(GroupModel.id == group_id).values(status=status))
    await session.commit()


class TestJoin:
    """Tests for joining a group."""

    @pytest.mark.asyncio
    async def test_join_adds_member(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        service = MembershipService(db_session)

        group = await service.join(group_id, "student-2")

        assert [(m.student_id, m.role) for m in group.members] == [
            ("student-1", "LEADER"),
            ("student-2", "MEMBER"),
        ]
        assert group.version == 1
        assert (await system_messages(db_session, group_id))[-1] == "Student 2 joined the group"

    @pytest.mark.asyncio
    async def test_join_full_group(self, db_session, classroom, assignment_id):
        group_id = await create_group(
            db_session, assignment_id, "student-1", "student-2", "student-3", "student-4"
        )
        service = MembershipService(db_session)

        with pytest.raises(CapacityFullError):
            await service.join(group_id, "student-5")

        group = await GroupRegistry(db_session).get_group(group_id)
        assert group.member_count == 4

    @pytest.mark.asyncio
    async def test_join_twice(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        other_id = await create_group(db_session, assignment_id, "student-3")
        service = MembershipService(db_session)

        with pytest.raises(AlreadyGroupedError):
            await service.join(other_id, "student-2")
        with pytest.raises(AlreadyGroupedError):
            await service.join(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_join_requires_enrollment(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)

        with pytest.raises(NotInClassError):
            await MembershipService(db_session).join(group_id, classroom.outsider_id)

    @pytest.mark.asyncio
    async def test_join_locked_group(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        await set_group_status(db_session, group_id, "LOCKED")

        with pytest.raises(GroupLockedError):
            await MembershipService(db_session).join(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_join_missing_group(self, db_session, classroom, assignment_id):
        with pytest.raises(GroupNotFoundError):
            await MembershipService(db_session).join("missing", "student-2")

    @pytest.mark.asyncio
    async def test_join_after_deadline(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        await db_session.execute(
            update(AssignmentModel)
            .where(AssignmentModel.id == assignment_id)
            .values(group_config=f'{{"minSize": 2, "maxSize": 4, "groupDeadline": "{past}"}}')
        )
        await db_session.commit()

        with pytest.raises(GroupDeadlinePassedError):
            await MembershipService(db_session).join(group_id, "student-2")


class TestJoinByCode:
    """Tests for joining through an invite code."""

    @pytest.mark.asyncio
    async def test_code_is_normalized(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        code = (await GroupRegistry(db_session).get_group(group_id)).invite_code

        group = await MembershipService(db_session).join_by_code(
            f"  {code.lower()} ", "student-2"
        )

        assert group.id == group_id
        assert group.member_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "nonsense", "SL-ZZZ", "SL-ZZZZ"])
    async def test_unknown_code(self, db_session, classroom, assignment_id, code):
        await create_group(db_session, assignment_id)

        with pytest.raises(InviteCodeNotFoundError):
            await MembershipService(db_session).join_by_code(code, "student-2")


class TestLeave:
    """Tests for leaving a group."""

    @pytest.mark.asyncio
    async def test_member_leaves(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        group = await MembershipService(db_session).leave(group_id, "student-2")

        assert [m.student_id for m in group.members] == ["student-1"]
        assert group.leader_id == "student-1"
        assert (await system_messages(db_session, group_id))[-1] == "Student 2 left the group"

    @pytest.mark.asyncio
    async def test_leader_hands_off_to_earliest_member(self, db_session, classroom, assignment_id):
        group_id = await create_group(
            db_session, assignment_id, "student-1", "student-2", "student-3"
        )

        group = await MembershipService(db_session).leave(group_id, "student-1")

        assert group.leader_id == "student-2"
        assert [(m.student_id, m.role) for m in group.members] == [
            ("student-2", "LEADER"),
            ("student-3", "MEMBER"),
        ]
        assert (await system_messages(db_session, group_id))[-2:] == [
            "Student 1 left the group",
            "Leadership passed to Student 2",
        ]

    @pytest.mark.asyncio
    async def test_last_member_deletes_group(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        service = MembershipService(db_session)

        assert await service.leave(group_id, "student-1") is None

        assert await db_session.scalar(select(func.count()).select_from(GroupModel)) == 0
        assert await db_session.scalar(select(func.count()).select_from(GroupMemberModel)) == 0
        assert await db_session.scalar(select(func.count()).select_from(GroupMessageModel)) == 0
        with pytest.raises(GroupNotFoundError):
            await service.join(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_leave_when_switch_disabled(self, db_session, make_assignment):
        locked_in = await make_assignment({"minSize": 2, "maxSize": 4, "allowSwitch": False})
        group_id = await create_group(db_session, locked_in, "student-1", "student-2")

        with pytest.raises(SwitchNotAllowedError):
            await MembershipService(db_session).leave(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_leave_locked_group(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        await set_group_status(db_session, group_id, "LOCKED")

        with pytest.raises(GroupLockedError):
            await MembershipService(db_session).leave(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_non_member_cannot_leave(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)

        with pytest.raises(NotAMemberError):
            await MembershipService(db_session).leave(group_id, "student-4")

    @pytest.mark.asyncio
    async def test_transfer_then_leave(self, db_session, classroom, assignment_id):
        group_id = await create_group(
            db_session, assignment_id, "student-1", "student-2", "student-3"
        )
        service = MembershipService(db_session)

        await service.transfer_leader(group_id, "student-1", "student-3")
        group = await service.leave(group_id, "student-2")

        assert group.leader_id == "student-3"
        roles = {m.student_id: m.role for m in group.members}
        assert roles == {"student-1": "MEMBER", "student-3": "LEADER"}


class TestRemoveMember:
    """Tests for leader-side removal."""

    @pytest.mark.asyncio
    async def test_leader_removes_member(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        group = await MembershipService(db_session).remove_member(
            group_id, "student-1", "student-2"
        )

        assert [m.student_id for m in group.members] == ["student-1"]
        assert (await system_messages(db_session, group_id))[-1] == (
            "Student 2 was removed from the group"
        )

    @pytest.mark.asyncio
    async def test_removed_student_can_join_elsewhere(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        other_id = await create_group(db_session, assignment_id, "student-3")
        service = MembershipService(db_session)

        await service.remove_member(group_id, "student-1", "student-2")
        group = await service.join(other_id, "student-2")

        assert group.member_count == 2

    @pytest.mark.asyncio
    async def test_only_leader_removes(self, db_session, classroom, assignment_id):
        group_id = await create_group(
            db_session, assignment_id, "student-1", "student-2", "student-3"
        )

        with pytest.raises(NotLeaderError):
            await MembershipService(db_session).remove_member(group_id, "student-2", "student-3")

    @pytest.mark.asyncio
    async def test_leader_cannot_remove_self(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        with pytest.raises(SelfRemovalError):
            await MembershipService(db_session).remove_member(group_id, "student-1", "student-1")

    @pytest.mark.asyncio
    async def test_target_must_be_member(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)

        with pytest.raises(NotAMemberError):
            await MembershipService(db_session).remove_member(group_id, "student-1", "student-5")


class TestTransferLeader:
    """Tests for leadership transfer."""

    @pytest.mark.asyncio
    async def test_transfer(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        group = await MembershipService(db_session).transfer_leader(
            group_id, "student-1", "student-2"
        )

        assert group.leader_id == "student-2"
        leaders = [m.student_id for m in group.members if m.role == "LEADER"]
        assert leaders == ["student-2"]
        assert (await system_messages(db_session, group_id))[-1] == (
            "Leadership transferred to Student 2"
        )

    @pytest.mark.asyncio
    async def test_transfer_to_self(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        with pytest.raises(NoOpTransferError):
            await MembershipService(db_session).transfer_leader(
                group_id, "student-1", "student-1"
            )

    @pytest.mark.asyncio
    async def test_transfer_by_non_leader(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        with pytest.raises(NotLeaderError):
            await MembershipService(db_session).transfer_leader(
                group_id, "student-2", "student-2"
            )

    @pytest.mark.asyncio
    async def test_transfer_to_non_member(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        with pytest.raises(NotAMemberError):
            await MembershipService(db_session).transfer_leader(
                group_id, "student-1", "student-6"
            )


class TestDissolve:
    """Tests for dissolving a group."""

    @pytest.mark.asyncio
    async def test_dissolve_frees_members(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        registry = GroupRegistry(db_session)

        await MembershipService(db_session, registry).dissolve(group_id, "student-1")

        with pytest.raises(GroupNotFoundError):
            await registry.get_group(group_id)
        assert await registry.get_unassigned(assignment_id) == classroom.student_ids

    @pytest.mark.asyncio
    async def test_only_leader_dissolves(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")

        with pytest.raises(NotLeaderError):
            await MembershipService(db_session).dissolve(group_id, "student-2")

    @pytest.mark.asyncio
    async def test_locked_group_cannot_dissolve(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        await set_group_status(db_session, group_id, "LOCKED")

        with pytest.raises(GroupLockedError):
            await MembershipService(db_session).dissolve(group_id, "student-1")


class TestTeacherActions:
    """Tests for lock and manual assignment."""

    @pytest.mark.asyncio
    async def test_lock(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        service = MembershipService(db_session)

        group = await service.lock(group_id, "teacher-1")
        assert group.status == "LOCKED"

        again = await service.lock(group_id, "teacher-1")
        assert again.status == "LOCKED"
        assert again.version == group.version

    @pytest.mark.asyncio
    async def test_lock_requires_owner(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)

        with pytest.raises(NotOwnerError):
            await MembershipService(db_session).lock(group_id, "teacher-2")

    @pytest.mark.asyncio
    async def test_lock_submitted_group(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        await set_group_status(db_session, group_id, "SUBMITTED")

        with pytest.raises(GroupLockedError):
            await MembershipService(db_session).lock(group_id, "teacher-1")

    @pytest.mark.asyncio
    async def test_assign(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)

        group = await MembershipService(db_session).assign(group_id, "teacher-1", "student-6")

        assert [m.student_id for m in group.members] == ["student-1", "student-6"]
        messages = await system_messages(db_session, group_id)
        assert messages[-1] == "Student 6 was assigned to the group by the teacher"

    @pytest.mark.asyncio
    async def test_assign_ignores_deadline(self, db_session, make_assignment):
        future = (datetime.now(timezone.utc) + timedelta(minutes=5)).isoformat()
        closing = await make_assignment({"minSize": 2, "maxSize": 4, "groupDeadline": future})
        group_id = await create_group(db_session, closing)
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        await db_session.execute(
            update(AssignmentModel)
            .where(AssignmentModel.id == closing)
            .values(group_config=f'{{"minSize": 2, "maxSize": 4, "groupDeadline": "{past}"}}')
        )
        await db_session.commit()

        group = await MembershipService(db_session).assign(group_id, "teacher-1", "student-2")

        assert group.member_count == 2

    @pytest.mark.asyncio
    async def test_assign_checks(self, db_session, classroom, assignment_id):
        group_id = await create_group(
            db_session, assignment_id, "student-1", "student-2", "student-3", "student-4"
        )
        service = MembershipService(db_session)

        with pytest.raises(NotOwnerError):
            await service.assign(group_id, "teacher-2", "student-5")
        with pytest.raises(CapacityFullError):
            await service.assign(group_id, "teacher-1", "student-5")
        with pytest.raises(NotInClassError):
            await service.assign(group_id, "teacher-1", classroom.outsider_id)


class TestConcurrencyGuards:
    """Tests for the optimistic version check."""

    @pytest.mark.asyncio
    async def test_stale_version_is_retried(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        service = MembershipService(db_session)
        real_bump = service.group_repo.bump_version
        calls = []

        async def bump_once_stale(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                return False
            return await real_bump(*args, **kwargs)

        with patch.object(service.group_repo, "bump_version", side_effect=bump_once_stale):
            group = await service.join(group_id, "student-2")

        assert len(calls) == 2
        assert group.member_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id)
        service = MembershipService(db_session)

        with patch.object(
            service.group_repo, "bump_version", new=AsyncMock(return_value=False)
        ) as bump:
            with pytest.raises(ConcurrentModificationError):
                await service.join(group_id, "student-2")

        assert bump.await_count == 3
        group = await GroupRegistry(db_session).get_group(group_id)
        assert group.member_count == 1

    @pytest.mark.asyncio
    async def test_unique_index_backs_one_group_rule(self, db_session, classroom, assignment_id):
        group_id = await create_group(db_session, assignment_id, "student-1", "student-2")
        other_id = await create_group(db_session, assignment_id, "student-3")
        service = MembershipService(db_session)

        with patch.object(service.registry, "ensure_ungrouped", new=AsyncMock()):
            with pytest.raises(AlreadyGroupedError):
                await service.join(other_id, "student-2")

        group = await GroupRegistry(db_session).get_group(group_id)
        assert group.member_count == 2
