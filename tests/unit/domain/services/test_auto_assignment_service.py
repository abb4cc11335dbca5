"""Tests for AutoAssignmentService."""

from unittest.mock import patch

import pytest
from sqlalchemy import select, update

from studylink.domain.exceptions import (
    AssignmentNotFoundError,
    AssignmentNotGroupTypeError,
    GroupValidationError,
    NotOwnerError,
)
from studylink.domain.services import AutoAssignmentService, GroupRegistry, MembershipService
from studylink.infrastructure.persistence.models import GroupMessageModel, GroupModel


async def group_sizes(session, assignment_id):
    groups = await GroupRegistry(session).group_repo.list_by_assignment(assignment_id)
    return [(group.name, [m.student_id for m in group.members]) for group in groups]


@pytest.mark.asyncio
async def test_seven_students_in_threes(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    service = AutoAssignmentService(db_session)

    result = await service.auto_assign(assignment_id, "teacher-1", preferred_size=3)

    assert result.assigned_count == 7
    assert result.target_size == 3
    assert len(result.created_group_ids) == 3
    assert result.undersized_group_ids == [result.created_group_ids[2]]
    assert await group_sizes(db_session, assignment_id) == [
        ("Group 1", ["student-1", "student-2", "student-3"]),
        ("Group 2", ["student-4", "student-5", "student-6"]),
        ("Group 3", ["student-7"]),
    ]
    assert await GroupRegistry(db_session).get_unassigned(assignment_id) == []


@pytest.mark.asyncio
async def test_first_student_leads_new_group(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    result = await AutoAssignmentService(db_session).auto_assign(assignment_id, "teacher-1")

    group = await GroupRegistry(db_session).get_group(result.created_group_ids[0])
    assert group.leader_id == "student-1"
    assert [m.role for m in group.members] == ["LEADER", "MEMBER", "MEMBER", "MEMBER"]


@pytest.mark.asyncio
async def test_default_target_is_max_size(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    result = await AutoAssignmentService(db_session).auto_assign(assignment_id, "teacher-1")

    assert result.target_size == 4
    assert [len(members) for _, members in await group_sizes(db_session, assignment_id)] == [4, 3]
    assert result.undersized_group_ids == []


@pytest.mark.asyncio
async def test_preferred_size_clamped_to_config(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    result = await AutoAssignmentService(db_session).auto_assign(
        assignment_id, "teacher-1", preferred_size=10
    )

    assert result.target_size == 4


@pytest.mark.asyncio
async def test_fills_existing_groups_first(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    registry = GroupRegistry(db_session)
    created = await registry.create_group(assignment_id, "student-5", "Comets")
    comets_id = created.id

    result = await AutoAssignmentService(db_session, registry).auto_assign(
        assignment_id, "teacher-1", preferred_size=3
    )

    assert result.assigned_count == 6
    assert await group_sizes(db_session, assignment_id) == [
        ("Comets", ["student-5", "student-1", "student-2"]),
        ("Group 2", ["student-3", "student-4", "student-6"]),
        ("Group 3", ["student-7"]),
    ]
    comets = await registry.get_group(comets_id)
    assert comets.leader_id == "student-5"
    assert comets.version == 1


@pytest.mark.asyncio
async def test_skips_locked_groups(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    registry = GroupRegistry(db_session)
    created = await registry.create_group(assignment_id, "student-1", "Locked")
    locked_id = created.id
    await MembershipService(db_session, registry).lock(locked_id, "teacher-1")

    await AutoAssignmentService(db_session, registry).auto_assign(
        assignment_id, "teacher-1", preferred_size=3
    )

    sizes = await group_sizes(db_session, assignment_id)
    assert sizes[0] == ("Locked", ["student-1"])
    assert [name for name, _ in sizes[1:]] == ["Group 2", "Group 3"]


@pytest.mark.asyncio
async def test_nothing_to_assign(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    service = AutoAssignmentService(db_session)
    await service.auto_assign(assignment_id, "teacher-1")

    again = await service.auto_assign(assignment_id, "teacher-1")

    assert again.assigned_count == 0
    assert again.created_group_ids == []


@pytest.mark.asyncio
async def test_system_messages_posted_by_teacher(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    result = await AutoAssignmentService(db_session).auto_assign(
        assignment_id, "teacher-1", preferred_size=2
    )

    rows = await db_session.execute(
        select(GroupMessageModel.sender_id, GroupMessageModel.content)
        .where(GroupMessageModel.group_id == result.created_group_ids[0])
        .order_by(GroupMessageModel.id)
    )
    assert rows.all() == [
        ("teacher-1", 'Group "Group 1" was created by auto-assignment'),
        ("teacher-1", "Student 1 joined the group by auto-assignment"),
        ("teacher-1", "Student 2 joined the group by auto-assignment"),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("preferred_size", [0, 1, 11])
async def test_preferred_size_out_of_range(db_session, make_assignment, preferred_size):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    with pytest.raises(GroupValidationError):
        await AutoAssignmentService(db_session).auto_assign(
            assignment_id, "teacher-1", preferred_size=preferred_size
        )


@pytest.mark.asyncio
async def test_requires_owning_teacher(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})

    with pytest.raises(NotOwnerError):
        await AutoAssignmentService(db_session).auto_assign(assignment_id, "teacher-2")

    assert await group_sizes(db_session, assignment_id) == []


@pytest.mark.asyncio
async def test_requires_group_project(db_session, make_assignment):
    assignment_id = await make_assignment(assignment_type="SELF_PRACTICE")

    with pytest.raises(AssignmentNotGroupTypeError):
        await AutoAssignmentService(db_session).auto_assign(assignment_id, "teacher-1")


@pytest.mark.asyncio
async def test_unknown_assignment(db_session, classroom):
    with pytest.raises(AssignmentNotFoundError):
        await AutoAssignmentService(db_session).auto_assign("missing", "teacher-1")


@pytest.mark.asyncio
async def test_existing_group_version_bumped(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    registry = GroupRegistry(db_session)
    created = await registry.create_group(assignment_id, "student-1", "Alpha")
    group_id = created.id
    await db_session.execute(
        update(GroupModel).where(GroupModel.id == group_id).values(version=5)
    )
    await db_session.commit()

    result = await AutoAssignmentService(db_session, registry).auto_assign(
        assignment_id, "teacher-1", preferred_size=4
    )

    assert result.assigned_count == 6
    group = await registry.get_group(group_id)
    assert group.member_count == 4
    assert group.version == 6


@pytest.mark.asyncio
async def test_lost_race_reruns_whole_plan(db_session, make_assignment):
    assignment_id = await make_assignment({"minSize": 2, "maxSize": 4})
    registry = GroupRegistry(db_session)
    await registry.create_group(assignment_id, "student-1", "Alpha")
    real_bump = registry.group_repo.bump_version
    calls = []

    async def stale_once(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return False
        return await real_bump(*args, **kwargs)

    with patch.object(registry.group_repo, "bump_version", side_effect=stale_once):
        result = await AutoAssignmentService(db_session, registry).auto_assign(
            assignment_id, "teacher-1", preferred_size=4
        )

    assert len(calls) == 2
    assert result.assigned_count == 6
    assert result.created_group_ids and len(result.created_group_ids) == 1
    assert [len(m) for _, m in await group_sizes(db_session, assignment_id)] == [4, 3]
