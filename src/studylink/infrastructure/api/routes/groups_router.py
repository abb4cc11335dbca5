"""Router for group membership and submission."""

from fastapi import APIRouter

from studylink.core.logging import get_logger
from studylink.infrastructure.api.dependencies import (
    AuthenticatedUser,
    Gate,
    Membership,
    Registry,
    StudentUser,
    TeacherUser,
)
from studylink.infrastructure.api.schemas import (
    ActionResponse,
    GroupResponse,
    GroupSubmitRequest,
    GroupSubmitResponse,
    JoinByCodeRequest,
    LeaveResponse,
    MemberTargetRequest,
    SubmissionResponse,
    TransferLeaderRequest,
)

router = APIRouter(tags=["Groups"])
logger = get_logger(__name__)


@router.post(
    "/join-by-code",
    response_model=GroupResponse,
    summary="Join a group by invite code",
)
async def join_by_code(
    request: JoinByCodeRequest,
    current_user: StudentUser,
    membership: Membership,
):
    """Join the group the invite code belongs to."""
    return await membership.join_by_code(request.invite_code, current_user.user_id)


@router.get(
    "/{group_id}",
    response_model=GroupResponse,
    summary="Get a group",
)
async def get_group(
    group_id: str,
    current_user: AuthenticatedUser,
    registry: Registry,
):
    """Get a group with its members in join order."""
    return await registry.get_group(
        group_id, current_user.user_id, caller_is_teacher=current_user.is_teacher
    )


@router.post(
    "/{group_id}/join",
    response_model=GroupResponse,
    summary="Join a group",
)
async def join_group(
    group_id: str,
    current_user: StudentUser,
    membership: Membership,
):
    """Join a group as a member."""
    return await membership.join(group_id, current_user.user_id)


@router.post(
    "/{group_id}/leave",
    response_model=LeaveResponse,
    summary="Leave a group",
)
async def leave_group(
    group_id: str,
    current_user: StudentUser,
    membership: Membership,
) -> LeaveResponse:
    """Leave a group. The last member leaving deletes it."""
    group = await membership.leave(group_id, current_user.user_id)
    if group is None:
        return LeaveResponse(message="Group dissolved", dissolved=True)
    return LeaveResponse(message="Left the group", group=GroupResponse.model_validate(group))


@router.post(
    "/{group_id}/remove-member",
    response_model=GroupResponse,
    summary="Remove a member",
)
async def remove_member(
    group_id: str,
    request: MemberTargetRequest,
    current_user: StudentUser,
    membership: Membership,
):
    """Remove a member from the group (leader only)."""
    return await membership.remove_member(group_id, current_user.user_id, request.student_id)


@router.post(
    "/{group_id}/transfer-leader",
    response_model=GroupResponse,
    summary="Transfer leadership",
)
async def transfer_leader(
    group_id: str,
    request: TransferLeaderRequest,
    current_user: StudentUser,
    membership: Membership,
):
    """Hand leadership to another member (leader only)."""
    return await membership.transfer_leader(
        group_id, current_user.user_id, request.new_leader_id
    )


@router.post(
    "/{group_id}/dissolve",
    response_model=ActionResponse,
    summary="Dissolve a group",
)
async def dissolve_group(
    group_id: str,
    current_user: StudentUser,
    membership: Membership,
) -> ActionResponse:
    """Delete the group with its memberships and messages (leader only)."""
    await membership.dissolve(group_id, current_user.user_id)
    return ActionResponse(message="Group dissolved")


@router.post(
    "/{group_id}/lock",
    response_model=GroupResponse,
    summary="Lock a group",
)
async def lock_group(
    group_id: str,
    current_user: TeacherUser,
    membership: Membership,
):
    """Freeze the group's membership (owning teacher only)."""
    return await membership.lock(group_id, current_user.user_id)


@router.post(
    "/{group_id}/assign",
    response_model=GroupResponse,
    summary="Assign a student to a group",
)
async def assign_student(
    group_id: str,
    request: MemberTargetRequest,
    current_user: TeacherUser,
    membership: Membership,
):
    """Place a student into the group (owning teacher only)."""
    return await membership.assign(group_id, current_user.user_id, request.student_id)


@router.post(
    "/{group_id}/submit",
    response_model=GroupSubmitResponse,
    summary="Submit a group project",
)
async def submit_group(
    group_id: str,
    request: GroupSubmitRequest,
    current_user: StudentUser,
    gate: Gate,
) -> GroupSubmitResponse:
    """Submit on behalf of every member (leader only)."""
    submissions = await gate.submit(
        group_id,
        current_user.user_id,
        request.assignment_id,
        request.files,
        [item.to_entry() for item in request.labor_division],
    )
    return GroupSubmitResponse(
        message="Group project submitted",
        group_id=group_id,
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
    )
