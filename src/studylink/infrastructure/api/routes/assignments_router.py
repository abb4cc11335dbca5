"""Router for the group views and actions scoped to one assignment."""

from fastapi import APIRouter, status

from studylink.core.logging import get_logger
from studylink.infrastructure.api.dependencies import (
    AuthenticatedUser,
    AutoAssignment,
    Registry,
    StudentUser,
    TeacherUser,
)
from studylink.infrastructure.api.schemas import (
    AssignmentSummary,
    AutoAssignRequest,
    AutoAssignResponse,
    GroupConfigResponse,
    GroupCreate,
    GroupListResponse,
    GroupResponse,
    GroupStatsResponse,
    MyGroupResponse,
    StudentResponse,
)

router = APIRouter(tags=["Assignments"])
logger = get_logger(__name__)


@router.get(
    "/{assignment_id}/groups",
    response_model=GroupListResponse,
    summary="List groups and unassigned students",
)
async def list_groups(
    assignment_id: str,
    current_user: AuthenticatedUser,
    registry: Registry,
) -> GroupListResponse:
    """List the assignment's groups in creation order and who is still ungrouped.

    Visible to the owning teacher and to students enrolled in the class.
    """
    listing = await registry.list_groups(
        assignment_id, current_user.user_id, caller_is_teacher=current_user.is_teacher
    )
    return GroupListResponse(
        groups=[GroupResponse.model_validate(group) for group in listing.groups],
        unassigned_students=[
            StudentResponse.model_validate(student) for student in listing.unassigned_students
        ],
        group_config=GroupConfigResponse.model_validate(listing.assignment.config),
    )


@router.get(
    "/{assignment_id}/my-group",
    response_model=MyGroupResponse,
    summary="Get the caller's group",
)
async def get_my_group(
    assignment_id: str,
    current_user: StudentUser,
    registry: Registry,
) -> MyGroupResponse:
    """Get the caller's group for the assignment, if any, with formation stats."""
    view = await registry.get_my_group(assignment_id, current_user.user_id)
    return MyGroupResponse(
        my_group=GroupResponse.model_validate(view.group) if view.group else None,
        group_config=GroupConfigResponse.model_validate(view.assignment.config),
        assignment=AssignmentSummary.model_validate(view.assignment),
        stats=GroupStatsResponse(
            total_students=view.total_students,
            assigned_count=view.assigned_count,
        ),
    )


@router.post(
    "/{assignment_id}/groups",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
)
async def create_group(
    assignment_id: str,
    group_data: GroupCreate,
    current_user: StudentUser,
    registry: Registry,
):
    """Create a group with the caller as its leader."""
    return await registry.create_group(assignment_id, current_user.user_id, group_data.name)


@router.post(
    "/{assignment_id}/auto-assign",
    response_model=AutoAssignResponse,
    summary="Auto-assign ungrouped students",
)
async def auto_assign(
    assignment_id: str,
    current_user: TeacherUser,
    service: AutoAssignment,
    request: AutoAssignRequest | None = None,
) -> AutoAssignResponse:
    """Place every ungrouped student into a group of the target size."""
    preferred_size = request.preferred_size if request else None
    result = await service.auto_assign(assignment_id, current_user.user_id, preferred_size)

    if result.assigned_count == 0:
        message = "All students already have a group"
    else:
        message = f"Auto-assignment completed, {result.assigned_count} students assigned"
    return AutoAssignResponse(
        message=message,
        assigned_count=result.assigned_count,
        target_size=result.target_size,
        created_group_ids=result.created_group_ids,
        undersized_group_ids=result.undersized_group_ids,
    )
