"""Pydantic schemas for group operations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studylink.domain.entities import UngroupedPolicy


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    name: str = Field(..., min_length=1, max_length=50, description="Group name")


class JoinByCodeRequest(BaseModel):
    """Schema for joining a group by invite code."""

    invite_code: str = Field(..., min_length=1, max_length=20, description="Invite code (SL-XXXX)")


class MemberTargetRequest(BaseModel):
    """Schema naming the student an operation acts on."""

    student_id: str = Field(..., min_length=1, description="Student ID")


class TransferLeaderRequest(BaseModel):
    """Schema for handing over leadership."""

    new_leader_id: str = Field(..., min_length=1, description="Member becoming leader")


class AutoAssignRequest(BaseModel):
    """Schema for auto-assigning ungrouped students."""

    preferred_size: int | None = Field(
        None, ge=2, le=10, description="Preferred group size, clamped to the configured bounds"
    )


class GroupMemberResponse(BaseModel):
    """Schema for a group member."""

    student_id: str
    student_name: str | None = None
    role: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupResponse(BaseModel):
    """Schema for group response including members in join order."""

    id: str = Field(..., description="Group ID")
    assignment_id: str
    name: str
    invite_code: str = Field(..., description="Invite code in SL-XXXX format")
    leader_id: str
    status: str = Field(..., description="FORMING, LOCKED or SUBMITTED")
    member_count: int = Field(0, description="Number of members")
    created_at: datetime
    updated_at: datetime
    members: list[GroupMemberResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class GroupConfigResponse(BaseModel):
    """Schema for an assignment's group configuration."""

    group_required: bool
    min_size: int
    max_size: int
    group_deadline: datetime | None = None
    allow_switch: bool
    ungrouped_policy: UngroupedPolicy

    model_config = ConfigDict(from_attributes=True)


class StudentResponse(BaseModel):
    """Schema for a student on the class roster."""

    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class GroupListResponse(BaseModel):
    """Schema for listing an assignment's groups."""

    groups: list[GroupResponse]
    unassigned_students: list[StudentResponse]
    group_config: GroupConfigResponse


class AssignmentSummary(BaseModel):
    """Schema for the assignment facts shown next to a student's group."""

    id: str
    title: str
    deadline: datetime | None = None
    class_id: str
    class_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class GroupStatsResponse(BaseModel):
    """Schema for group formation statistics."""

    total_students: int
    assigned_count: int


class MyGroupResponse(BaseModel):
    """Schema for a student's group status on an assignment."""

    my_group: GroupResponse | None = None
    group_config: GroupConfigResponse
    assignment: AssignmentSummary
    stats: GroupStatsResponse


class AutoAssignResponse(BaseModel):
    """Schema for the outcome of an auto-assignment pass."""

    message: str
    assigned_count: int
    target_size: int
    created_group_ids: list[str] = Field(default_factory=list)
    undersized_group_ids: list[str] = Field(
        default_factory=list, description="Groups left below the minimum size"
    )


class LeaveResponse(BaseModel):
    """Schema for leaving a group."""

    message: str
    dissolved: bool = Field(False, description="True if the group was deleted")
    group: GroupResponse | None = None


class ActionResponse(BaseModel):
    """Schema for operations that return no resource."""

    message: str
