"""API schemas for request and response validation."""

from studylink.infrastructure.api.schemas.group_schemas import (
    ActionResponse,
    AssignmentSummary,
    AutoAssignRequest,
    AutoAssignResponse,
    GroupConfigResponse,
    GroupCreate,
    GroupListResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupStatsResponse,
    JoinByCodeRequest,
    LeaveResponse,
    MemberTargetRequest,
    MyGroupResponse,
    StudentResponse,
    TransferLeaderRequest,
)
from studylink.infrastructure.api.schemas.message_schemas import (
    GroupMessageResponse,
    MessageCreate,
    MessageListResponse,
)
from studylink.infrastructure.api.schemas.submission_schemas import (
    GroupSubmitRequest,
    GroupSubmitResponse,
    LaborDivisionItem,
    SubmissionResponse,
)

__all__ = [
    "ActionResponse",
    "AssignmentSummary",
    "AutoAssignRequest",
    "AutoAssignResponse",
    "GroupConfigResponse",
    "GroupCreate",
    "GroupListResponse",
    "GroupMemberResponse",
    "GroupMessageResponse",
    "GroupResponse",
    "GroupStatsResponse",
    "GroupSubmitRequest",
    "GroupSubmitResponse",
    "JoinByCodeRequest",
    "LaborDivisionItem",
    "LeaveResponse",
    "MemberTargetRequest",
    "MessageCreate",
    "MessageListResponse",
    "MyGroupResponse",
    "StudentResponse",
    "TransferLeaderRequest",
]
