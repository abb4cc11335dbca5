"""Domain services for StudyLink.

Services hold the group formation rules. Each takes an ``AsyncSession`` and
builds the repositories it needs.
"""

from studylink.domain.services.auto_assignment_service import (
    AutoAssignmentService,
    AutoAssignResult,
    GroupSlot,
    plan_auto_assignment,
)
from studylink.domain.services.group_registry import (
    GroupListing,
    GroupRegistry,
    MyGroupView,
)
from studylink.domain.services.invite_code_generator import (
    InviteCodeGenerator,
    default_invite_code_generator,
)
from studylink.domain.services.membership_service import MembershipService
from studylink.domain.services.message_channel import MessageChannel, MessagePage
from studylink.domain.services.submission_gate import SubmissionGate

__all__ = [
    "AutoAssignResult",
    "AutoAssignmentService",
    "GroupListing",
    "GroupRegistry",
    "GroupSlot",
    "InviteCodeGenerator",
    "MembershipService",
    "MessageChannel",
    "MessagePage",
    "MyGroupView",
    "SubmissionGate",
    "default_invite_code_generator",
    "plan_auto_assignment",
]
