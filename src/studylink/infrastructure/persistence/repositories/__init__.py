"""Persistence repositories for database operations."""

from studylink.infrastructure.persistence.repositories.assignment_repository import (
    AssignmentRepository,
    parse_group_config,
)
from studylink.infrastructure.persistence.repositories.group_member_repository import (
    GroupMemberRepository,
)
from studylink.infrastructure.persistence.repositories.group_message_repository import (
    GroupMessageRepository,
)
from studylink.infrastructure.persistence.repositories.group_repository import (
    GroupRepository,
)
from studylink.infrastructure.persistence.repositories.roster_repository import (
    RosterRepository,
)
from studylink.infrastructure.persistence.repositories.submission_repository import (
    SubmissionRepository,
)

__all__ = [
    "AssignmentRepository",
    "GroupMemberRepository",
    "GroupMessageRepository",
    "GroupRepository",
    "RosterRepository",
    "SubmissionRepository",
    "parse_group_config",
]
