"""Domain entities for StudyLink.

Entities are plain dataclasses and enums representing the group formation
concepts. They have no dependencies on infrastructure or external frameworks.
"""

from studylink.domain.entities.assignment import (
    AssignmentConfig,
    AssignmentContext,
    AssignmentType,
    UngroupedPolicy,
)
from studylink.domain.entities.group import GroupCapacity, GroupStatus, MemberRole
from studylink.domain.entities.message import MessageType
from studylink.domain.entities.submission import LaborDivisionEntry

__all__ = [
    "AssignmentConfig",
    "AssignmentContext",
    "AssignmentType",
    "GroupCapacity",
    "GroupStatus",
    "LaborDivisionEntry",
    "MemberRole",
    "MessageType",
    "UngroupedPolicy",
]
