"""SQLAlchemy models for StudyLink tables.

All models inherit from the Base class defined in database.py and are
automatically created on application startup in development mode.
"""

from studylink.infrastructure.persistence.models.assignment import AssignmentModel
from studylink.infrastructure.persistence.models.classroom import (
    ClassModel,
    ClassStudentModel,
)
from studylink.infrastructure.persistence.models.group import GroupMemberModel, GroupModel
from studylink.infrastructure.persistence.models.group_message import GroupMessageModel
from studylink.infrastructure.persistence.models.submission import SubmissionModel
from studylink.infrastructure.persistence.models.user import UserModel

__all__ = [
    "AssignmentModel",
    "ClassModel",
    "ClassStudentModel",
    "GroupMemberModel",
    "GroupMessageModel",
    "GroupModel",
    "SubmissionModel",
    "UserModel",
]
