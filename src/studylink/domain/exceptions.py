"""Domain errors raised by the group formation services.

Every error carries a stable ``kind`` (the taxonomy the HTTP layer maps to a
status code) and a stable ``code`` identifying the exact failure.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Taxonomy of domain failures."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    VALIDATION = "validation"


class GroupDomainError(Exception):
    """Base class for all group formation errors."""

    kind: ErrorKind = ErrorKind.CONFLICT
    code: str = "group_error"
    default_message: str = "Group operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# Not found


class GroupNotFoundError(GroupDomainError):
    kind = ErrorKind.NOT_FOUND
    code = "group_not_found"
    default_message = "Group not found"


class InviteCodeNotFoundError(GroupDomainError):
    kind = ErrorKind.NOT_FOUND
    code = "invite_code_not_found"
    default_message = "Invalid invite code"


class AssignmentNotFoundError(GroupDomainError):
    kind = ErrorKind.NOT_FOUND
    code = "assignment_not_found"
    default_message = "Assignment not found"


class NotAMemberError(GroupDomainError):
    """Raised when the target student is not in the group."""

    kind = ErrorKind.NOT_FOUND
    code = "not_a_member"
    default_message = "Student is not a member of this group"


# Forbidden


class NotLeaderError(GroupDomainError):
    kind = ErrorKind.FORBIDDEN
    code = "not_leader"
    default_message = "Only the group leader can perform this action"


class NotOwnerError(GroupDomainError):
    kind = ErrorKind.FORBIDDEN
    code = "not_owner"
    default_message = "Only the teacher owning this class can perform this action"


class NotInClassError(GroupDomainError):
    kind = ErrorKind.FORBIDDEN
    code = "not_in_class"
    default_message = "Student is not enrolled in this class"


class MessageAccessDeniedError(GroupDomainError):
    kind = ErrorKind.FORBIDDEN
    code = "message_access_denied"
    default_message = "Not allowed to read this group's messages"


# Conflict


class AssignmentNotGroupTypeError(GroupDomainError):
    code = "assignment_not_group_type"
    default_message = "This assignment is not a group project"


class GroupDeadlinePassedError(GroupDomainError):
    code = "group_deadline_passed"
    default_message = "The group formation deadline has passed"


class AlreadyGroupedError(GroupDomainError):
    code = "already_grouped"
    default_message = "Student already belongs to a group for this assignment"


class CapacityFullError(GroupDomainError):
    code = "capacity_full"
    default_message = "Group is full"


class GroupLockedError(GroupDomainError):
    code = "group_locked"
    default_message = "Group membership can no longer change"


class SwitchNotAllowedError(GroupDomainError):
    code = "switch_not_allowed"
    default_message = "Leaving groups is disabled for this assignment"


class SelfRemovalError(GroupDomainError):
    code = "self_removal"
    default_message = "Leaders cannot remove themselves, leave the group instead"


class NoOpTransferError(GroupDomainError):
    code = "no_op_transfer"
    default_message = "Student is already the group leader"


class SizeBelowMinimumError(GroupDomainError):
    code = "size_below_minimum"

    def __init__(self, member_count: int, min_size: int) -> None:
        self.member_count = member_count
        self.min_size = min_size
        super().__init__(
            f"Group needs at least {min_size} members to submit, it has {member_count}"
        )


class AssignmentMismatchError(GroupDomainError):
    code = "assignment_mismatch"
    default_message = "Group does not belong to this assignment"


class ConcurrentModificationError(GroupDomainError):
    code = "concurrent_modification"
    default_message = "Group changed concurrently, please retry"


class InviteCodeExhaustedError(GroupDomainError):
    code = "invite_code_exhausted"
    default_message = "Could not issue an unused invite code"


# Validation


class GroupValidationError(GroupDomainError):
    kind = ErrorKind.VALIDATION
    code = "validation_error"
    default_message = "Invalid input"


class InvalidGroupConfigError(GroupValidationError):
    code = "invalid_group_config"
    default_message = "Assignment group configuration is invalid"


class StaleGroupError(Exception):
    """Raised inside a unit of work when a group's version moved underneath it.

    Never surfaced to callers: the unit of work is rolled back and re-run.
    """

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Group '{group_id}' was modified concurrently")


class InviteCodeCollisionError(Exception):
    """Raised inside a unit of work when a freshly issued invite code was taken."""
