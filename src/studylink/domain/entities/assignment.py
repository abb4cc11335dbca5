"""Assignment entities consumed read-only by the group formation services.

Assignments, classes and rosters are owned by the surrounding homework
platform. Only the slice needed to form groups is modelled here.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class AssignmentType(str, Enum):
    """Homework types. Only group projects form groups."""

    STANDARD = "STANDARD"
    GROUP_PROJECT = "GROUP_PROJECT"
    SELF_PRACTICE = "SELF_PRACTICE"


class UngroupedPolicy(str, Enum):
    """What happens to students still ungrouped at the deadline."""

    TEACHER_ASSIGN = "TEACHER_ASSIGN"
    AUTO_ASSIGN = "AUTO_ASSIGN"
    ALLOW_INDIVIDUAL = "ALLOW_INDIVIDUAL"


@dataclass(frozen=True)
class AssignmentConfig:
    """Group-related configuration of one assignment.

    Attributes:
        group_required: Whether students must submit as a group.
        min_size: Minimum members needed to submit.
        max_size: Maximum members a group may hold.
        group_deadline: After this instant no group may be created or joined.
        allow_switch: Whether students may voluntarily leave a group.
        ungrouped_policy: Handling of students left without a group.
    """

    min_size: int
    max_size: int
    group_required: bool = True
    group_deadline: datetime | None = None
    allow_switch: bool = True
    ungrouped_policy: UngroupedPolicy = UngroupedPolicy.TEACHER_ASSIGN

    def __post_init__(self) -> None:
        """Validate the size bounds."""
        if self.min_size < 1:
            raise ValueError("min_size must be at least 1")
        if self.min_size > self.max_size:
            raise ValueError(
                f"min_size ({self.min_size}) must not exceed max_size ({self.max_size})"
            )

    def deadline_passed(self, now: datetime | None = None) -> bool:
        """Check whether the group formation deadline has elapsed."""
        if self.group_deadline is None:
            return False
        now = now or datetime.now(timezone.utc)
        deadline = self.group_deadline
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        return now > deadline

    def clamp_size(self, preferred_size: int | None) -> int:
        """Clamp a preferred group size into [min_size, max_size].

        A missing preference means "as large as allowed".
        """
        return min(self.max_size, max(self.min_size, preferred_size or self.max_size))


@dataclass(frozen=True)
class AssignmentContext:
    """An assignment together with the class facts the services need.

    Attributes:
        id: Assignment ID.
        class_id: Class the assignment belongs to.
        teacher_id: Teacher owning the class.
        title: Assignment title.
        type: Homework type.
        config: Parsed group configuration.
    """

    id: str
    class_id: str
    teacher_id: str
    title: str
    type: AssignmentType
    config: AssignmentConfig
    class_name: str | None = None
    deadline: datetime | None = None

    @property
    def is_group_project(self) -> bool:
        return self.type == AssignmentType.GROUP_PROJECT
