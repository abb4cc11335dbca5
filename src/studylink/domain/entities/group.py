"""Group entities for project homework teams."""

from dataclasses import dataclass
from enum import Enum


class GroupStatus(str, Enum):
    """Lifecycle states of a group.

    FORMING is the only state in which membership may change. Both
    transitions out of it are one-way.
    """

    FORMING = "FORMING"
    LOCKED = "LOCKED"
    SUBMITTED = "SUBMITTED"


class MemberRole(str, Enum):
    """Role of a student inside a group."""

    LEADER = "LEADER"
    MEMBER = "MEMBER"


@dataclass(frozen=True)
class GroupCapacity:
    """Current member count of a group against the configured maximum."""

    count: int
    max_size: int

    @property
    def is_full(self) -> bool:
        return self.count >= self.max_size

    @property
    def free(self) -> int:
        return max(0, self.max_size - self.count)
