"""SQLAlchemy models for project groups and their memberships."""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studylink.infrastructure.persistence.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GroupModel(Base):
    """SQLAlchemy model for the groups table.

    Attributes:
        id: Primary key (UUID string).
        assignment_id: Foreign key to assignments table.
        name: Group name.
        invite_code: Globally unique join code (SL-XXXX).
        leader_id: Student currently holding the LEADER role.
        status: FORMING, LOCKED or SUBMITTED.
        version: Bumped by every membership mutation (optimistic concurrency).
        created_at: Timestamp when the group was created.
        updated_at: Timestamp when the group was last updated.
    """

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Group ID (UUID)",
    )
    assignment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to assignments table",
    )
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Group name",
    )
    invite_code: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Invite code (SL-XXXX)",
    )
    leader_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        comment="Foreign key to users table (leader)",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="FORMING",
        comment="Lifecycle status",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Membership version for compare-and-swap updates",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Relationships
    members: Mapped[list["GroupMemberModel"]] = relationship(
        "GroupMemberModel",
        lazy="selectin",
        order_by=lambda: [GroupMemberModel.joined_at, GroupMemberModel.id],
        viewonly=True,
    )

    __table_args__ = (
        UniqueConstraint("invite_code", name="uq_groups_invite_code"),
        Index("ix_groups_assignment_created", "assignment_id", "created_at"),
    )

    @property
    def member_count(self) -> int:
        return len(self.members)

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name}, status={self.status})>"


class GroupMemberModel(Base):
    """SQLAlchemy model for the group_members table.

    ``assignment_id`` duplicates the group's assignment so the store itself
    guarantees a student sits in at most one group per assignment.

    Attributes:
        id: Autoincrement primary key (tie-breaker for join order).
        group_id: Foreign key to groups table.
        assignment_id: Assignment of the group.
        student_id: Foreign key to users table.
        role: LEADER or MEMBER.
        joined_at: Timestamp when the student joined.
    """

    __tablename__ = "group_members"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to groups table",
    )
    assignment_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="Assignment of the group",
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to users table",
    )
    role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="MEMBER",
        comment="LEADER or MEMBER",
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # Relationships
    student: Mapped["UserModel"] = relationship(  # noqa: F821
        "UserModel",
        lazy="joined",
    )

    __table_args__ = (
        UniqueConstraint("group_id", "student_id", name="uq_group_members_group_student"),
        UniqueConstraint(
            "assignment_id", "student_id", name="uq_group_members_assignment_student"
        ),
    )

    @property
    def student_name(self) -> str | None:
        return self.student.name if self.student is not None else None

    def __repr__(self) -> str:
        return (
            f"<GroupMember(group_id={self.group_id}, student_id={self.student_id}, "
            f"role={self.role})>"
        )
