"""SQLAlchemy model for the submissions table.

Submissions belong to the grading service. The submission gate only writes
the group linkage, the file references and the labor division.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from studylink.infrastructure.persistence.database import Base


class SubmissionModel(Base):
    """SQLAlchemy model for the submissions table.

    Attributes:
        id: Primary key (UUID string).
        student_id: Foreign key to users table.
        assignment_id: Foreign key to assignments table.
        group_id: Group that submitted on the student's behalf.
        files: JSON list of stored file references.
        labor_division: JSON list of labor division entries.
        submitted_at: Timestamp of the latest submission.
    """

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Submission ID (UUID)",
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to users table",
    )
    assignment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to assignments table",
    )
    group_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
        comment="Submitting group",
    )
    files: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="JSON list of file references",
    )
    labor_division: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="JSON labor division",
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "assignment_id", name="uq_submissions_student_assignment"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, student_id={self.student_id}, "
            f"assignment_id={self.assignment_id})>"
        )
