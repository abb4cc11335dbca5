"""SQLAlchemy model for the assignments table.

Assignments are owned by the homework service. The ``group_config`` column
holds the JSON group configuration of group-project assignments.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studylink.infrastructure.persistence.database import Base


class AssignmentModel(Base):
    """SQLAlchemy model for the assignments table.

    Attributes:
        id: Primary key (UUID string).
        class_id: Foreign key to classes table.
        title: Assignment title.
        type: STANDARD, GROUP_PROJECT or SELF_PRACTICE.
        group_config: JSON group configuration (group projects only).
        deadline: Submission deadline.
    """

    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Assignment ID (UUID)",
    )
    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to classes table",
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="STANDARD",
        comment="Homework type",
    )
    group_config: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="JSON group configuration",
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # Relationships
    class_: Mapped["ClassModel"] = relationship(  # noqa: F821
        "ClassModel",
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, title={self.title}, type={self.type})>"
