"""SQLAlchemy models for classes and their rosters.

Rosters are owned by the class management service and are read-only here.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from studylink.infrastructure.persistence.database import Base


class ClassModel(Base):
    """SQLAlchemy model for the classes table.

    Attributes:
        id: Primary key (UUID string).
        name: Class name.
        teacher_id: Teacher owning the class.
    """

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Class ID (UUID)",
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Class name",
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Foreign key to users table (owning teacher)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Class(id={self.id}, name={self.name})>"


class ClassStudentModel(Base):
    """Junction table enrolling students in classes.

    The enrollment timestamp defines roster order.

    Attributes:
        class_id: Foreign key to classes table.
        student_id: Foreign key to users table.
        created_at: Enrollment timestamp.
    """

    __tablename__ = "class_students"

    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Foreign key to classes table",
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Foreign key to users table",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ClassStudent(class_id={self.class_id}, student_id={self.student_id})>"
