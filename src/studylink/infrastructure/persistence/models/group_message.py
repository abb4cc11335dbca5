"""SQLAlchemy model for the group_messages table.

The table is an append-only log. The integer primary key doubles as the
polling cursor.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studylink.infrastructure.persistence.database import Base


class GroupMessageModel(Base):
    """SQLAlchemy model for the group_messages table.

    Attributes:
        id: Autoincrement primary key, increasing with insertion order.
        group_id: Foreign key to groups table.
        sender_id: Foreign key to users table.
        content: Message text.
        type: TEXT or SYSTEM.
        created_at: Timestamp when the message was written.
    """

    __tablename__ = "group_messages"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to groups table",
    )
    sender_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        comment="Foreign key to users table (sender)",
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="TEXT",
        comment="TEXT or SYSTEM",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    sender: Mapped["UserModel"] = relationship(  # noqa: F821
        "UserModel",
        lazy="joined",
    )

    __table_args__ = (
        Index("ix_group_messages_group_created", "group_id", "created_at"),
    )

    @property
    def sender_name(self) -> str | None:
        return self.sender.name if self.sender is not None else None

    def __repr__(self) -> str:
        return f"<GroupMessage(id={self.id}, group_id={self.group_id}, type={self.type})>"
