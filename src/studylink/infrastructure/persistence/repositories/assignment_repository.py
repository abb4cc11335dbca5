"""Repository for reading assignments and their group configuration.

This is the boundary where the JSON ``group_config`` column is parsed, once,
into a typed ``AssignmentConfig``.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.config import get_settings
from studylink.domain.entities import (
    AssignmentConfig,
    AssignmentContext,
    AssignmentType,
    UngroupedPolicy,
)
from studylink.domain.exceptions import InvalidGroupConfigError
from studylink.infrastructure.persistence.models import AssignmentModel


class GroupConfigDocument(BaseModel):
    """Wire shape of the ``group_config`` JSON document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    group_required: bool = Field(True, alias="groupRequired")
    min_size: int | None = Field(None, alias="minSize", ge=1)
    max_size: int | None = Field(None, alias="maxSize", ge=1)
    group_deadline: datetime | None = Field(None, alias="groupDeadline")
    allow_switch: bool = Field(True, alias="allowSwitch")
    ungrouped_policy: UngroupedPolicy = Field(
        UngroupedPolicy.TEACHER_ASSIGN, alias="ungroupedPolicy"
    )


def parse_group_config(raw: str | dict | None) -> AssignmentConfig:
    """Parse a stored group configuration into an ``AssignmentConfig``.

    Missing sizes fall back to the configured defaults.

    Args:
        raw: JSON text, an already decoded mapping, or None.

    Returns:
        The typed configuration.

    Raises:
        InvalidGroupConfigError: If the document is malformed or the size
            bounds are inconsistent.
    """
    settings = get_settings()
    try:
        if raw is None or raw == "":
            document = GroupConfigDocument()
        elif isinstance(raw, str):
            document = GroupConfigDocument.model_validate_json(raw)
        else:
            document = GroupConfigDocument.model_validate(raw)
    except (ValidationError, json.JSONDecodeError) as e:
        raise InvalidGroupConfigError(f"Invalid group configuration: {e}") from e

    try:
        return AssignmentConfig(
            group_required=document.group_required,
            min_size=document.min_size or settings.group_default_min_size,
            max_size=document.max_size or settings.group_default_max_size,
            group_deadline=document.group_deadline,
            allow_switch=document.allow_switch,
            ungrouped_policy=document.ungrouped_policy,
        )
    except ValueError as e:
        raise InvalidGroupConfigError(str(e)) from e


class AssignmentRepository:
    """Read-only repository for assignments."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def get_by_id(self, assignment_id: str) -> AssignmentModel | None:
        """Get an assignment by ID, with its class loaded."""
        result = await self.session.execute(
            select(AssignmentModel).where(AssignmentModel.id == assignment_id)
        )
        return result.scalar_one_or_none()

    async def get_context(self, assignment_id: str) -> AssignmentContext | None:
        """Get an assignment with its owning teacher and parsed configuration.

        Args:
            assignment_id: Assignment ID.

        Returns:
            The assignment context, or None if the assignment does not exist.
        """
        assignment = await self.get_by_id(assignment_id)
        if assignment is None:
            return None

        return AssignmentContext(
            id=assignment.id,
            class_id=assignment.class_id,
            teacher_id=assignment.class_.teacher_id,
            class_name=assignment.class_.name,
            title=assignment.title,
            type=AssignmentType(assignment.type),
            config=parse_group_config(assignment.group_config),
            deadline=assignment.deadline,
        )
