"""Pydantic schemas for group submissions."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studylink.domain.entities import LaborDivisionEntry


class LaborDivisionItem(BaseModel):
    """Schema for one member's share of the work."""

    member_id: str = Field(..., min_length=1)
    member_name: str
    task: str
    contribution_percent: float = Field(..., ge=0, le=100)
    description: str | None = None

    def to_entry(self) -> LaborDivisionEntry:
        return LaborDivisionEntry(
            member_id=self.member_id,
            member_name=self.member_name,
            task=self.task,
            contribution_percent=self.contribution_percent,
            description=self.description,
        )


class GroupSubmitRequest(BaseModel):
    """Schema for submitting a group project."""

    assignment_id: str = Field(..., min_length=1)
    files: list[str] = Field(..., min_length=1, description="Stored file references")
    labor_division: list[LaborDivisionItem] = Field(..., min_length=1)


class SubmissionResponse(BaseModel):
    """Schema for a stored submission."""

    id: str
    student_id: str
    assignment_id: str
    group_id: str | None = None
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupSubmitResponse(BaseModel):
    """Schema for the outcome of a group submission."""

    message: str
    group_id: str
    submissions: list[SubmissionResponse]
