"""Submission entities written by the submission gate."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class LaborDivisionEntry:
    """One member's share of the group work.

    Attributes:
        member_id: Student the entry describes.
        member_name: Display name at submission time.
        task: Short task description.
        contribution_percent: Share of the work, 0 to 100.
        description: Optional free-form notes.
    """

    member_id: str
    member_name: str
    task: str
    contribution_percent: float
    description: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.contribution_percent <= 100:
            raise ValueError("contribution_percent must be between 0 and 100")

    def to_dict(self) -> dict:
        return asdict(self)
