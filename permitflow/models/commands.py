"""Administrative update commands - the closed set of permitted mutations."""

from typing import Annotated, Literal

from pydantic import Field

from permitflow.models.common import ApplicationStatus, CamelModel


class SetStatus(CamelModel):
    """Record a human approve/deny decision."""

    op: Literal["set_status"] = "set_status"
    status: ApplicationStatus


class AppendNote(CamelModel):
    """Append a staff note."""

    op: Literal["append_note"] = "append_note"
    text: str = Field(..., min_length=1, max_length=5000)
    author: str | None = None


class AssignTo(CamelModel):
    """Assign the application to a staff member."""

    op: Literal["assign_to"] = "assign_to"
    assignee: str = Field(..., min_length=1)


class SetEstimatedValue(CamelModel):
    """Set the CRM estimated deal value."""

    op: Literal["set_estimated_value"] = "set_estimated_value"
    value: float = Field(..., ge=0)


UpdateCommand = Annotated[
    SetStatus | AppendNote | AssignTo | SetEstimatedValue,
    Field(discriminator="op"),
]
