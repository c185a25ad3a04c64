"""Models package - re-exports for convenience."""

from permitflow.models.application import (
    ApplicantInfo,
    Application,
    Comment,
    Document,
    FileMeta,
    Issue,
)
from permitflow.models.commands import (
    AppendNote,
    AssignTo,
    SetEstimatedValue,
    SetStatus,
    UpdateCommand,
)
from permitflow.models.common import (
    AnalysisStatus,
    ApplicationStatus,
    CamelModel,
    CommentKind,
    DocumentCategory,
    IssueSeverity,
    PermitType,
    ProjectType,
)

__all__ = [
    # Common
    "CamelModel",
    "ProjectType",
    "PermitType",
    "DocumentCategory",
    "AnalysisStatus",
    "ApplicationStatus",
    "IssueSeverity",
    "CommentKind",
    # Aggregate
    "ApplicantInfo",
    "Application",
    "Document",
    "FileMeta",
    "Issue",
    "Comment",
    # Commands
    "UpdateCommand",
    "SetStatus",
    "AppendNote",
    "AssignTo",
    "SetEstimatedValue",
]
