"""Permit application aggregate and its owned entities."""

import re
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from permitflow.models.common import (
    DECISION_STATUSES,
    AnalysisStatus,
    ApplicationStatus,
    CamelModel,
    CommentKind,
    DocumentCategory,
    IssueSeverity,
    PermitType,
    ProjectType,
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_COST_RE = re.compile(r"^\d+(\.\d+)?$")


class ApplicantInfo(CamelModel):
    """Applicant and project fields captured by the permit form.

    Accepts the public form's ``fullName``/``email``/``phone`` keys as well
    as the aggregate's own field names.
    """

    applicant_name: str = Field(
        ...,
        validation_alias=AliasChoices("applicantName", "fullName", "applicant_name"),
        serialization_alias="applicantName",
    )
    applicant_email: str = Field(
        ...,
        validation_alias=AliasChoices("applicantEmail", "email", "applicant_email"),
        serialization_alias="applicantEmail",
    )
    applicant_phone: str = Field(
        ...,
        validation_alias=AliasChoices("applicantPhone", "phone", "applicant_phone"),
        serialization_alias="applicantPhone",
    )
    property_address: str = Field(..., min_length=5)
    project_type: ProjectType
    permit_type: PermitType
    estimated_cost: str
    project_description: str = Field(..., min_length=10)

    @field_validator("applicant_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Require a real name."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name is required")
        return v

    @field_validator("applicant_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Check email shape."""
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v

    @field_validator("applicant_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Require 10-15 digits, ignoring punctuation."""
        digits = re.sub(r"\D", "", v)
        if not 10 <= len(digits) <= 15:
            raise ValueError("valid phone number is required")
        return v.strip()

    @field_validator("estimated_cost")
    @classmethod
    def validate_estimated_cost(cls, v: str) -> str:
        """Accept non-negative amounts like '12000', '$12,000.50'."""
        normalized = v.strip().lstrip("$").replace(",", "")
        if not _COST_RE.match(normalized):
            raise ValueError("estimated cost must be a non-negative number")
        return v.strip()


class FileMeta(CamelModel):
    """Uploaded file metadata; binary content is stored elsewhere."""

    file_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1)
    size_bytes: int = Field(..., ge=0)


class Issue(CamelModel):
    """Single analysis finding."""

    severity: IssueSeverity
    description: str
    location: str | None = None  # e.g. "page 3, top right"
    recommendation: str | None = None


class Document(CamelModel):
    """Submitted document and its analysis state."""

    id: str
    category: DocumentCategory
    file_name: str
    mime_type: str
    size_bytes: int = Field(..., ge=0)
    analysis_status: AnalysisStatus = AnalysisStatus.pending
    issues: list[Issue] = Field(default_factory=list)
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Advisory only")
    attempt: int = Field(1, ge=1, description="Incremented on every resubmission")
    uploaded_at: datetime
    last_analyzed_at: datetime | None = None
    page_count: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Comment(CamelModel):
    """Structured system comment; rendered to text at the API edge."""

    timestamp: datetime
    kind: CommentKind
    payload: dict[str, Any] = Field(default_factory=dict)


class Application(CamelModel):
    """Permit application aggregate root."""

    id: str
    applicant_name: str
    applicant_email: str
    applicant_phone: str
    property_address: str
    project_type: ProjectType
    permit_type: PermitType
    estimated_cost: str
    project_description: str

    status: ApplicationStatus = ApplicationStatus.draft
    required_documents: list[DocumentCategory] = Field(..., min_length=1)
    documents: list[Document] = Field(default_factory=list)
    missing_items: list[DocumentCategory] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    ready_for_human_review: bool = False
    complete: bool = False

    # CRM metadata, opaque to the state machine
    notes: list[str] = Field(default_factory=list)
    assigned_to: str | None = None
    estimated_value: float | None = None

    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def validate_missing_subset(self) -> "Application":
        """Ensure missing_items is a subset of required_documents."""
        extra = set(self.missing_items) - set(self.required_documents)
        if extra:
            raise ValueError(f"missing_items not required: {sorted(c.value for c in extra)}")
        return self

    @property
    def is_closed(self) -> bool:
        """True once a human decision has been recorded."""
        return self.status in DECISION_STATUSES

    def find_document(self, document_id: str) -> Document | None:
        """Look up an owned document by id."""
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None
