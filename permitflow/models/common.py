"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectType(str, Enum):
    """Kind of project the permit covers."""

    residential = "residential"
    commercial = "commercial"
    industrial = "industrial"
    mixed_use = "mixed-use"


class PermitType(str, Enum):
    """Permit being applied for."""

    building = "building"
    electrical = "electrical"
    plumbing = "plumbing"
    mechanical = "mechanical"
    demolition = "demolition"
    zoning = "zoning"
    sign = "sign"
    grading = "grading"


class DocumentCategory(str, Enum):
    """Supporting paperwork categories."""

    application_form = "application_form"
    architectural_drawing = "architectural_drawing"
    site_plan = "site_plan"
    structural_plans = "structural_plans"
    electrical_plans = "electrical_plans"
    plumbing_plans = "plumbing_plans"
    mechanical_plans = "mechanical_plans"
    property_survey = "property_survey"
    plot_plan = "plot_plan"
    construction_details = "construction_details"
    energy_calculations = "energy_calculations"
    property_deed = "property_deed"
    contractor_license = "contractor_license"
    homeowner_id = "homeowner_id"
    other = "other"


class AnalysisStatus(str, Enum):
    """Per-document analysis status."""

    pending = "pending"
    analyzing = "analyzing"
    approved = "approved"
    needs_correction = "needs_correction"
    rejected = "rejected"


class ApplicationStatus(str, Enum):
    """Overall application status."""

    draft = "draft"
    documents_pending = "documents_pending"
    documents_uploaded = "documents_uploaded"
    under_review = "under_review"
    needs_correction = "needs_correction"
    ready_for_approval = "ready_for_approval"
    approved = "approved"
    denied = "denied"


class IssueSeverity(str, Enum):
    """Severity of an analysis finding."""

    critical = "critical"
    major = "major"
    minor = "minor"
    info = "info"


class CommentKind(str, Enum):
    """Kind of system comment in the application log."""

    application_created = "application_created"
    document_submitted = "document_submitted"
    document_resubmitted = "document_resubmitted"
    analysis_completed = "analysis_completed"
    analysis_failed = "analysis_failed"
    document_rejected = "document_rejected"
    status_changed = "status_changed"
    decision_recorded = "decision_recorded"
    note_added = "note_added"
    assignment_changed = "assignment_changed"


# Terminal human decisions; never recomputed away by document mutations.
DECISION_STATUSES = frozenset({ApplicationStatus.approved, ApplicationStatus.denied})

# Analysis states that still await a verdict.
IN_FLIGHT_STATUSES = frozenset({AnalysisStatus.pending, AnalysisStatus.analyzing})

BLOCKING_SEVERITIES = frozenset({IssueSeverity.critical, IssueSeverity.major})
