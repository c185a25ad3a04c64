"""Human-readable text for comments and next steps.

The engine stores structured comments; the wording lives here so it can
change without touching stored data. ``nextSteps`` is derived on every read
and never persisted.
"""

from collections.abc import Iterable

from permitflow.engine.status import gating_documents
from permitflow.models.application import Application, Comment
from permitflow.models.common import (
    BLOCKING_SEVERITIES,
    AnalysisStatus,
    ApplicationStatus,
    CommentKind,
    DocumentCategory,
)


def humanize(categories: Iterable[DocumentCategory | str]) -> str:
    """Join categories as readable text: 'site plan, property deed'."""
    values = (c.value if isinstance(c, DocumentCategory) else str(c) for c in categories)
    return ", ".join(v.replace("_", " ") for v in values)


_STATUS_MESSAGES: dict[str, str] = {
    ApplicationStatus.needs_correction.value: (
        "All required documents have been uploaded, but some need corrections. "
        "Please review the issues and reupload the corrected documents."
    ),
    ApplicationStatus.ready_for_approval.value: (
        "All required documents have been uploaded and analyzed. Your application is now "
        "ready for final review by our team. You will be notified when the review is complete."
    ),
    ApplicationStatus.under_review.value: "All required documents are in. Analysis is in progress.",
}


def render_comment(comment: Comment) -> str:
    """Render a structured comment as a sentence."""
    p = comment.payload
    kind = comment.kind

    if kind == CommentKind.application_created:
        return (
            "Application created. Please upload the following required documents: "
            f"{humanize(p.get('required_documents', []))}."
        )
    if kind == CommentKind.document_submitted:
        return f'Document "{p.get("file_name")}" received. AI analysis in progress...'
    if kind == CommentKind.document_resubmitted:
        return f'Document "{p.get("file_name")}" has been resubmitted. AI analysis in progress...'
    if kind == CommentKind.analysis_completed:
        if p.get("analysis_status") == AnalysisStatus.approved.value:
            message = f'Document "{p.get("file_name")}" has been analyzed and is acceptable.'
        else:
            message = (
                f'Document "{p.get("file_name")}" has been analyzed and needs corrections. '
                "Please review the issues."
            )
        missing = p.get("missing_items") or []
        if missing:
            message += f" You still need to upload: {humanize(missing)}."
        return message
    if kind == CommentKind.analysis_failed:
        return (
            f'Document "{p.get("file_name")}" could not be analyzed automatically. '
            "Please reupload it."
        )
    if kind == CommentKind.document_rejected:
        return f'Document "{p.get("file_name")}" was rejected: {p.get("reason")}'
    if kind == CommentKind.status_changed:
        to_status = p.get("to", "")
        return _STATUS_MESSAGES.get(
            to_status, f"Application status changed to {to_status.replace('_', ' ')}."
        )
    if kind == CommentKind.decision_recorded:
        return f"Application {p.get('status')} by review team."
    if kind == CommentKind.note_added:
        author = p.get("author")
        return f"Note from {author}: {p.get('text')}" if author else f"Note: {p.get('text')}"
    if kind == CommentKind.assignment_changed:
        return f"Assigned to {p.get('assignee')}."
    return kind.value.replace("_", " ")


def build_next_steps(application: Application) -> list[str]:
    """Derive the applicant's next steps from current status and findings."""
    status = application.status
    steps: list[str] = []

    if status == ApplicationStatus.draft:
        steps.append("Complete the application form with all required information.")
        steps.append(
            "Upload the following required documents: "
            f"{humanize(application.required_documents)}."
        )
    elif status == ApplicationStatus.documents_pending:
        if application.missing_items:
            steps.append(
                "Upload the remaining required documents: "
                f"{humanize(application.missing_items)}."
            )
        flagged = [
            doc
            for doc in gating_documents(application).values()
            if doc.analysis_status == AnalysisStatus.needs_correction
        ]
        if flagged:
            steps.append(
                "Correct and reupload the following documents: "
                f"{', '.join(doc.file_name for doc in flagged)}."
            )
    elif status == ApplicationStatus.needs_correction:
        flagged = [
            doc
            for doc in gating_documents(application).values()
            if doc.analysis_status == AnalysisStatus.needs_correction
        ]
        steps.append(
            "Correct and reupload the following documents: "
            f"{', '.join(doc.file_name for doc in flagged)}."
        )
        for doc in flagged:
            for issue in doc.issues:
                if issue.severity in BLOCKING_SEVERITIES:
                    suffix = f" - {issue.recommendation}" if issue.recommendation else ""
                    steps.append(f"For {doc.file_name}: {issue.description}{suffix}")
    elif status in (ApplicationStatus.under_review, ApplicationStatus.documents_uploaded):
        steps.append("Your documents are being analyzed. Check back shortly for results.")
    elif status == ApplicationStatus.ready_for_approval:
        steps.append("Your application is complete and ready for final review by our team.")
        steps.append("You will be notified when the review is complete.")
    elif status == ApplicationStatus.approved:
        steps.append("Your permit application has been approved!")
        steps.append("You can download your permit from the dashboard.")
    elif status == ApplicationStatus.denied:
        steps.append("Your permit application has been denied.")
        steps.append("Please review the comments from our team for more information.")

    return steps
