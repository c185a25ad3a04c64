"""Dashboard summary across all applications."""

from collections import Counter

from permitflow.models.application import Application
from permitflow.models.common import AnalysisStatus, ApplicationStatus, CamelModel


class DashboardSummary(CamelModel):
    """Aggregate counts for the admin dashboard."""

    total_applications: int
    applications_by_status: dict[str, int]
    documents_total: int
    documents_by_analysis_status: dict[str, int]
    average_confidence: float | None
    awaiting_human_review: int


def build_dashboard_summary(applications: list[Application]) -> DashboardSummary:
    """Summarize applications and their documents.

    Average confidence only covers documents with a finished analysis.
    """
    by_status = Counter(app.status.value for app in applications)
    documents = [doc for app in applications for doc in app.documents]
    by_analysis = Counter(doc.analysis_status.value for doc in documents)

    analyzed = [
        doc.confidence
        for doc in documents
        if doc.analysis_status in (AnalysisStatus.approved, AnalysisStatus.needs_correction)
    ]

    return DashboardSummary(
        total_applications=len(applications),
        applications_by_status={s.value: by_status.get(s.value, 0) for s in ApplicationStatus},
        documents_total=len(documents),
        documents_by_analysis_status={s.value: by_analysis.get(s.value, 0) for s in AnalysisStatus},
        average_confidence=round(sum(analyzed) / len(analyzed), 4) if analyzed else None,
        awaiting_human_review=sum(1 for app in applications if app.ready_for_human_review),
    )
