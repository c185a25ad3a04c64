"""Tests for the dashboard summary."""

from permitflow.engine.summary import build_dashboard_summary
from permitflow.models.common import AnalysisStatus as A
from permitflow.models.common import ApplicationStatus as S
from permitflow.models.common import DocumentCategory as Cat
from tests.helpers import make_application, make_document


def test_empty_summary() -> None:
    """No applications, no averages."""
    summary = build_dashboard_summary([])

    assert summary.total_applications == 0
    assert summary.documents_total == 0
    assert summary.average_confidence is None
    assert summary.applications_by_status["draft"] == 0


def test_summary_counts_and_average() -> None:
    """Only finished analyses feed the confidence average."""
    ready = make_application(
        [Cat.application_form],
        [make_document(Cat.application_form, A.approved, confidence=0.9)],
        status=S.ready_for_approval,
    )
    ready.ready_for_human_review = True
    pending = make_application(
        [Cat.application_form, Cat.site_plan],
        [
            make_document(Cat.application_form, A.needs_correction, confidence=0.5),
            make_document(Cat.site_plan, A.analyzing),
        ],
        status=S.needs_correction,
    )

    summary = build_dashboard_summary([ready, pending])

    assert summary.total_applications == 2
    assert summary.applications_by_status["ready_for_approval"] == 1
    assert summary.applications_by_status["needs_correction"] == 1
    assert summary.documents_total == 3
    assert summary.documents_by_analysis_status["analyzing"] == 1
    assert summary.average_confidence == 0.7
    assert summary.awaiting_human_review == 1
    assert summary.model_dump(by_alias=True)["awaitingHumanReview"] == 1
