"""Status deriver - recomputes application state from its documents.

Every function here is pure with respect to its inputs except
``apply_derived_state``, which writes the derived fields back onto the
aggregate it is given. Status is always recomputed from scratch, never
patched incrementally:

1. no documents                                  -> draft
2. a required category has no non-rejected copy  -> documents_pending
3. otherwise, over the gating document per required category:
   a. any needs_correction                       -> needs_correction
   b. any pending/analyzing                      -> under_review
   c. all approved                               -> ready_for_approval

approved/denied are sticky human decisions and survive recomputation.
"""

from permitflow.models.application import Application, Document
from permitflow.models.common import (
    DECISION_STATUSES,
    IN_FLIGHT_STATUSES,
    AnalysisStatus,
    ApplicationStatus,
    DocumentCategory,
)


def compute_missing_items(application: Application) -> list[DocumentCategory]:
    """Required categories with no non-rejected document, in requirement order."""
    present = {
        doc.category
        for doc in application.documents
        if doc.analysis_status != AnalysisStatus.rejected
    }
    return [cat for cat in application.required_documents if cat not in present]


def gating_documents(application: Application) -> dict[DocumentCategory, Document]:
    """Latest non-rejected document for each required category.

    Latest means most recent upload; ties go to the later ledger position.
    Older copies stay in the ledger for audit but do not gate status. Documents
    outside the required set (the "other" bucket) never gate.
    """
    required = set(application.required_documents)
    latest: dict[DocumentCategory, tuple[tuple, Document]] = {}

    for position, doc in enumerate(application.documents):
        if doc.category not in required or doc.analysis_status == AnalysisStatus.rejected:
            continue
        rank = (doc.uploaded_at, position)
        current = latest.get(doc.category)
        if current is None or rank >= current[0]:
            latest[doc.category] = (rank, doc)

    return {cat: latest[cat][1] for cat in application.required_documents if cat in latest}


def derive_status(application: Application) -> ApplicationStatus:
    """Compute the application status from its current documents."""
    if application.status in DECISION_STATUSES:
        return application.status

    if not application.documents:
        return ApplicationStatus.draft

    if compute_missing_items(application):
        return ApplicationStatus.documents_pending

    statuses = {doc.analysis_status for doc in gating_documents(application).values()}

    if AnalysisStatus.needs_correction in statuses:
        return ApplicationStatus.needs_correction
    if statuses & IN_FLIGHT_STATUSES:
        return ApplicationStatus.under_review
    return ApplicationStatus.ready_for_approval


def apply_derived_state(application: Application) -> ApplicationStatus:
    """Recompute and store status, missing items and review flags.

    Returns:
        The status before recomputation, so callers can detect transitions.
    """
    previous = application.status

    application.missing_items = compute_missing_items(application)
    application.status = derive_status(application)
    application.ready_for_human_review = application.status == ApplicationStatus.ready_for_approval
    application.complete = application.status in (
        ApplicationStatus.ready_for_approval,
        *DECISION_STATUSES,
    )

    return previous
