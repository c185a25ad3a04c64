"""Permit application service - registry, document ledger and analysis loop.

All mutations of one application (submit, resubmit, reject, update and
analysis completion) run under that application's lock against a fresh copy
loaded from the repository. The copy is only written back once the whole
mutation succeeded, so a failing call leaves no partial state. Different
applications never share a lock.
"""

import asyncio
import logging
import time
import uuid
import weakref
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import ValidationError

from permitflow.db.repositories import ApplicationRepository
from permitflow.engine.analysis import (
    AnalysisProvider,
    AnalysisResult,
    failure_result,
    run_analysis,
)
from permitflow.engine.errors import (
    AnalysisFailure,
    ApplicationValidationError,
    InvalidCategoryError,
    InvalidTransitionError,
    NotFoundError,
)
from permitflow.engine.requirements import resolve_required_documents
from permitflow.engine.status import apply_derived_state
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
    DECISION_STATUSES,
    IN_FLIGHT_STATUSES,
    AnalysisStatus,
    ApplicationStatus,
    CommentKind,
    DocumentCategory,
    IssueSeverity,
)
from permitflow.utils.logging import StructuredAnalysisLogger
from permitflow.utils.metrics import PrometheusEngineMetrics

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class StatusNotifier(Protocol):
    """Receives application snapshots after each status change."""

    def status_changed(self, application: Application, previous: ApplicationStatus) -> None:
        """Called after the new state has been stored."""
        ...


class ApplicationLocks:
    """One asyncio lock per application id.

    Locks are held weakly: once no coroutine holds or awaits a lock it is
    dropped, so the table only tracks applications with work in progress.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def for_application(self, application_id: str) -> asyncio.Lock:
        """Get or create the lock serializing mutations of an application."""
        lock = self._locks.get(application_id)
        if lock is None:
            lock = self._locks[application_id] = asyncio.Lock()
        return lock


class PermitService:
    """Creates applications, tracks their documents and derives their status."""

    def __init__(
        self,
        repository: ApplicationRepository,
        provider: AnalysisProvider,
        *,
        analysis_timeout_s: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
        notifier: StatusNotifier | None = None,
        metrics: PrometheusEngineMetrics | None = None,
        analysis_logger: StructuredAnalysisLogger | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Application storage
            provider: Document analysis implementation
            analysis_timeout_s: Per-analysis timeout; a timeout settles the
                document as needs_correction
            clock: Source of timestamps
            notifier: Optional collaborator told about status changes
            metrics: Metrics sink
            analysis_logger: Structured logger for analysis outcomes
        """
        self._repository = repository
        self._provider = provider
        self._analysis_timeout_s = analysis_timeout_s
        self._clock = clock
        self._notifier = notifier
        self._metrics = metrics or PrometheusEngineMetrics()
        self._analysis_logger = analysis_logger or StructuredAnalysisLogger()
        self._locks = ApplicationLocks()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def repository(self) -> ApplicationRepository:
        """Backing repository."""
        return self._repository

    # Registry

    async def create_application(self, applicant: ApplicantInfo | Mapping[str, Any]) -> Application:
        """Create a new application in draft status.

        Args:
            applicant: Validated applicant info or raw form fields

        Returns:
            The stored application

        Raises:
            ApplicationValidationError: If applicant fields are missing or malformed
        """
        if not isinstance(applicant, ApplicantInfo):
            try:
                applicant = ApplicantInfo.model_validate(applicant)
            except ValidationError as e:
                raise ApplicationValidationError(
                    "Invalid application fields",
                    errors=e.errors(include_url=False, include_context=False, include_input=False),
                ) from e

        required = list(resolve_required_documents(applicant.permit_type, applicant.project_type))
        now = self._clock()

        application = Application(
            id=_new_id("PERMIT"),
            **applicant.model_dump(),
            status=ApplicationStatus.draft,
            required_documents=required,
            missing_items=list(required),
            comments=[
                Comment(
                    timestamp=now,
                    kind=CommentKind.application_created,
                    payload={"required_documents": [c.value for c in required]},
                )
            ],
            created_at=now,
            updated_at=now,
        )

        await self._repository.add(application)
        self._metrics.inc_created(application.permit_type.value, application.project_type.value)
        logger.info(
            "Created application %s (%s/%s), %d documents required",
            application.id,
            application.permit_type.value,
            application.project_type.value,
            len(required),
        )

        return application

    async def get_application(self, application_id: str) -> Application:
        """Get application by ID.

        Raises:
            NotFoundError: If no such application exists
        """
        application = await self._repository.get(application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    async def list_applications(self) -> list[Application]:
        """List all applications in creation order."""
        return await self._repository.list()

    async def update_application(
        self, application_id: str, commands: Sequence[UpdateCommand]
    ) -> Application:
        """Apply administrative commands atomically.

        Only approved/denied can be set, and only while the application is
        ready for human review.

        Raises:
            NotFoundError: If no such application exists
            InvalidTransitionError: If a status command is not allowed
        """
        async with self._locks.for_application(application_id):
            application = await self.get_application(application_id)
            if not commands:
                return application

            previous = application.status
            now = self._clock()

            for command in commands:
                self._apply_command(application, command, now)

            await self._commit(application, previous, now)
            return application

    def _apply_command(self, application: Application, command: UpdateCommand, now: datetime) -> None:
        if isinstance(command, SetStatus):
            if command.status not in DECISION_STATUSES:
                raise InvalidTransitionError(
                    f"Status {command.status.value} cannot be set directly; "
                    "only approved or denied may be recorded"
                )
            if not application.ready_for_human_review:
                raise InvalidTransitionError(
                    f"Application {application.id} is {application.status.value}, "
                    "not ready for a decision"
                )
            application.status = command.status
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.decision_recorded,
                    payload={"status": command.status.value},
                )
            )
        elif isinstance(command, AppendNote):
            application.notes.append(command.text)
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.note_added,
                    payload={"text": command.text, "author": command.author},
                )
            )
        elif isinstance(command, AssignTo):
            application.assigned_to = command.assignee
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.assignment_changed,
                    payload={"assignee": command.assignee},
                )
            )
        elif isinstance(command, SetEstimatedValue):
            application.estimated_value = command.value
        else:
            raise TypeError(f"Unsupported command: {command!r}")

    # Document ledger

    async def submit_document(
        self, application_id: str, category: DocumentCategory | str, file_meta: FileMeta
    ) -> Document:
        """Append a document and start its analysis.

        Args:
            application_id: Owning application
            category: One of the required categories, or "other"
            file_meta: Uploaded file metadata

        Returns:
            The new document, already in analyzing status

        Raises:
            NotFoundError: If no such application exists
            InvalidCategoryError: If the category does not apply to this application
            InvalidTransitionError: If the application is already decided
        """
        async with self._locks.for_application(application_id):
            application = await self.get_application(application_id)
            self._ensure_open(application)
            doc_category = self._resolve_category(application, category)

            previous = application.status
            now = self._clock()

            document = Document(
                id=_new_id("DOC"),
                category=doc_category,
                file_name=file_meta.file_name,
                mime_type=file_meta.mime_type,
                size_bytes=file_meta.size_bytes,
                analysis_status=AnalysisStatus.pending,
                uploaded_at=now,
            )
            # Analysis is scheduled below, before the lock is released
            document.analysis_status = AnalysisStatus.analyzing

            application.documents.append(document)
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.document_submitted,
                    payload={
                        "document_id": document.id,
                        "category": doc_category.value,
                        "file_name": document.file_name,
                    },
                )
            )

            await self._commit(application, previous, now)
            self._metrics.inc_submitted(doc_category.value, "submit")
            self._schedule_analysis(application_id, document.id, document.attempt)

            return document.model_copy(deep=True)

    async def resubmit_document(
        self, application_id: str, document_id: str, file_meta: FileMeta
    ) -> Document:
        """Replace a document's file in place and re-run analysis.

        The document keeps its id and category; issues are cleared and its
        status goes back to pending.

        Raises:
            NotFoundError: If the application or document does not exist
            InvalidTransitionError: If the application is already decided
        """
        async with self._locks.for_application(application_id):
            application = await self.get_application(application_id)
            self._ensure_open(application)
            document = self._require_document(application, document_id)

            previous = application.status
            now = self._clock()

            document.file_name = file_meta.file_name
            document.mime_type = file_meta.mime_type
            document.size_bytes = file_meta.size_bytes
            document.uploaded_at = now
            document.analysis_status = AnalysisStatus.pending
            document.issues = []
            document.confidence = 0.0
            document.attempt += 1
            document.last_analyzed_at = None
            document.page_count = None
            document.metadata = {}

            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.document_resubmitted,
                    payload={
                        "document_id": document.id,
                        "category": document.category.value,
                        "file_name": document.file_name,
                        "attempt": document.attempt,
                    },
                )
            )

            await self._commit(application, previous, now)
            self._metrics.inc_submitted(document.category.value, "resubmit")
            self._schedule_analysis(application_id, document.id, document.attempt)

            return document.model_copy(deep=True)

    async def reject_document(self, application_id: str, document_id: str, reason: str) -> Document:
        """Administratively reject a document.

        This is the only path to ``rejected``. The category counts as missing
        again unless another non-rejected copy exists.

        Raises:
            NotFoundError: If the application or document does not exist
            InvalidTransitionError: If the application is already decided
        """
        async with self._locks.for_application(application_id):
            application = await self.get_application(application_id)
            self._ensure_open(application)
            document = self._require_document(application, document_id)

            previous = application.status
            now = self._clock()

            document.analysis_status = AnalysisStatus.rejected
            document.issues.append(
                Issue(
                    severity=IssueSeverity.critical,
                    description=reason,
                    recommendation="Upload a replacement document.",
                )
            )
            document.last_analyzed_at = now

            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.document_rejected,
                    payload={
                        "document_id": document.id,
                        "file_name": document.file_name,
                        "reason": reason,
                    },
                )
            )

            await self._commit(application, previous, now)
            return document.model_copy(deep=True)

    # Analysis

    def _schedule_analysis(self, application_id: str, document_id: str, attempt: int) -> None:
        task = asyncio.get_running_loop().create_task(
            self._analyze(application_id, document_id, attempt),
            name=f"analysis-{document_id}-{attempt}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _analyze(self, application_id: str, document_id: str, attempt: int) -> None:
        started = time.monotonic()
        try:
            snapshot = await self._begin_analysis(application_id, document_id, attempt)
            if snapshot is None:
                return

            result = await run_analysis(self._provider, snapshot, self._analysis_timeout_s)

            await self.complete_analysis(
                application_id,
                document_id,
                attempt,
                result,
                latency_ms=(time.monotonic() - started) * 1000,
            )
        except Exception as e:
            logger.exception(
                "Analysis bookkeeping failed for application %s document %s",
                application_id,
                document_id,
            )
            await self._settle_failed_analysis(application_id, document_id, attempt, e, started)

    async def _settle_failed_analysis(
        self,
        application_id: str,
        document_id: str,
        attempt: int,
        error: Exception,
        started: float,
    ) -> None:
        """Retry completion once with a failure result so the document settles."""
        result = failure_result(AnalysisFailure(f"{type(error).__name__}: {error}"))
        try:
            await self.complete_analysis(
                application_id,
                document_id,
                attempt,
                result,
                latency_ms=(time.monotonic() - started) * 1000,
            )
        except Exception:
            logger.exception(
                "Could not record analysis failure for application %s document %s",
                application_id,
                document_id,
            )

    async def _begin_analysis(
        self, application_id: str, document_id: str, attempt: int
    ) -> Document | None:
        """Move a pending document to analyzing; None if the attempt is stale."""
        async with self._locks.for_application(application_id):
            application = await self._repository.get(application_id)
            if application is None:
                return None
            document = application.find_document(document_id)
            if document is None or document.attempt != attempt:
                return None
            if document.analysis_status not in IN_FLIGHT_STATUSES:
                return None

            if document.analysis_status == AnalysisStatus.pending:
                previous = application.status
                now = self._clock()
                document.analysis_status = AnalysisStatus.analyzing
                await self._commit(application, previous, now)

            return document.model_copy(deep=True)

    async def complete_analysis(
        self,
        application_id: str,
        document_id: str,
        attempt: int,
        result: AnalysisResult,
        *,
        latency_ms: float = 0.0,
    ) -> Document | None:
        """Store an analysis result and recompute the application.

        Results for superseded attempts, or for documents no longer awaiting
        analysis (e.g. rejected meanwhile), are discarded.

        Returns:
            The updated document, or None if the result was discarded
        """
        async with self._locks.for_application(application_id):
            application = await self._repository.get(application_id)
            if application is None:
                logger.warning("Analysis finished for unknown application %s", application_id)
                return None

            document = application.find_document(document_id)
            if (
                document is None
                or document.attempt != attempt
                or document.analysis_status not in IN_FLIGHT_STATUSES
            ):
                logger.debug("Discarding stale analysis for %s attempt %d", document_id, attempt)
                return None

            previous = application.status
            now = self._clock()

            document.issues = list(result.issues)
            document.analysis_status = result.status
            document.confidence = min(1.0, max(0.0, result.confidence))
            document.page_count = result.page_count
            document.metadata = dict(result.metadata)
            document.last_analyzed_at = now

            # Recompute first so the comment can report what is still missing
            apply_derived_state(application)
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.analysis_failed if result.failed else CommentKind.analysis_completed,
                    payload={
                        "document_id": document.id,
                        "file_name": document.file_name,
                        "analysis_status": document.analysis_status.value,
                        "issue_count": len(document.issues),
                        "missing_items": [c.value for c in application.missing_items],
                    },
                )
            )

            await self._commit(application, previous, now)

            self._metrics.record_analysis(document.analysis_status.value, latency_ms)
            self._analysis_logger.log_analysis(
                application_id=application_id,
                document_id=document_id,
                attempt=attempt,
                outcome=document.analysis_status.value,
                latency_ms=latency_ms,
                issue_count=len(document.issues),
                error_reason=document.issues[0].description if result.failed else None,
            )

            return document.model_copy(deep=True)

    async def wait_for_analyses(self) -> None:
        """Wait until every scheduled analysis has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # Helpers

    async def _commit(
        self, application: Application, previous: ApplicationStatus, now: datetime
    ) -> None:
        """Recompute derived state, log any transition and store the snapshot."""
        apply_derived_state(application)
        changed = application.status != previous

        if changed:
            application.comments.append(
                Comment(
                    timestamp=now,
                    kind=CommentKind.status_changed,
                    payload={"from": previous.value, "to": application.status.value},
                )
            )

        application.updated_at = now
        await self._repository.update(application)

        if changed:
            self._metrics.inc_transition(previous.value, application.status.value)
            self._analysis_logger.log_transition(
                application.id, previous.value, application.status.value
            )
            self._notify(application, previous)

    def _notify(self, application: Application, previous: ApplicationStatus) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.status_changed(application.model_copy(deep=True), previous)
        except Exception:
            logger.exception("Status notifier failed for application %s", application.id)

    @staticmethod
    def _ensure_open(application: Application) -> None:
        if application.is_closed:
            raise InvalidTransitionError(
                f"Application {application.id} is {application.status.value}; "
                "documents can no longer change"
            )

    @staticmethod
    def _require_document(application: Application, document_id: str) -> Document:
        document = application.find_document(document_id)
        if document is None:
            raise NotFoundError(
                f"Document {document_id} not found in application {application.id}"
            )
        return document

    @staticmethod
    def _resolve_category(
        application: Application, category: DocumentCategory | str
    ) -> DocumentCategory:
        try:
            doc_category = DocumentCategory(category)
        except ValueError as e:
            raise InvalidCategoryError(f"Unknown document category: {category!r}") from e

        if doc_category != DocumentCategory.other and doc_category not in application.required_documents:
            raise InvalidCategoryError(
                f"Category {doc_category.value} is not required for application {application.id}"
            )
        return doc_category
