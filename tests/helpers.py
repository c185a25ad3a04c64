"""Test doubles and builders shared by the unit and integration suites."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from permitflow.db.inmemory import InMemoryApplicationRepository
from permitflow.engine.analysis import AnalysisResult
from permitflow.models.application import Application, Document, FileMeta, Issue
from permitflow.models.common import (
    AnalysisStatus,
    ApplicationStatus,
    DocumentCategory,
    IssueSeverity,
    PermitType,
    ProjectType,
)

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


class ScriptedAnalysisProvider:
    """Returns canned results keyed by file name; approves everything else.

    A scripted ``Exception`` is raised instead of returned.
    """

    def __init__(self) -> None:
        self.results: dict[str, AnalysisResult | Exception] = {}
        self.calls: list[str] = []

    def script(self, file_name: str, outcome: AnalysisResult | Exception) -> None:
        self.results[file_name] = outcome

    async def analyze(self, document: Document) -> AnalysisResult:
        self.calls.append(document.file_name)
        outcome = self.results.get(document.file_name)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome or AnalysisResult(confidence=0.9)


class GatedAnalysisProvider:
    """Holds every analysis until ``release()`` is called."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.started: list[str] = []

    def release(self) -> None:
        self.gate.set()

    async def analyze(self, document: Document) -> AnalysisResult:
        self.started.append(document.file_name)
        await self.gate.wait()
        return AnalysisResult(confidence=0.9)


class SlowAnalysisProvider:
    """Never finishes within any reasonable timeout."""

    async def analyze(self, document: Document) -> AnalysisResult:
        await asyncio.sleep(60)
        return AnalysisResult(confidence=0.9)


class MalformedAnalysisProvider:
    """Returns something other than an AnalysisResult."""

    def __init__(self, value: Any = None) -> None:
        self.value = value

    async def analyze(self, document: Document) -> Any:
        return self.value


class FlakyRepository(InMemoryApplicationRepository):
    """In-memory store whose next ``update`` can be made to fail once."""

    def __init__(self) -> None:
        super().__init__()
        self._next_error: Exception | None = None

    def fail_next_update(self, error: Exception) -> None:
        self._next_error = error

    async def update(self, application: Application) -> None:
        if self._next_error is not None:
            error, self._next_error = self._next_error, None
            raise error
        await super().update(application)


class RecordingNotifier:
    """Collects (previous, current) status pairs."""

    def __init__(self) -> None:
        self.transitions: list[tuple[ApplicationStatus, ApplicationStatus]] = []

    def status_changed(self, application: Application, previous: ApplicationStatus) -> None:
        self.transitions.append((previous, application.status))


def major_issue(description: str = "Missing dimensions on floor plan") -> AnalysisResult:
    """Result that needs correction."""
    return AnalysisResult(
        issues=[
            Issue(
                severity=IssueSeverity.major,
                description=description,
                recommendation="Please revise and reupload the document with corrections.",
            )
        ],
        confidence=0.5,
    )


def file_meta(name: str, mime_type: str = "application/pdf", size_bytes: int = 2048) -> FileMeta:
    """File metadata for a test upload."""
    return FileMeta(file_name=name, mime_type=mime_type, size_bytes=size_bytes)


def make_document(
    category: DocumentCategory,
    status: AnalysisStatus,
    *,
    doc_id: str | None = None,
    minutes: int = 0,
    **overrides: Any,
) -> Document:
    """Document uploaded ``minutes`` after BASE_TIME."""
    fields: dict[str, Any] = {
        "id": doc_id or f"DOC-{category.value}-{minutes}",
        "category": category,
        "file_name": f"{category.value}.pdf",
        "mime_type": "application/pdf",
        "size_bytes": 1024,
        "analysis_status": status,
        "uploaded_at": BASE_TIME + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return Document(**fields)


def make_application(
    required: list[DocumentCategory],
    documents: list[Document] | None = None,
    status: ApplicationStatus = ApplicationStatus.draft,
) -> Application:
    """Bare application aggregate for deriver tests."""
    return Application(
        id="PERMIT-TEST",
        applicant_name="Maria Lopez",
        applicant_email="maria@example.com",
        applicant_phone="3055550142",
        property_address="1200 Brickell Ave",
        project_type=ProjectType.residential,
        permit_type=PermitType.electrical,
        estimated_cost="12500",
        project_description="Panel upgrade and kitchen rewiring.",
        status=status,
        required_documents=required,
        documents=documents or [],
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
