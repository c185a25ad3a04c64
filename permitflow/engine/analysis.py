"""Document analysis providers and the issue -> status policy.

Analysis is the one asynchronous collaborator of the engine. Providers only
inspect a document and report findings; the service owns every state change.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Protocol

from permitflow.config import Settings
from permitflow.engine.errors import AnalysisFailure
from permitflow.models.application import Document, Issue
from permitflow.models.common import BLOCKING_SEVERITIES, AnalysisStatus, IssueSeverity

logger = logging.getLogger(__name__)

REUPLOAD_RECOMMENDATION = "Please revise and reupload the document with corrections."


@dataclass
class AnalysisResult:
    """Findings reported by an analysis provider."""

    issues: list[Issue] = field(default_factory=list)
    confidence: float = 0.0
    page_count: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    failed: bool = False

    @property
    def status(self) -> AnalysisStatus:
        """Terminal analysis status implied by the findings."""
        return settle_analysis_status(self.issues)


def settle_analysis_status(issues: list[Issue]) -> AnalysisStatus:
    """Map findings to a terminal status.

    Any critical or major issue needs correction; minor/info findings (or none)
    are approved. Analysis never produces ``rejected``.
    """
    if any(issue.severity in BLOCKING_SEVERITIES for issue in issues):
        return AnalysisStatus.needs_correction
    return AnalysisStatus.approved


def failure_result(failure: AnalysisFailure) -> AnalysisResult:
    """Convert a collaborator failure into a needs-correction result."""
    return AnalysisResult(
        issues=[
            Issue(
                severity=IssueSeverity.critical,
                description=f"Automated analysis could not be completed: {failure}",
                recommendation="Please reupload the document or contact support.",
            )
        ],
        confidence=0.0,
        failed=True,
    )


class AnalysisProvider(Protocol):
    """Protocol for document analysis implementations."""

    async def analyze(self, document: Document) -> AnalysisResult:
        """Inspect a document and report findings.

        Args:
            document: Snapshot of the document under analysis

        Returns:
            AnalysisResult with issues and an advisory confidence
        """
        ...


# (severity, description) pairs used by the demo analyzer
SIMULATED_ISSUES: tuple[tuple[IssueSeverity, str], ...] = (
    (IssueSeverity.critical, "Missing required signature on page 1"),
    (IssueSeverity.major, "Incorrect scale used for measurements"),
    (IssueSeverity.major, "Missing dimensions on floor plan"),
    (IssueSeverity.minor, "Low resolution in certain areas making details difficult to discern"),
    (IssueSeverity.info, "Consider adding more detailed annotations for clearer understanding"),
)


class SimulatedAnalysisProvider:
    """Demo analyzer: waits, then reports randomly drawn findings."""

    def __init__(
        self,
        rng: random.Random | None = None,
        min_delay_ms: int = 1000,
        max_delay_ms: int = 3000,
        issue_rate: float = 0.8,
    ) -> None:
        """Initialize simulated provider.

        Args:
            rng: Random source (seed it for reproducible runs)
            min_delay_ms: Lower bound of the simulated processing time
            max_delay_ms: Upper bound of the simulated processing time
            issue_rate: Probability that a document gets any findings
        """
        self._rng = rng or random.Random()
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max(min_delay_ms, max_delay_ms)
        self._issue_rate = issue_rate

    async def analyze(self, document: Document) -> AnalysisResult:
        """Simulate analysis of a document."""
        delay_ms = self._rng.randint(self._min_delay_ms, self._max_delay_ms)
        if delay_ms:
            await asyncio.sleep(delay_ms / 1000)

        issues: list[Issue] = []
        if self._rng.random() < self._issue_rate:
            for _ in range(self._rng.randint(1, 3)):
                severity, description = self._rng.choice(SIMULATED_ISSUES)
                issues.append(
                    Issue(
                        severity=severity,
                        description=description,
                        recommendation=REUPLOAD_RECOMMENDATION,
                    )
                )
            confidence = self._rng.random() * 0.5 + 0.3
        else:
            confidence = self._rng.random() * 0.2 + 0.8

        return AnalysisResult(
            issues=issues,
            confidence=confidence,
            page_count=self._rng.randint(1, 10),
            metadata={
                "dimensions": {
                    "width": self._rng.randint(20, 29),
                    "height": self._rng.randint(25, 39),
                    "unit": "inches",
                }
            },
        )


class RuleBasedAnalysisProvider:
    """Deterministic metadata checks; no content inspection."""

    def __init__(self, allowed_mime_types: list[str], max_size_bytes: int) -> None:
        self._allowed = {m.lower() for m in allowed_mime_types}
        self._max_size_bytes = max_size_bytes

    async def analyze(self, document: Document) -> AnalysisResult:
        """Check file metadata against upload rules."""
        issues: list[Issue] = []

        if document.size_bytes == 0:
            issues.append(
                Issue(
                    severity=IssueSeverity.critical,
                    description="File is empty",
                    recommendation=REUPLOAD_RECOMMENDATION,
                )
            )
        elif document.size_bytes > self._max_size_bytes:
            issues.append(
                Issue(
                    severity=IssueSeverity.major,
                    description=(
                        f"File exceeds the {self._max_size_bytes // (1024 * 1024)} MB upload limit"
                    ),
                    recommendation="Compress or split the document and reupload.",
                )
            )

        if document.mime_type.lower() not in self._allowed:
            issues.append(
                Issue(
                    severity=IssueSeverity.major,
                    description=f"Unsupported file type: {document.mime_type}",
                    recommendation="Upload a PDF or image scan of the document.",
                )
            )

        if not PurePath(document.file_name).suffix:
            issues.append(
                Issue(
                    severity=IssueSeverity.minor,
                    description="File name has no extension",
                )
            )

        confidence = 0.95 if not issues else 0.6
        return AnalysisResult(issues=issues, confidence=confidence)


async def run_analysis(
    provider: AnalysisProvider, document: Document, timeout_s: float
) -> AnalysisResult:
    """Run a provider with a timeout, absorbing any failure into the result.

    Args:
        provider: Analysis implementation
        document: Snapshot of the document under analysis
        timeout_s: Hard timeout in seconds

    Returns:
        Provider result, or a synthetic critical-issue result on failure
    """
    try:
        result = await asyncio.wait_for(provider.analyze(document), timeout=timeout_s)
    except asyncio.TimeoutError:
        failure = AnalysisFailure(f"timed out after {timeout_s:g}s")
    except Exception as e:
        failure = AnalysisFailure(f"{type(e).__name__}: {e}")
    else:
        if isinstance(result, AnalysisResult):
            return result
        failure = AnalysisFailure(
            f"provider returned {type(result).__name__}, expected AnalysisResult"
        )

    logger.warning("Analysis failed for document %s: %s", document.id, failure)
    return failure_result(failure)


def build_analysis_provider(settings: Settings) -> AnalysisProvider:
    """Create the provider selected by settings."""
    if settings.analysis_provider == "rules":
        return RuleBasedAnalysisProvider(
            allowed_mime_types=settings.allowed_mime_types,
            max_size_bytes=settings.max_document_size_bytes,
        )
    if settings.analysis_provider == "simulated":
        return SimulatedAnalysisProvider(
            rng=random.Random(settings.analysis_rng_seed),
            min_delay_ms=settings.analysis_min_delay_ms,
            max_delay_ms=settings.analysis_max_delay_ms,
            issue_rate=settings.analysis_issue_rate,
        )
    raise ValueError(f"Unknown analysis provider: {settings.analysis_provider!r}")
