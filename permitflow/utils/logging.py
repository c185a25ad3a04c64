"""Logging setup and structured engine logging."""

import logging
import sys
from typing import Any

logger = logging.getLogger(__name__)

_ROOT_LOGGER = "permitflow"


def configure_logging(log_level: str) -> None:
    """Configure the package logger with the given level and a stdout handler."""
    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(log_level.upper())
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        root.addHandler(handler)


class StructuredAnalysisLogger:
    """Structured logger for document analysis and status transitions."""

    def log_analysis(
        self,
        application_id: str,
        document_id: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        issue_count: int = 0,
        error_reason: str | None = None,
    ) -> None:
        """Log a completed analysis with structured data."""
        log_data: dict[str, Any] = {
            "application_id": application_id,
            "document_id": document_id,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            "issue_count": issue_count,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Document analysis: {document_id} - {outcome}"

        if error_reason is None:
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_transition(self, application_id: str, previous: str, current: str) -> None:
        """Log an application status change."""
        logger.info(
            f"Application {application_id}: {previous} -> {current}",
            extra={
                "structured": {
                    "application_id": application_id,
                    "from_status": previous,
                    "to_status": current,
                }
            },
        )
