"""Prometheus metrics for the permit engine."""

from prometheus_client import Counter, Histogram

applications_created_total = Counter(
    "permit_applications_created_total",
    "Total permit applications created",
    ["permit_type", "project_type"],
)

documents_submitted_total = Counter(
    "permit_documents_submitted_total",
    "Total documents submitted (including resubmissions)",
    ["category", "kind"],
)

analysis_outcomes_total = Counter(
    "permit_analysis_outcomes_total",
    "Total completed document analyses by terminal status",
    ["status"],
)

analysis_latency_ms = Histogram(
    "permit_analysis_latency_ms",
    "Document analysis latency in milliseconds",
    ["outcome"],
    buckets=[10, 50, 100, 250, 500, 1000, 2000, 4000, 8000, 30000],
)

status_transitions_total = Counter(
    "permit_status_transitions_total",
    "Total application status transitions",
    ["from_status", "to_status"],
)


class PrometheusEngineMetrics:
    """Prometheus-based engine metrics implementation."""

    def inc_created(self, permit_type: str, project_type: str) -> None:
        """Count a new application."""
        applications_created_total.labels(permit_type=permit_type, project_type=project_type).inc()

    def inc_submitted(self, category: str, kind: str) -> None:
        """Count a submission; kind is 'submit' or 'resubmit'."""
        documents_submitted_total.labels(category=category, kind=kind).inc()

    def record_analysis(self, status: str, latency_ms: float) -> None:
        """Record analysis outcome and latency."""
        analysis_outcomes_total.labels(status=status).inc()
        analysis_latency_ms.labels(outcome=status).observe(latency_ms)

    def inc_transition(self, from_status: str, to_status: str) -> None:
        """Count a status transition."""
        status_transitions_total.labels(from_status=from_status, to_status=to_status).inc()
