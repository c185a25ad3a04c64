"""Metrics endpoints - Prometheus scrape target and dashboard summary."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from permitflow.api.deps import get_service
from permitflow.engine.service import PermitService
from permitflow.engine.summary import DashboardSummary, build_dashboard_summary

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - permit_applications_created_total{permit_type, project_type}
    - permit_documents_submitted_total{category, kind}
    - permit_analysis_outcomes_total{status}
    - permit_analysis_latency_ms{outcome}
    - permit_status_transitions_total{from_status, to_status}
    """
    metrics_output = generate_latest()
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)


@router.get("/ai-metrics", response_model=DashboardSummary)
async def ai_metrics(
    service: Annotated[PermitService, Depends(get_service)],
) -> DashboardSummary:
    """Dashboard counts over all applications (administrative)."""
    return build_dashboard_summary(await service.list_applications())
