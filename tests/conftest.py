"""Shared pytest fixtures for all test suites."""

from typing import Any

import pytest

from permitflow.db.inmemory import InMemoryApplicationRepository
from permitflow.engine.service import PermitService
from tests.helpers import ScriptedAnalysisProvider


@pytest.fixture
def applicant_fields() -> dict[str, Any]:
    """Valid form fields for an electrical/residential application."""
    return {
        "applicantName": "Maria Lopez",
        "applicantEmail": "maria@example.com",
        "applicantPhone": "(305) 555-0142",
        "propertyAddress": "1200 Brickell Ave, Miami, FL",
        "projectType": "residential",
        "permitType": "electrical",
        "estimatedCost": "$12,500",
        "projectDescription": "Upgrade main panel to 200A and rewire kitchen circuits.",
    }


@pytest.fixture
def repository() -> InMemoryApplicationRepository:
    """Empty in-memory repository."""
    return InMemoryApplicationRepository()


@pytest.fixture
def provider() -> ScriptedAnalysisProvider:
    """Scripted analysis provider (approves by default)."""
    return ScriptedAnalysisProvider()


@pytest.fixture
def service(
    repository: InMemoryApplicationRepository, provider: ScriptedAnalysisProvider
) -> PermitService:
    """Service over in-memory storage and scripted analysis."""
    return PermitService(repository, provider, analysis_timeout_s=1.0)
