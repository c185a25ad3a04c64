"""Tests for the in-memory application repository."""

import pytest

from permitflow.db.inmemory import InMemoryApplicationRepository
from permitflow.models.common import DocumentCategory as Cat
from tests.helpers import make_application


@pytest.mark.asyncio
async def test_get_returns_isolated_copies() -> None:
    """Mutating a returned snapshot does not touch storage."""
    repo = InMemoryApplicationRepository()
    await repo.add(make_application([Cat.application_form]))

    snapshot = await repo.get("PERMIT-TEST")
    assert snapshot is not None
    snapshot.notes.append("scribble")

    stored = await repo.get("PERMIT-TEST")
    assert stored is not None
    assert stored.notes == []


@pytest.mark.asyncio
async def test_list_keeps_creation_order() -> None:
    """Applications list in the order they were added."""
    repo = InMemoryApplicationRepository()
    for app_id in ("PERMIT-B", "PERMIT-A", "PERMIT-C"):
        app = make_application([Cat.application_form])
        app.id = app_id
        await repo.add(app)

    assert [a.id for a in await repo.list()] == ["PERMIT-B", "PERMIT-A", "PERMIT-C"]


@pytest.mark.asyncio
async def test_add_duplicate_raises() -> None:
    """Ids are unique."""
    repo = InMemoryApplicationRepository()
    await repo.add(make_application([Cat.application_form]))

    with pytest.raises(ValueError, match="already exists"):
        await repo.add(make_application([Cat.application_form]))


@pytest.mark.asyncio
async def test_update_replaces_snapshot() -> None:
    """update stores the new state; unknown ids raise."""
    repo = InMemoryApplicationRepository()
    app = make_application([Cat.application_form])
    await repo.add(app)

    app.assigned_to = "inspector-7"
    await repo.update(app)

    stored = await repo.get(app.id)
    assert stored is not None
    assert stored.assigned_to == "inspector-7"
    assert await repo.get("PERMIT-NOPE") is None

    app.id = "PERMIT-NOPE"
    with pytest.raises(KeyError):
        await repo.update(app)
