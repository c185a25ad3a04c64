"""Alembic migration tests against a temporary SQLite file."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from permitflow.config import get_settings

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def alembic_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Config]:
    """Alembic config pointed at a fresh SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'permits.db'}")
    get_settings.cache_clear()

    config = Config(str(ROOT / "alembic.ini"))
    config.attributes["configure_logger"] = False
    yield config

    get_settings.cache_clear()


def test_upgrade_creates_schema(alembic_config: Config) -> None:
    """upgrade head creates the application table and its indexes."""
    command.upgrade(alembic_config, "head")

    engine = create_engine(get_settings().database_url)
    try:
        inspector = inspect(engine)
        assert "permit_application" in inspector.get_table_names()
        columns = {c["name"] for c in inspector.get_columns("permit_application")}
        assert {"seq", "application_id", "status", "permit_type", "data"} <= columns
        indexes = {i["name"] for i in inspector.get_indexes("permit_application")}
        assert "idx_permit_application_status" in indexes
    finally:
        engine.dispose()


def test_downgrade_drops_schema(alembic_config: Config) -> None:
    """downgrade base removes everything upgrade created."""
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "base")

    engine = create_engine(get_settings().database_url)
    try:
        assert "permit_application" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
