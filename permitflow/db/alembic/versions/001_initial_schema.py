"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the permit_application table.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create permit_application."""
    op.create_table(
        "permit_application",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("application_id", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("permit_type", sa.Text(), nullable=False),
        sa.Column(
            "data",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("application_id", name="uq_permit_application_id"),
    )
    op.create_index("idx_permit_application_status", "permit_application", ["status"])


def downgrade() -> None:
    """Drop permit_application."""
    op.drop_index("idx_permit_application_status", table_name="permit_application")
    op.drop_table("permit_application")
