"""Cluster records

Revision ID: 3b1f6c2a9d40
Revises:
Create Date: 2026-10-19 14:45:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f6c2a9d40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


TIMESTAMP_NOW = "now()"


def upgrade() -> None:
    """Create the table holding the last applied request per cluster."""
    op.create_table(
        "cluster_records",
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("request", sa.JSON(), nullable=False),
        sa.Column("kubeconfig", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text(TIMESTAMP_NOW), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text(TIMESTAMP_NOW), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    """Drop the cluster records table."""
    op.drop_table("cluster_records")
