"""create kv_store table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_create_kv_store"
down_revision = "0001_create_cache_entries"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kv_store",
        sa.Column("key", sa.String(length=200), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("kv_store")
