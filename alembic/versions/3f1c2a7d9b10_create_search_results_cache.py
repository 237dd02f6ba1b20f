"""create search_results_cache

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-16 09:12:41.000000

"""
from alembic import op
import sqlalchemy as sa


revision = "3f1c2a7d9b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "search_results_cache",
        sa.Column("cache_key", sa.String(length=512), nullable=False),
        sa.Column("query", sa.String(length=255), nullable=False),
        sa.Column("results", sa.JSON(), nullable=False),
        sa.Column("suggestions", sa.JSON(), nullable=False),
        sa.Column("result_count", sa.Integer(), nullable=False),
        sa.Column("cursor", sa.Text(), nullable=True),
        sa.Column("hit_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("cache_key"),
    )
    op.create_index("ix_search_results_cache_query", "search_results_cache", ["query"])
    op.create_index("ix_search_results_cache_expires_at", "search_results_cache", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_search_results_cache_expires_at", table_name="search_results_cache")
    op.drop_index("ix_search_results_cache_query", table_name="search_results_cache")
    op.drop_table("search_results_cache")
