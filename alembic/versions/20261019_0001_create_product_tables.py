"""create product_records and product_change_history tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "product_records",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("locator_key", sa.String(length=2048), nullable=False),
        sa.Column("locator", sa.Text(), nullable=False),
        sa.Column("platform", sa.String(length=64), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stock", sa.String(length=64), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("shipping", sa.JSON(), nullable=True),
        sa.Column("specs", sa.JSON(), nullable=True),
        sa.Column("videos", sa.JSON(), nullable=False),
        sa.Column("collected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("pk"),
        sa.UniqueConstraint("id"),
    )
    op.create_index(
        "ux_product_records_locator_key",
        "product_records",
        ["locator_key"],
        unique=True,
    )
    op.create_index("ix_product_records_platform", "product_records", ["platform"], unique=False)
    op.create_index("ix_product_records_category", "product_records", ["category"], unique=False)
    op.create_index(
        "ix_product_records_collected_at",
        "product_records",
        ["collected_at"],
        unique=False,
    )

    op.create_table(
        "product_change_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.String(length=36), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=True),
        sa.Column("old_price", sa.Float(), nullable=True),
        sa.Column("new_price", sa.Float(), nullable=True),
        sa.Column("old_stock", sa.String(length=64), nullable=True),
        sa.Column("new_stock", sa.String(length=64), nullable=True),
        sa.Column("change_kinds", sa.JSON(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["product_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_product_change_history_product_id",
        "product_change_history",
        ["product_id"],
        unique=False,
    )
    op.create_index(
        "ix_product_change_history_timestamp",
        "product_change_history",
        ["timestamp"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_product_change_history_timestamp", table_name="product_change_history")
    op.drop_index("ix_product_change_history_product_id", table_name="product_change_history")
    op.drop_table("product_change_history")
    op.drop_index("ix_product_records_collected_at", table_name="product_records")
    op.drop_index("ix_product_records_category", table_name="product_records")
    op.drop_index("ix_product_records_platform", table_name="product_records")
    op.drop_index("ux_product_records_locator_key", table_name="product_records")
    op.drop_table("product_records")
