"""add fulfillment tables and columns

Revision ID: c84d1e6a2f07
Revises: 5b7e2f0c9a31
Create Date: 2026-10-02 15:47:36.902114

Yard fulfillment arrived after the first deployment. Adds the partial pickup,
archival and bundling columns to bom_projects idempotently, and creates the
status history, signoff and per-business-unit SKU labor cost tables if missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = 'c84d1e6a2f07'
down_revision: Union[str, None] = '5b7e2f0c9a31'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FULFILLMENT_COLUMNS = [
    ("partial_pickup", sa.Boolean(), sa.false()),
    ("partial_pickup_notes", sa.Text(), None),
    ("is_archived", sa.Boolean(), sa.false()),
    ("archived_at", sa.DateTime(), None),
    ("is_bundle", sa.Boolean(), sa.false()),
    ("bundle_id", sa.Integer(), None),
    ("bundle_name", sa.String(), None),
    ("crew_name", sa.String(), None),
    ("staged_at", sa.DateTime(), None),
    ("loaded_at", sa.DateTime(), None),
    ("completed_at", sa.DateTime(), None),
]


def _column_exists(table_name, column_name):
    """Check if a column already exists in the table."""
    bind = op.get_bind()
    insp = inspect(bind)
    columns = [c["name"] for c in insp.get_columns(table_name)]
    return column_name in columns


def _table_exists(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if _table_exists("bom_projects"):
        for col_name, col_type, default in FULFILLMENT_COLUMNS:
            if not _column_exists("bom_projects", col_name):
                op.add_column("bom_projects", sa.Column(
                    col_name, col_type, nullable=True, server_default=default))

    if not _table_exists("project_status_history"):
        op.create_table(
            "project_status_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("old_status", sa.String(), nullable=True),
            sa.Column("new_status", sa.String(), nullable=False),
            sa.Column("changed_at", sa.DateTime(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("yard_spot_id", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["bom_projects.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("project_signoffs"):
        op.create_table(
            "project_signoffs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("crew_name", sa.String(), nullable=True),
            sa.Column("is_partial_pickup", sa.Boolean(), nullable=True),
            sa.Column("partial_pickup_notes", sa.Text(), nullable=True),
            sa.Column("signed_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["bom_projects.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("sku_labor_costs"):
        op.create_table(
            "sku_labor_costs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("product_type", sa.String(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("business_unit_id", sa.Integer(), nullable=False),
            sa.Column("labor_cost", sa.Float(), nullable=True),
            sa.Column("labor_cost_per_foot", sa.Float(), nullable=True),
            sa.Column("calculated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["business_unit_id"], ["business_units.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("product_type", "product_id", "business_unit_id"),
        )


def downgrade() -> None:
    for table_name in ["sku_labor_costs", "project_signoffs", "project_status_history"]:
        if _table_exists(table_name):
            op.drop_table(table_name)

    if _table_exists("bom_projects"):
        with op.batch_alter_table("bom_projects") as batch_op:
            for col_name, _, _ in reversed(FULFILLMENT_COLUMNS):
                if _column_exists("bom_projects", col_name):
                    batch_op.drop_column(col_name)
