"""initial BOM schema

Revision ID: 5b7e2f0c9a31
Revises:
Create Date: 2026-09-14 10:02:11.418203

Catalog, SKU, yard and project tables as first deployed. Each table is created
only if missing, so databases built by Base.metadata.create_all() are left
alone. Fulfillment columns and tables arrive in c84d1e6a2f07.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5b7e2f0c9a31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Creation order; dropped in reverse
BASE_TABLES = [
    "business_units",
    "materials",
    "labor_codes",
    "labor_rates",
    "wood_vertical_products",
    "wood_horizontal_products",
    "iron_products",
    "yards",
    "yard_spots",
    "bom_projects",
    "project_line_items",
    "project_materials",
    "project_labor",
]


def _table_exists(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def _standard_cost_columns():
    return [
        sa.Column("standard_material_cost", sa.Float(), nullable=True),
        sa.Column("standard_labor_cost", sa.Float(), nullable=True),
        sa.Column("standard_cost_per_foot", sa.Float(), nullable=True),
        sa.Column("standard_cost_calculated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    if not _table_exists("business_units"):
        op.create_table(
            "business_units",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("code", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("location", sa.String(), nullable=True),
            sa.Column("business_type", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("code"),
        )

    if not _table_exists("materials"):
        op.create_table(
            "materials",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("material_sku", sa.String(), nullable=False),
            sa.Column("material_name", sa.String(), nullable=False),
            sa.Column("category", sa.String(), nullable=False),
            sa.Column("sub_category", sa.String(), nullable=True),
            sa.Column("unit_type", sa.String(), nullable=True),
            sa.Column("unit_cost", sa.Float(), nullable=False),
            sa.Column("length_ft", sa.Float(), nullable=True),
            sa.Column("width_nominal", sa.Integer(), nullable=True),
            sa.Column("actual_width", sa.Float(), nullable=True),
            sa.Column("thickness", sa.String(), nullable=True),
            sa.Column("status", sa.String(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("material_sku"),
        )

    if not _table_exists("labor_codes"):
        op.create_table(
            "labor_codes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("labor_sku", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False),
            sa.Column("unit_type", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("labor_sku"),
        )

    if not _table_exists("labor_rates"):
        op.create_table(
            "labor_rates",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("labor_code_id", sa.Integer(), nullable=False),
            sa.Column("business_unit_id", sa.Integer(), nullable=False),
            sa.Column("rate", sa.Float(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["labor_code_id"], ["labor_codes.id"]),
            sa.ForeignKeyConstraint(["business_unit_id"], ["business_units.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("labor_code_id", "business_unit_id"),
        )

    if not _table_exists("wood_vertical_products"):
        op.create_table(
            "wood_vertical_products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sku_code", sa.String(), nullable=False),
            sa.Column("sku_name", sa.String(), nullable=False),
            sa.Column("height", sa.Float(), nullable=False),
            sa.Column("rail_count", sa.Integer(), nullable=False),
            sa.Column("post_type", sa.String(), nullable=False),
            sa.Column("style", sa.String(), nullable=False),
            sa.Column("post_spacing", sa.Float(), nullable=True),
            sa.Column("post_material_id", sa.Integer(), nullable=True),
            sa.Column("picket_material_id", sa.Integer(), nullable=True),
            sa.Column("rail_material_id", sa.Integer(), nullable=True),
            sa.Column("cap_material_id", sa.Integer(), nullable=True),
            sa.Column("trim_material_id", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            *_standard_cost_columns(),
            sa.ForeignKeyConstraint(["post_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["picket_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["rail_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["cap_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["trim_material_id"], ["materials.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku_code"),
        )

    if not _table_exists("wood_horizontal_products"):
        op.create_table(
            "wood_horizontal_products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sku_code", sa.String(), nullable=False),
            sa.Column("sku_name", sa.String(), nullable=False),
            sa.Column("height", sa.Float(), nullable=False),
            sa.Column("post_type", sa.String(), nullable=False),
            sa.Column("style", sa.String(), nullable=False),
            sa.Column("post_spacing", sa.Float(), nullable=True),
            sa.Column("board_width_actual", sa.Float(), nullable=True),
            sa.Column("post_material_id", sa.Integer(), nullable=True),
            sa.Column("board_material_id", sa.Integer(), nullable=True),
            sa.Column("nailer_material_id", sa.Integer(), nullable=True),
            sa.Column("cap_material_id", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            *_standard_cost_columns(),
            sa.ForeignKeyConstraint(["post_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["board_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["nailer_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["cap_material_id"], ["materials.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku_code"),
        )

    if not _table_exists("iron_products"):
        op.create_table(
            "iron_products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sku_code", sa.String(), nullable=False),
            sa.Column("sku_name", sa.String(), nullable=False),
            sa.Column("height", sa.Float(), nullable=False),
            sa.Column("style", sa.String(), nullable=False),
            sa.Column("panel_width", sa.Float(), nullable=True),
            sa.Column("rails_per_panel", sa.Integer(), nullable=True),
            sa.Column("post_material_id", sa.Integer(), nullable=True),
            sa.Column("panel_material_id", sa.Integer(), nullable=True),
            sa.Column("bracket_material_id", sa.Integer(), nullable=True),
            sa.Column("post_cap_material_id", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            *_standard_cost_columns(),
            sa.ForeignKeyConstraint(["post_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["panel_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["bracket_material_id"], ["materials.id"]),
            sa.ForeignKeyConstraint(["post_cap_material_id"], ["materials.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku_code"),
        )

    if not _table_exists("yards"):
        op.create_table(
            "yards",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("code", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("code"),
        )

    if not _table_exists("yard_spots"):
        # occupied_by_project_id stays a plain integer: bom_projects already references yard_spots
        op.create_table(
            "yard_spots",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("yard_id", sa.Integer(), nullable=False),
            sa.Column("spot_code", sa.String(), nullable=False),
            sa.Column("spot_name", sa.String(), nullable=True),
            sa.Column("is_occupied", sa.Boolean(), nullable=True),
            sa.Column("occupied_by_project_id", sa.Integer(), nullable=True),
            sa.Column("occupied_at", sa.DateTime(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.ForeignKeyConstraint(["yard_id"], ["yards.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("yard_id", "spot_code"),
        )

    if not _table_exists("bom_projects"):
        op.create_table(
            "bom_projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_code", sa.String(), nullable=True),
            sa.Column("project_name", sa.String(), nullable=False),
            sa.Column("customer_name", sa.String(), nullable=True),
            sa.Column("business_unit_id", sa.Integer(), nullable=True),
            sa.Column("concrete_type", sa.String(), nullable=True),
            sa.Column("total_linear_feet", sa.Float(), nullable=True),
            sa.Column("total_material_cost", sa.Float(), nullable=True),
            sa.Column("total_labor_cost", sa.Float(), nullable=True),
            sa.Column("manual_adjustments", sa.Float(), nullable=True),
            sa.Column("total_project_cost", sa.Float(), nullable=True),
            sa.Column("cost_per_foot", sa.Float(), nullable=True),
            sa.Column("status", sa.String(), nullable=False, server_default="draft"),
            sa.Column("yard_id", sa.Integer(), nullable=True),
            sa.Column("yard_spot_id", sa.Integer(), nullable=True),
            sa.Column("expected_pickup_date", sa.Date(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["business_unit_id"], ["business_units.id"]),
            sa.ForeignKeyConstraint(["yard_id"], ["yards.id"]),
            sa.ForeignKeyConstraint(["yard_spot_id"], ["yard_spots.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_code"),
        )

    if not _table_exists("project_line_items"):
        op.create_table(
            "project_line_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("fence_type", sa.String(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("product_sku_code", sa.String(), nullable=False),
            sa.Column("product_name", sa.String(), nullable=True),
            sa.Column("total_footage", sa.Float(), nullable=False),
            sa.Column("buffer", sa.Float(), nullable=True),
            sa.Column("net_length", sa.Float(), nullable=False),
            sa.Column("number_of_lines", sa.Integer(), nullable=True),
            sa.Column("number_of_gates", sa.Integer(), nullable=True),
            sa.Column("sort_order", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["bom_projects.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("project_materials"):
        op.create_table(
            "project_materials",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("material_id", sa.Integer(), nullable=True),
            sa.Column("material_sku", sa.String(), nullable=False),
            sa.Column("material_name", sa.String(), nullable=True),
            sa.Column("calculated_quantity", sa.Float(), nullable=False),
            sa.Column("rounded_quantity", sa.Integer(), nullable=True),
            sa.Column("manual_quantity", sa.Float(), nullable=True),
            sa.Column("final_quantity", sa.Float(), nullable=True),
            sa.Column("unit_cost", sa.Float(), nullable=False),
            sa.Column("extended_cost", sa.Float(), nullable=True),
            sa.Column("calculation_note", sa.Text(), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["bom_projects.id"]),
            sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "material_sku"),
        )

    if not _table_exists("project_labor"):
        op.create_table(
            "project_labor",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("labor_code_id", sa.Integer(), nullable=True),
            sa.Column("labor_sku", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=True),
            sa.Column("calculated_quantity", sa.Float(), nullable=False),
            sa.Column("manual_quantity", sa.Float(), nullable=True),
            sa.Column("final_quantity", sa.Float(), nullable=True),
            sa.Column("labor_rate", sa.Float(), nullable=False),
            sa.Column("extended_cost", sa.Float(), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["bom_projects.id"]),
            sa.ForeignKeyConstraint(["labor_code_id"], ["labor_codes.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "labor_sku"),
        )


def downgrade() -> None:
    for table_name in reversed(BASE_TABLES):
        if _table_exists(table_name):
            op.drop_table(table_name)
