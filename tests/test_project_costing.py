"""
Project costing tests: quote lines become aggregated BOM/BOL rows.

Tests:
1-2.  Project codes
3-6.  create_project aggregation, totals, missing product / zero net length
7-10. Derived quantities: rounding, manual overrides, labor asymmetry, mapper events
"""

import pytest

from fence_bom import models
from fence_bom.calculators.specs import FenceType, InvalidCalculationInput
from fence_bom.project_costing import (
    ProductNotFound, QuoteLine, create_project, format_project_code, generate_project_code,
    pick_list, set_labor_manual_quantity, set_manual_adjustment, set_material_manual_quantity,
)


def two_line_project(db, seeded):
    """
    Line 1: 105 ft - 5 buffer = 100 net, 4 lines -> 15 posts, 224 pickets, 28 rails
    Line 2:  55 ft - 5 buffer =  50 net, 1 gate  -> 8 wood posts + 2 steel jambs, 112 pickets, 18 rails
    """
    return create_project(
        db,
        project_name="Smith Backyard",
        business_unit_id=seeded.atx.id,
        lines=[
            QuoteLine(fence_type=FenceType.WOOD_VERTICAL, product_id=seeded.a01.id,
                      total_footage=105, buffer=5, number_of_lines=4),
            QuoteLine(fence_type=FenceType.WOOD_VERTICAL, product_id=seeded.a01.id,
                      total_footage=55, buffer=5, number_of_gates=1),
        ],
    )


def row(project, sku):
    return next(m for m in project.materials if m.material_sku == sku)


def labor_row(project, labor_sku):
    return next(l for l in project.labor if l.labor_sku == labor_sku)


# ============================================================
# Project codes
# ============================================================

def test_format_project_code():
    assert format_project_code(1) == "AAA-001"
    assert format_project_code(999) == "AAA-999"
    assert format_project_code(1000) == "AAB-001"
    assert format_project_code(999 * 26 + 1) == "ABA-001"


def test_generate_project_code_skips_taken_codes(db):
    db.add(models.BOMProject(project_code="AAA-002", project_name="Existing"))
    db.commit()
    # one coded project -> next sequence is 2, which is taken
    assert generate_project_code(db) == "AAA-003"


# ============================================================
# create_project
# ============================================================

def test_create_project_aggregates_lines(db, seeded):
    project = two_line_project(db, seeded)
    assert project.project_code == "AAA-001"
    assert project.status == "draft"
    assert len(project.line_items) == 2
    assert [li.net_length for li in project.line_items] == [100, 50]

    assert row(project, "PS13").calculated_quantity == 23  # 15 + 8, jambs billed separately
    assert row(project, "GP01").calculated_quantity == 2
    assert row(project, "P601").calculated_quantity == 224 + 112
    assert row(project, "RA01").calculated_quantity == 28 + 18
    assert row(project, "CTS").final_quantity == 3   # 2 + 1
    assert row(project, "CTP").final_quantity == 2   # 1 + 1
    assert row(project, "CTQ").final_quantity == 13  # 8 + 5
    assert row(project, "PS13").calculation_note == "Aggregated from 2 line items"

    assert labor_row(project, "W02").final_quantity == 150
    assert labor_row(project, "W10").final_quantity == 1


def test_create_project_totals(db, seeded):
    project = two_line_project(db, seeded)
    # 230 + 56 + 840 + 230 + 15 + 30 + 91
    assert project.total_material_cost == pytest.approx(1492.0)
    # 150 * 1.00 + 150 * 2.50 + 1 * 30.00
    assert project.total_labor_cost == pytest.approx(555.0)
    assert project.total_project_cost == pytest.approx(2047.0)
    assert project.total_linear_feet == 150
    assert project.cost_per_foot == pytest.approx(2047.0 / 150)


def test_create_project_unknown_product(db, seeded):
    with pytest.raises(ProductNotFound):
        create_project(db, "Nope", [QuoteLine(FenceType.IRON, 999, 100)], seeded.atx.id)


def test_footage_within_buffer_is_rejected(db, seeded):
    line = QuoteLine(FenceType.WOOD_VERTICAL, seeded.a01.id, total_footage=3, buffer=5)
    assert line.net_length == 0
    with pytest.raises(InvalidCalculationInput):
        create_project(db, "Too short", [line], seeded.atx.id)


# ============================================================
# Derived quantities
# ============================================================

def test_every_row_keeps_final_and_extended_in_sync(db, seeded):
    project = two_line_project(db, seeded)
    for m in project.materials:
        assert m.manual_quantity is None
        assert m.final_quantity == m.rounded_quantity
        assert m.extended_cost == pytest.approx(m.final_quantity * m.unit_cost)
    for l in project.labor:
        assert l.extended_cost == pytest.approx(l.final_quantity * l.labor_rate)


def test_manual_override_recomputes_totals(db, seeded):
    project = two_line_project(db, seeded)
    posts = row(project, "PS13")

    updated = set_material_manual_quantity(db, project.id, posts.id, 30)
    assert updated.final_quantity == 30
    assert updated.rounded_quantity == 23
    assert updated.extended_cost == pytest.approx(300.0)
    db.refresh(project)
    assert project.total_material_cost == pytest.approx(1492.0 + 70.0)

    cleared = set_material_manual_quantity(db, project.id, posts.id, None)
    assert cleared.final_quantity == 23
    db.refresh(project)
    assert project.total_material_cost == pytest.approx(1492.0)


def test_labor_override_and_adjustment(db, seeded):
    project = two_line_project(db, seeded)
    nail_up = labor_row(project, "W03")
    set_labor_manual_quantity(db, project.id, nail_up.id, 160)
    project = set_manual_adjustment(db, project.id, 11.0)
    # labor: 150 + 160*2.5 + 30 = 580
    assert project.total_labor_cost == pytest.approx(580.0)
    assert project.total_project_cost == pytest.approx(1492.0 + 580.0 + 11.0)


def test_negative_adjustment_rejected(db, seeded):
    project = two_line_project(db, seeded)
    with pytest.raises(ValueError):
        set_manual_adjustment(db, project.id, -5000.0)
    db.refresh(project)
    assert project.total_project_cost == pytest.approx(2047.0)


def test_material_rounds_up_labor_rounds_to_cents():
    material = models.ProjectMaterial(calculated_quantity=12.1, unit_cost=2.0)
    material.recompute()
    assert material.final_quantity == 13

    noisy = models.ProjectMaterial(calculated_quantity=12.0000000001, unit_cost=2.0)
    noisy.recompute()
    assert noisy.final_quantity == 12

    labor = models.ProjectLabor(calculated_quantity=12.3456, labor_rate=2.0)
    labor.recompute()
    assert labor.final_quantity == pytest.approx(12.35)  # never ceiled
    assert labor.extended_cost == pytest.approx(24.70)


def test_mapper_events_fill_derived_columns(db):
    project = models.BOMProject(project_name="Direct insert")
    project.materials.append(models.ProjectMaterial(
        material_sku="PS13", calculated_quantity=4.2, unit_cost=10.0))
    db.add(project)
    db.commit()

    material = project.materials[0]
    assert material.rounded_quantity == 5
    assert material.final_quantity == 5
    assert material.extended_cost == pytest.approx(50.0)

    material.unit_cost = 12.0
    db.commit()
    assert material.extended_cost == pytest.approx(60.0)


def test_pick_list_sums_across_projects(db, seeded):
    first = two_line_project(db, seeded)
    second = two_line_project(db, seeded)
    entries = {e["material_sku"]: e for e in pick_list([first, second])}
    assert entries["PS13"]["quantity"] == 46
    assert entries["GP01"]["quantity"] == 4
    assert entries["PS13"]["project_codes"] == [first.project_code, second.project_code]
