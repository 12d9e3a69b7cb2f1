"""
Project costing: a committed quote becomes a BOMProject with line items,
aggregated material rows and aggregated labor rows.

Quantities from every line item are summed per material SKU / labor code
before rounding. Rounding happens once, on the aggregated row (see
ProjectMaterial.recompute / ProjectLabor.recompute).
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from . import models
from .calculators.registry import calculate
from .calculators.specs import CalculationInput, FenceType
from .catalog import CatalogRepository
from .config import settings

logger = logging.getLogger(__name__)

CODE_NUMBERS_PER_PREFIX = 999


class ProjectNotFound(LookupError):
    pass


class ProductNotFound(LookupError):
    pass


@dataclass
class QuoteLine:
    """One SKU run on a quote, as entered by the operator."""

    fence_type: FenceType
    product_id: int
    total_footage: float
    buffer: float = settings.DEFAULT_BUFFER_FT
    number_of_lines: int = 1
    number_of_gates: int = 0

    @property
    def net_length(self) -> float:
        return max(0.0, self.total_footage - (self.buffer or 0.0))


def get_project(db: Session, project_id: int) -> models.BOMProject:
    project = db.query(models.BOMProject).filter(models.BOMProject.id == project_id).first()
    if not project:
        raise ProjectNotFound("Project %s not found" % project_id)
    return project


def format_project_code(sequence: int) -> str:
    """1 -> AAA-001, 999 -> AAA-999, 1000 -> AAB-001."""
    prefix_index, number = divmod(sequence - 1, CODE_NUMBERS_PER_PREFIX)
    letters = []
    for _ in range(3):
        prefix_index, rem = divmod(prefix_index, 26)
        letters.append(chr(ord("A") + rem))
    return "%s-%03d" % ("".join(reversed(letters)), number + 1)


def generate_project_code(db: Session) -> str:
    sequence = db.query(models.BOMProject).filter(
        models.BOMProject.project_code.isnot(None)).count() + 1
    code = format_project_code(sequence)
    # Deleted bundle parents leave gaps; skip forward past codes already taken
    while db.query(models.BOMProject).filter(models.BOMProject.project_code == code).first():
        sequence += 1
        code = format_project_code(sequence)
    return code


def recompute_totals(project: models.BOMProject):
    """
    Project totals from the aggregated rows.

    - total_project_cost = material + labor + manual_adjustments
    - cost_per_foot = total / total_linear_feet (0 when there is no footage)
    """
    for row in project.materials:
        row.recompute()
    for row in project.labor:
        row.recompute()

    project.total_material_cost = sum(m.extended_cost or 0.0 for m in project.materials)
    project.total_labor_cost = sum(l.extended_cost or 0.0 for l in project.labor)
    project.total_linear_feet = sum(li.net_length or 0.0 for li in project.line_items)
    project.total_project_cost = (
        project.total_material_cost + project.total_labor_cost + (project.manual_adjustments or 0.0)
    )
    if project.total_linear_feet:
        project.cost_per_foot = project.total_project_cost / project.total_linear_feet
    else:
        project.cost_per_foot = 0.0


def create_project(db: Session, project_name: str, lines: List[QuoteLine],
                   business_unit_id: Optional[int] = None,
                   customer_name: Optional[str] = None,
                   yard_id: Optional[int] = None,
                   expected_pickup_date: Optional[date] = None,
                   notes: Optional[str] = None,
                   catalog: Optional[CatalogRepository] = None) -> models.BOMProject:
    """Run the calculator over every quote line and persist the aggregated BOM/BOL."""
    catalog = catalog or CatalogRepository(db)
    business_unit = catalog.get_business_unit(business_unit_id)
    labor_rates = catalog.labor_rates_for(business_unit)
    concrete = catalog.concrete_materials()
    code_ids = catalog.labor_code_ids()

    project = models.BOMProject(
        project_code=generate_project_code(db),
        project_name=project_name,
        customer_name=customer_name,
        business_unit_id=business_unit_id,
        yard_id=yard_id,
        expected_pickup_date=expected_pickup_date,
        notes=notes,
        status=models.ProjectStatus.DRAFT.value,
    )

    materials: Dict[str, models.ProjectMaterial] = {}
    labor: Dict[str, models.ProjectLabor] = {}
    line_counts: Dict[str, int] = {}

    for index, line in enumerate(lines):
        fence_type = FenceType(line.fence_type)
        product = catalog.get_product(fence_type, line.product_id)
        if not product:
            raise ProductNotFound("%s product %s not found" % (fence_type.value, line.product_id))

        run = CalculationInput(
            net_length=line.net_length,
            number_of_lines=line.number_of_lines,
            number_of_gates=line.number_of_gates,
        )
        result = calculate(catalog.spec_for(fence_type, product), run, labor_rates, concrete)

        project.line_items.append(models.ProjectLineItem(
            fence_type=fence_type.value,
            product_id=product.id,
            product_sku_code=product.sku_code,
            product_name=product.sku_name,
            total_footage=line.total_footage,
            buffer=line.buffer,
            net_length=run.net_length,
            number_of_lines=run.number_of_lines,
            number_of_gates=run.number_of_gates,
            sort_order=index,
        ))

        for m in result.materials:
            row = materials.get(m.sku)
            if row is None:
                row = models.ProjectMaterial(
                    material_id=m.material_id,
                    material_sku=m.sku,
                    material_name=m.name,
                    calculated_quantity=0.0,
                    unit_cost=m.unit_cost,
                )
                materials[m.sku] = row
            row.calculated_quantity += m.quantity
            line_counts[m.sku] = line_counts.get(m.sku, 0) + 1

        for l in result.labor:
            row = labor.get(l.labor_sku)
            if row is None:
                row = models.ProjectLabor(
                    labor_code_id=l.labor_code_id or code_ids.get(l.labor_sku),
                    labor_sku=l.labor_sku,
                    description=l.description,
                    calculated_quantity=0.0,
                    labor_rate=l.rate,
                )
                labor[l.labor_sku] = row
            row.calculated_quantity += l.quantity

        if result.missing:
            logger.warning("Project %s line %s (%s) is missing: %s", project.project_code,
                           index, product.sku_code, ", ".join(result.missing))

    for sku, row in materials.items():
        if line_counts[sku] > 1:
            row.calculation_note = "Aggregated from %d line items" % line_counts[sku]
        project.materials.append(row)
    project.labor.extend(labor.values())

    recompute_totals(project)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Created project %s (%s): %d lines, $%.2f", project.project_code,
                project.project_name, len(project.line_items), project.total_project_cost)
    return project


def set_material_manual_quantity(db: Session, project_id: int, row_id: int,
                                 manual_quantity: Optional[float]) -> models.ProjectMaterial:
    """Override (or clear, with None) one material row and recompute the project."""
    project = get_project(db, project_id)
    row = next((m for m in project.materials if m.id == row_id), None)
    if row is None:
        raise LookupError("Material line %s not found on project %s" % (row_id, project_id))
    row.manual_quantity = manual_quantity
    recompute_totals(project)
    db.commit()
    db.refresh(row)
    return row


def set_labor_manual_quantity(db: Session, project_id: int, row_id: int,
                              manual_quantity: Optional[float]) -> models.ProjectLabor:
    project = get_project(db, project_id)
    row = next((l for l in project.labor if l.id == row_id), None)
    if row is None:
        raise LookupError("Labor line %s not found on project %s" % (row_id, project_id))
    row.manual_quantity = manual_quantity
    recompute_totals(project)
    db.commit()
    db.refresh(row)
    return row


def set_manual_adjustment(db: Session, project_id: int, amount: float) -> models.BOMProject:
    """Add-on charge (delivery, haul-off, etc.). Monetary fields never go below zero."""
    if amount is None or amount < 0:
        raise ValueError("manual adjustment must be zero or more (got %r)" % amount)
    project = get_project(db, project_id)
    project.manual_adjustments = amount
    recompute_totals(project)
    db.commit()
    db.refresh(project)
    return project


def pick_list(projects: List[models.BOMProject]) -> List[dict]:
    """Final material quantities summed across projects, by SKU."""
    totals: Dict[str, dict] = {}
    for project in projects:
        for row in project.materials:
            entry = totals.setdefault(row.material_sku, {
                "material_sku": row.material_sku,
                "material_name": row.material_name,
                "quantity": 0.0,
                "project_codes": [],
            })
            entry["quantity"] += row.final_quantity or 0.0
            entry["project_codes"].append(project.project_code)
    return sorted(totals.values(), key=lambda e: e["material_sku"])
