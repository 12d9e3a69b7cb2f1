"""
Recalculation service: re-price every catalog SKU after material prices or
labor rates change.

Phase 1: material cost, once per SKU, cached on the SKU row.
Phase 2: labor cost, once per SKU per active business unit, one
          sku_labor_costs row each.

Every SKU is costed against the same standard run (settings.SKU_STANDARD_*).
The batch is best-effort: a failing item is rolled back and recorded, the rest
carry on. `should_stop` is polled between items; work already committed stays.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .calculators.labor_codes import LaborRateTable
from .calculators.registry import calculate
from .calculators.specs import CalculationInput, FenceType
from .catalog import CatalogRepository
from .config import settings
from .project_costing import ProductNotFound

logger = logging.getLogger(__name__)

PHASE_MATERIALS = "materials"
PHASE_LABOR = "labor"


@dataclass(frozen=True)
class RecalculationProgress:
    phase: str
    completed: int
    total: int
    current: str


@dataclass(frozen=True)
class RecalculationError:
    sku_code: str
    fence_type: str
    message: str
    business_unit: Optional[str] = None


@dataclass
class RecalculationResult:
    updated_materials: int = 0
    updated_labor_rows: int = 0
    errors: List[RecalculationError] = field(default_factory=list)
    interrupted: bool = False
    last_completed: Optional[str] = None


ProgressCallback = Callable[[RecalculationProgress], None]
StopCheck = Callable[[], bool]


class IncompleteProduct(ValueError):
    """A SKU is missing one of its required materials."""


def standard_run() -> CalculationInput:
    return CalculationInput(
        net_length=settings.SKU_STANDARD_NET_LENGTH,
        number_of_lines=settings.SKU_STANDARD_LINES,
        number_of_gates=settings.SKU_STANDARD_GATES,
    )


def standard_material_cost(result) -> float:
    """Catalog material cost: whole units, i.e. sum(ceil(qty) x unit cost)."""
    return sum(math.ceil(round(m.quantity, 6)) * m.unit_cost for m in result.materials)


class RecalculationService:

    def __init__(self, db: Session, catalog: Optional[CatalogRepository] = None):
        self.db = db
        self.catalog = catalog or CatalogRepository(db)

    def recalculate_all(self, on_progress: Optional[ProgressCallback] = None,
                        should_stop: Optional[StopCheck] = None) -> RecalculationResult:
        self.catalog.invalidate()
        run = standard_run()
        result = RecalculationResult()
        products = self.catalog.products()
        specs: Dict[Tuple[FenceType, int], object] = {}

        logger.info("Recalculation phase 1: %d SKUs", len(products))
        for index, (fence_type, product) in enumerate(products):
            if should_stop and should_stop():
                return self._interrupted(result)
            spec = self._material_phase_item(fence_type, product, run, result)
            if spec is not None:
                specs[(fence_type, product.id)] = spec
                result.updated_materials += 1
                result.last_completed = "%s:%s" % (fence_type.value, product.sku_code)
            self._report(on_progress, PHASE_MATERIALS, index + 1, len(products), product.sku_code)

        units = self.catalog.active_business_units()
        priced = [(ft, p) for ft, p in products if (ft, p.id) in specs]
        total = len(priced) * len(units)
        logger.info("Recalculation phase 2: %d SKUs x %d business units", len(priced), len(units))
        done = 0
        for fence_type, product in priced:
            for unit in units:
                if should_stop and should_stop():
                    return self._interrupted(result)
                if self._labor_phase_item(fence_type, product, specs[(fence_type, product.id)],
                                          unit, run, result):
                    result.updated_labor_rows += 1
                    result.last_completed = "%s:%s@%s" % (fence_type.value, product.sku_code, unit.code)
                done += 1
                self._report(on_progress, PHASE_LABOR, done, total,
                             "%s@%s" % (product.sku_code, unit.code))

        logger.info("Recalculation done: %d material, %d labor rows updated, %d errors",
                    result.updated_materials, result.updated_labor_rows, len(result.errors))
        return result

    def recalculate_sku(self, fence_type, product_id: int) -> RecalculationResult:
        """Re-price a single SKU across all active business units."""
        fence_type = FenceType(fence_type)
        product = self.catalog.get_product(fence_type, product_id)
        if not product:
            raise ProductNotFound("%s product %s not found" % (fence_type.value, product_id))

        run = standard_run()
        result = RecalculationResult()
        spec = self._material_phase_item(fence_type, product, run, result)
        if spec is None:
            return result
        result.updated_materials = 1
        for unit in self.catalog.active_business_units():
            if self._labor_phase_item(fence_type, product, spec, unit, run, result):
                result.updated_labor_rows += 1
        result.last_completed = "%s:%s" % (fence_type.value, product.sku_code)
        return result

    # --- Items ---

    def _material_phase_item(self, fence_type, product, run, result):
        """Returns the spec on success, None when the item failed."""
        try:
            spec = self.catalog.spec_for(fence_type, product)
            missing = spec.missing_materials()
            if missing:
                raise IncompleteProduct("missing required material: %s" % ", ".join(missing))
            calc = calculate(spec, run, LaborRateTable(), self.catalog.concrete_materials())
            material_cost = standard_material_cost(calc)
            product.standard_material_cost = material_cost
            product.standard_cost_per_foot = (material_cost + (product.standard_labor_cost or 0.0)) / run.net_length
            product.standard_cost_calculated_at = datetime.utcnow()
            self.db.commit()
            return spec
        except SQLAlchemyError as e:
            self.db.rollback()
            self._record(result, fence_type, product, e)
        except ValueError as e:
            self._record(result, fence_type, product, e)
        return None

    def _labor_phase_item(self, fence_type, product, spec, unit, run, result) -> bool:
        try:
            rates = self.catalog.labor_rates_for(unit)
            calc = calculate(spec, run, rates, self.catalog.concrete_materials())
            labor_cost = calc.total_labor_cost
            row = self.db.query(models.SkuLaborCost).filter(
                models.SkuLaborCost.product_type == fence_type.value,
                models.SkuLaborCost.product_id == product.id,
                models.SkuLaborCost.business_unit_id == unit.id,
            ).first()
            if row is None:
                row = models.SkuLaborCost(
                    product_type=fence_type.value,
                    product_id=product.id,
                    business_unit_id=unit.id,
                )
                self.db.add(row)
            row.labor_cost = labor_cost
            row.labor_cost_per_foot = labor_cost / run.net_length
            row.calculated_at = datetime.utcnow()

            if unit.code == settings.PRIMARY_BUSINESS_UNIT_CODE:
                product.standard_labor_cost = labor_cost
                product.standard_cost_per_foot = (
                    (product.standard_material_cost or 0.0) + labor_cost) / run.net_length
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            self._record(result, fence_type, product, e, unit.code)
        except ValueError as e:
            self._record(result, fence_type, product, e, unit.code)
        return False

    # --- Helpers ---

    def _record(self, result, fence_type, product, error, business_unit=None):
        logger.warning("Recalculation failed for %s %s%s: %s", fence_type.value, product.sku_code,
                       " @ %s" % business_unit if business_unit else "", error)
        result.errors.append(RecalculationError(
            sku_code=product.sku_code,
            fence_type=fence_type.value,
            message=str(error),
            business_unit=business_unit,
        ))

    def _interrupted(self, result):
        result.interrupted = True
        logger.info("Recalculation interrupted after %s", result.last_completed or "no items")
        return result

    @staticmethod
    def _report(on_progress, phase, completed, total, current):
        if on_progress:
            on_progress(RecalculationProgress(phase=phase, completed=completed, total=total, current=current))
