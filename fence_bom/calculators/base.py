"""
Abstract base class for all fence-type calculators.

Input: FenceSpecification + CalculationInput (+ labor rates, concrete materials)
Output: CalculationResult with material lines and labor lines

Quantities are never rounded here. Rounding is the caller's policy:
see ProjectMaterial / ProjectLabor in models.py.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..config import settings
from .labor_codes import LaborRateTable
from .specs import CalculationInput, ConcreteMaterials, MaterialRef, PostType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialLine:
    sku: str
    name: str
    quantity: float
    unit_cost: float
    category: str = ""
    unit_type: str = "ea"
    material_id: Optional[int] = None
    note: str = ""

    @property
    def total(self) -> float:
        return self.quantity * self.unit_cost


@dataclass(frozen=True)
class LaborLine:
    labor_sku: str
    description: str
    quantity: float
    rate: float
    unit_type: str = "LF"
    labor_code_id: Optional[int] = None
    priced: bool = True

    @property
    def total(self) -> float:
        return self.quantity * self.rate


@dataclass(frozen=True)
class CalculationResult:
    materials: Tuple[MaterialLine, ...]
    labor: Tuple[LaborLine, ...]
    posts: int
    missing: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_material_cost(self) -> float:
        return sum(m.total for m in self.materials)

    @property
    def total_labor_cost(self) -> float:
        return sum(l.total for l in self.labor)

    @property
    def total_cost(self) -> float:
        return self.total_material_cost + self.total_labor_cost

    @property
    def is_complete(self) -> bool:
        """False when any required material was missing and its lines were omitted."""
        return not self.missing

    def material(self, sku: str) -> Optional[MaterialLine]:
        return next((m for m in self.materials if m.sku == sku), None)

    def labor_line(self, labor_sku: str) -> Optional[LaborLine]:
        return next((l for l in self.labor if l.labor_sku == labor_sku), None)


class BaseFenceCalculator(ABC):
    """All fence-type calculators inherit from this."""

    PICKET_WASTE = settings.PICKET_WASTE_FACTOR
    DEFAULT_CAP_LENGTH_FT = settings.DEFAULT_CAP_LENGTH_FT
    TALL_POST_MIN_LENGTH_FT = settings.TALL_FENCE_MIN_POST_LENGTH_FT

    # 3-part concrete: bags per post
    SAND_GRAVEL_POSTS_PER_BAG = 10
    PORTLAND_POSTS_PER_BAG = 20
    QUICKROCK_BAGS_PER_POST = 0.5

    def calculate(self, spec, run: CalculationInput,
                  labor_rates: LaborRateTable = None,
                  concrete: ConcreteMaterials = None) -> CalculationResult:
        """
        Pure calculation. Identical inputs always give identical output.
        Missing required materials omit their lines and are listed in `missing`.
        """
        labor_rates = labor_rates or LaborRateTable()
        missing = list(spec.missing_materials())
        warnings = []
        posts = self.post_count(spec, run)
        jambs = self.jamb_post_count(spec, run)

        materials = []
        if spec.post is not None:
            materials.append(self.make_material_line(spec.post, posts - jambs))
            self._check_post_length(spec, warnings)
        if jambs:
            materials.extend(self.jamb_post_lines(spec, run, jambs, missing))
        materials.extend(self.component_lines(spec, run, posts, warnings))
        materials.extend(self.concrete_lines(posts, concrete or ConcreteMaterials(), missing))

        labor = [self.make_labor_line(labor_rates, code, qty)
                 for code, qty in self.labor_codes(spec, run)]

        result = CalculationResult(
            materials=tuple(materials),
            labor=tuple(labor),
            posts=posts,
            missing=tuple(missing),
            warnings=tuple(warnings),
        )
        logger.info(
            "Fence calc %s %s: %.1f ft, %d lines, %d gates -> %d posts, %d material lines, %d labor lines%s",
            spec.fence_type.value, spec.sku_code or "(preview)", run.net_length,
            run.number_of_lines, run.number_of_gates, posts, len(result.materials),
            len(result.labor), " (missing: %s)" % ", ".join(missing) if missing else "",
        )
        return result

    @abstractmethod
    def component_lines(self, spec, run: CalculationInput, posts: int,
                        warnings: List[str]) -> List[MaterialLine]:
        """Variant-specific material lines (everything except posts and concrete)."""

    @abstractmethod
    def labor_codes(self, spec, run: CalculationInput) -> List[Tuple[str, float]]:
        """(labor_sku, quantity) pairs. Footage codes use net length, gate codes use gate count."""

    # --- Shared formulas ---

    def post_count(self, spec, run: CalculationInput) -> int:
        posts = math.ceil(run.net_length / spec.spacing_ft) + 1
        # Every two extra runs beyond the first two need one more corner/line post
        if run.number_of_lines > 2:
            posts += math.ceil((run.number_of_lines - 2) / 2)
        # Gate posts: steel fences add one per gate, wood fences get two steel jamb posts per gate
        if spec.post_type == PostType.STEEL:
            posts += run.number_of_gates
        else:
            posts += self.jamb_post_count(spec, run)
        return posts

    def jamb_post_count(self, spec, run: CalculationInput) -> int:
        """Steel gate jambs on a wood-post fence. Included in post_count, billed separately."""
        if spec.post_type == PostType.STEEL:
            return 0
        return 2 * run.number_of_gates

    def jamb_post_lines(self, spec, run: CalculationInput, jambs: int,
                        missing: List[str]) -> List[MaterialLine]:
        gate_post = getattr(spec, "gate_post", None)
        if gate_post is None:
            missing.append("gate_post")
            return []
        return [self.make_material_line(
            gate_post, jambs, note="%d gates x 2 steel jambs" % run.number_of_gates)]

    def sections(self, spec, run: CalculationInput) -> int:
        return math.ceil(run.net_length / spec.spacing_ft)

    def concrete_lines(self, posts: int, concrete: ConcreteMaterials,
                       missing: List[str]) -> List[MaterialLine]:
        quantities = (
            ("sand_gravel", concrete.sand_gravel, math.ceil(posts / self.SAND_GRAVEL_POSTS_PER_BAG)),
            ("portland", concrete.portland, math.ceil(posts / self.PORTLAND_POSTS_PER_BAG)),
            ("quickrock", concrete.quickrock, math.ceil(posts * self.QUICKROCK_BAGS_PER_POST)),
        )
        lines = []
        for name, ref, qty in quantities:
            if ref is None:
                missing.append("concrete_%s" % name)
                continue
            lines.append(self.make_material_line(ref, qty))
        return lines

    def run_per_length(self, net_length: float, ref: MaterialRef) -> float:
        """Pieces needed to cover the run with a linear material (cap, trim)."""
        return net_length / (ref.length_ft or self.DEFAULT_CAP_LENGTH_FT)

    # --- Line builders ---

    def make_material_line(self, ref: MaterialRef, quantity: float, note: str = "") -> MaterialLine:
        return MaterialLine(
            sku=ref.sku,
            name=ref.name,
            quantity=quantity,
            unit_cost=ref.unit_cost,
            category=ref.category,
            unit_type=ref.unit_type,
            material_id=ref.material_id,
            note=note,
        )

    def make_labor_line(self, labor_rates: LaborRateTable, labor_sku: str, quantity: float) -> LaborLine:
        entry = labor_rates.describe(labor_sku)
        return LaborLine(
            labor_sku=labor_sku,
            description=entry.description,
            quantity=quantity,
            rate=labor_rates.rate_for(labor_sku),
            unit_type=entry.unit_type,
            labor_code_id=entry.labor_code_id,
            priced=labor_rates.is_priced(labor_sku),
        )

    def footage_and_gate_codes(self, run: CalculationInput, footage_codes: List[str],
                               gate_code: str) -> List[Tuple[str, float]]:
        codes = [(code, run.net_length) for code in footage_codes]
        if run.number_of_gates > 0:
            codes.append((gate_code, float(run.number_of_gates)))
        return codes

    def _check_post_length(self, spec, warnings: List[str]):
        length = spec.post.length_ft
        if spec.is_tall and length is not None and length < self.TALL_POST_MIN_LENGTH_FT:
            warnings.append(
                "Post %s is %.0f ft; fences over 6 ft need posts of at least %.0f ft." % (
                    spec.post.sku, length, self.TALL_POST_MIN_LENGTH_FT))
