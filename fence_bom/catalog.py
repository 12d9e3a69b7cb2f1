"""
Catalog repository: materials, SKUs and labor rates as the calculators see them.

Reads go through one session. Labor rate tables and concrete materials are
cached per repository instance; call `invalidate()` after prices or rates
change so the next calculation reloads them.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from .calculators.labor_codes import DEFAULT_LABOR_CODES, LaborRate as RateEntry, LaborRateTable
from .calculators.specs import (
    ConcreteMaterials, FenceType, IronSpec, IronStyle, MaterialRef, PostType,
    WoodHorizontalSpec, WoodHorizontalStyle, WoodVerticalSpec, WoodVerticalStyle,
)
from .config import settings
from .models import (
    BusinessUnit, IronProduct, LaborCode, LaborRate, Material,
    WoodHorizontalProduct, WoodVerticalProduct,
)

logger = logging.getLogger(__name__)

PRODUCT_MODELS = {
    FenceType.WOOD_VERTICAL: WoodVerticalProduct,
    FenceType.WOOD_HORIZONTAL: WoodHorizontalProduct,
    FenceType.IRON: IronProduct,
}

# 3-part concrete mix, looked up by material SKU
CONCRETE_SKUS = {
    "sand_gravel": "CTS",
    "portland": "CTP",
    "quickrock": "CTQ",
}

POST_CATEGORY = "01-Post"


def material_ref(material: Optional[Material]) -> Optional[MaterialRef]:
    """Catalog row -> calculator value object. None stays None."""
    if material is None:
        return None
    return MaterialRef(
        sku=material.material_sku,
        name=material.material_name,
        unit_cost=material.unit_cost or 0.0,
        category=material.category or "",
        unit_type=material.unit_type or "ea",
        material_id=material.id,
        length_ft=material.length_ft,
        actual_width=material.actual_width,
        width_nominal=material.width_nominal,
    )


def spec_for(fence_type: FenceType, product, gate_post: Optional[MaterialRef] = None):
    """Build the FenceSpecification for a SKU row. `gate_post` only applies to wood fences."""
    fence_type = FenceType(fence_type)
    if fence_type == FenceType.WOOD_VERTICAL:
        return WoodVerticalSpec(
            height=product.height,
            style=WoodVerticalStyle(product.style),
            post_type=PostType(product.post_type),
            rail_count=product.rail_count or 2,
            post=material_ref(product.post_material),
            picket=material_ref(product.picket_material),
            rail=material_ref(product.rail_material),
            cap=material_ref(product.cap_material),
            trim=material_ref(product.trim_material),
            gate_post=gate_post,
            post_spacing=product.post_spacing,
            sku_code=product.sku_code,
        )
    if fence_type == FenceType.WOOD_HORIZONTAL:
        return WoodHorizontalSpec(
            height=product.height,
            style=WoodHorizontalStyle(product.style),
            post_type=PostType(product.post_type),
            post=material_ref(product.post_material),
            board=material_ref(product.board_material),
            nailer=material_ref(product.nailer_material),
            cap=material_ref(product.cap_material),
            gate_post=gate_post,
            board_width=product.board_width_actual,
            post_spacing=product.post_spacing,
            sku_code=product.sku_code,
        )
    return IronSpec(
        height=product.height,
        style=IronStyle(product.style),
        post=material_ref(product.post_material),
        panel=material_ref(product.panel_material),
        bracket=material_ref(product.bracket_material),
        post_cap=material_ref(product.post_cap_material),
        rails_per_panel=product.rails_per_panel or 2,
        panel_width=product.panel_width or 8.0,
        sku_code=product.sku_code,
    )


class CatalogRepository:
    """Typed access to the catalog with explicit cache invalidation."""

    def __init__(self, db: Session):
        self.db = db
        self._rate_tables: Dict[int, LaborRateTable] = {}
        self._concrete: Optional[ConcreteMaterials] = None
        self._gate_post: Optional[MaterialRef] = None

    def invalidate(self):
        """Drop cached rate tables, concrete and the gate post."""
        logger.info("Catalog cache invalidated (%d rate tables)", len(self._rate_tables))
        self._rate_tables.clear()
        self._concrete = None
        self._gate_post = None

    # --- SKUs ---

    def get_product(self, fence_type, product_id: int):
        model = PRODUCT_MODELS[FenceType(fence_type)]
        return self.db.query(model).filter(model.id == product_id).first()

    def products(self, fence_type=None, active_only: bool = True) -> List[Tuple[FenceType, object]]:
        """(fence_type, product) pairs, ordered by type then SKU code."""
        types = [FenceType(fence_type)] if fence_type else list(PRODUCT_MODELS)
        result = []
        for ft in types:
            model = PRODUCT_MODELS[ft]
            query = self.db.query(model)
            if active_only:
                query = query.filter(model.is_active == True)  # noqa: E712
            result.extend((ft, p) for p in query.order_by(model.sku_code).all())
        return result

    def spec_for(self, fence_type, product):
        return spec_for(fence_type, product, gate_post=self.gate_post_material())

    # --- Materials ---

    def get_material(self, material_id: Optional[int]) -> Optional[MaterialRef]:
        if material_id is None:
            return None
        return material_ref(self.db.query(Material).filter(Material.id == material_id).first())

    def concrete_materials(self) -> ConcreteMaterials:
        if self._concrete is None:
            rows = {
                m.material_sku: m
                for m in self.db.query(Material).filter(
                    Material.material_sku.in_(list(CONCRETE_SKUS.values()))).all()
            }
            self._concrete = ConcreteMaterials(**{
                name: material_ref(rows.get(sku)) for name, sku in CONCRETE_SKUS.items()
            })
        return self._concrete

    def gate_post_material(self) -> Optional[MaterialRef]:
        """Steel post used for gate jambs, looked up by GATE_POST_SKU."""
        if self._gate_post is None:
            self._gate_post = material_ref(self.db.query(Material).filter(
                Material.material_sku == settings.GATE_POST_SKU).first())
        return self._gate_post

    def eligible_post_materials(self, fence_height: float) -> List[Material]:
        """Active posts long enough for the fence height."""
        query = self.db.query(Material).filter(
            Material.category == POST_CATEGORY, Material.status == "Active")
        if fence_height > 6:
            query = query.filter(Material.length_ft >= settings.TALL_FENCE_MIN_POST_LENGTH_FT)
        return query.order_by(Material.material_sku).all()

    # --- Labor ---

    def active_business_units(self) -> List[BusinessUnit]:
        return (self.db.query(BusinessUnit)
                .filter(BusinessUnit.is_active == True)  # noqa: E712
                .order_by(BusinessUnit.code).all())

    def get_business_unit(self, business_unit_id: Optional[int]) -> Optional[BusinessUnit]:
        if business_unit_id is None:
            return None
        return self.db.query(BusinessUnit).filter(BusinessUnit.id == business_unit_id).first()

    def labor_rates_for(self, business_unit: Optional[BusinessUnit]) -> LaborRateTable:
        """Rate table for one business unit. No unit -> empty table (everything unpriced)."""
        if business_unit is None:
            return LaborRateTable()
        if business_unit.id not in self._rate_tables:
            rows = (self.db.query(LaborRate, LaborCode)
                    .join(LaborCode, LaborRate.labor_code_id == LaborCode.id)
                    .filter(LaborRate.business_unit_id == business_unit.id)
                    .all())
            entries = [
                RateEntry(
                    labor_sku=code.labor_sku,
                    rate=rate.rate or 0.0,
                    description=code.description,
                    unit_type=code.unit_type or "LF",
                    labor_code_id=code.id,
                )
                for rate, code in rows
            ]
            self._rate_tables[business_unit.id] = LaborRateTable.from_rates(entries, business_unit.code)
        return self._rate_tables[business_unit.id]

    def labor_code_ids(self) -> Dict[str, int]:
        return {c.labor_sku: c.id for c in self.db.query(LaborCode).all()}


def seed_labor_codes(db: Session) -> int:
    """Insert any missing default labor codes. Returns the number added."""
    existing = {c.labor_sku for c in db.query(LaborCode).all()}
    added = 0
    for labor_sku, (description, unit_type) in DEFAULT_LABOR_CODES.items():
        if labor_sku in existing:
            continue
        db.add(LaborCode(labor_sku=labor_sku, description=description, unit_type=unit_type))
        added += 1
    if added:
        db.commit()
    return added
