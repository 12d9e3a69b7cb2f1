from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from .. import schemas
from ..calculators.registry import calculate
from ..calculators.specs import (
    CalculationInput, FenceType, InvalidCalculationInput, IronSpec, IronStyle, PostType,
    WoodHorizontalSpec, WoodHorizontalStyle, WoodVerticalSpec, WoodVerticalStyle,
)
from ..catalog import CatalogRepository
from ..database import get_db

router = APIRouter(prefix="/calculate", tags=["calculator"])

MATERIAL_ROLES = {
    FenceType.WOOD_VERTICAL: ("post", "picket", "rail", "cap", "trim", "gate_post"),
    FenceType.WOOD_HORIZONTAL: ("post", "board", "nailer", "cap", "gate_post"),
    FenceType.IRON: ("post", "panel", "bracket", "post_cap"),
}


def build_spec(req: schemas.CalculateRequest, catalog: CatalogRepository):
    """Spec from a saved SKU, or from the ad-hoc fields on the request."""
    if req.product_id is not None:
        product = catalog.get_product(req.fence_type, req.product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return catalog.spec_for(req.fence_type, product)

    if req.height is None:
        raise HTTPException(status_code=422, detail="height is required without product_id")
    roles = MATERIAL_ROLES[req.fence_type]
    unknown = set(req.materials) - set(roles)
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown material roles for {req.fence_type.value}: {sorted(unknown)}")
    refs = {role: catalog.get_material(req.materials.get(role)) for role in roles}
    if "gate_post" in roles and refs["gate_post"] is None:
        refs["gate_post"] = catalog.gate_post_material()

    if req.fence_type == FenceType.WOOD_VERTICAL:
        return WoodVerticalSpec(
            height=req.height,
            style=WoodVerticalStyle(req.style or WoodVerticalStyle.STANDARD.value),
            post_type=PostType(req.post_type or PostType.WOOD.value),
            rail_count=req.rail_count or 2,
            post_spacing=req.post_spacing,
            **refs,
        )
    if req.fence_type == FenceType.WOOD_HORIZONTAL:
        return WoodHorizontalSpec(
            height=req.height,
            style=WoodHorizontalStyle(req.style or WoodHorizontalStyle.STANDARD.value),
            post_type=PostType(req.post_type or PostType.WOOD.value),
            board_width=req.board_width,
            post_spacing=req.post_spacing,
            **refs,
        )
    return IronSpec(
        height=req.height,
        style=IronStyle(req.style or IronStyle.STANDARD_2_RAIL.value),
        rails_per_panel=req.rails_per_panel or 2,
        panel_width=req.panel_width or 8.0,
        **refs,
    )


@router.post("/", response_model=schemas.CalculationResponse)
def calculate_preview(req: schemas.CalculateRequest, db: Session = Depends(get_db)):
    """Costed preview. Nothing is saved."""
    catalog = CatalogRepository(db)
    try:
        spec = build_spec(req, catalog)
        run = CalculationInput(
            net_length=req.net_length,
            number_of_lines=req.number_of_lines,
            number_of_gates=req.number_of_gates,
        )
    except InvalidCalculationInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        # Unknown style / post type strings
        raise HTTPException(status_code=422, detail=str(e))

    rates = catalog.labor_rates_for(catalog.get_business_unit(req.business_unit_id))
    result = calculate(spec, run, rates, catalog.concrete_materials())

    return schemas.CalculationResponse(
        posts=result.posts,
        materials=[
            schemas.MaterialLineOut(
                sku=m.sku, name=m.name, quantity=m.quantity, unit_cost=m.unit_cost,
                total=m.total, category=m.category, material_id=m.material_id, note=m.note,
            )
            for m in result.materials
        ],
        labor=[
            schemas.LaborLineOut(
                labor_sku=l.labor_sku, description=l.description, quantity=l.quantity,
                rate=l.rate, total=l.total, unit_type=l.unit_type, priced=l.priced,
            )
            for l in result.labor
        ],
        missing=list(result.missing),
        warnings=list(result.warnings),
        total_material_cost=result.total_material_cost,
        total_labor_cost=result.total_labor_cost,
        total_cost=result.total_cost,
        is_complete=result.is_complete,
    )
