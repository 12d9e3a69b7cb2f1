from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from .. import schemas
from ..calculators.specs import FenceType
from ..database import get_db
from ..project_costing import ProductNotFound
from ..recalculation import RecalculationService

router = APIRouter(prefix="/skus", tags=["skus"])


def _response(result) -> schemas.RecalculationResponse:
    return schemas.RecalculationResponse(
        updated_materials=result.updated_materials,
        updated_labor_rows=result.updated_labor_rows,
        errors=[schemas.RecalculationErrorOut(**asdict(e)) for e in result.errors],
        interrupted=result.interrupted,
        last_completed=result.last_completed,
    )


@router.post("/recalculate", response_model=schemas.RecalculationResponse)
def recalculate_all(db: Session = Depends(get_db)):
    """Re-price every active SKU for materials and for every business unit's labor."""
    return _response(RecalculationService(db).recalculate_all())


@router.post("/{fence_type}/{product_id}/recalculate", response_model=schemas.RecalculationResponse)
def recalculate_sku(fence_type: FenceType, product_id: int, db: Session = Depends(get_db)):
    try:
        result = RecalculationService(db).recalculate_sku(fence_type, product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _response(result)
