from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import fulfillment, project_costing, schemas
from ..calculators.specs import InvalidCalculationInput
from ..database import get_db
from ..fulfillment import YardSpotUnavailable
from ..project_costing import QuoteLine

router = APIRouter(prefix="/projects", tags=["projects"])


def to_http_error(e: Exception) -> HTTPException:
    """Domain exception -> HTTP status."""
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, YardSpotUnavailable):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, InvalidCalculationInput):
        return HTTPException(status_code=422, detail=str(e))
    # TransitionError, BundleValidationError and other validation failures
    return HTTPException(status_code=400, detail=str(e))


@router.post("/", response_model=schemas.Project)
def create_project(body: schemas.ProjectCreate, db: Session = Depends(get_db)):
    """Commit a quote: calculate every line and save the aggregated BOM/BOL."""
    lines = [QuoteLine(**line.model_dump()) for line in body.lines]
    try:
        return project_costing.create_project(
            db,
            project_name=body.project_name,
            lines=lines,
            business_unit_id=body.business_unit_id,
            customer_name=body.customer_name,
            yard_id=body.yard_id,
            expected_pickup_date=body.expected_pickup_date,
            notes=body.notes,
        )
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.get("/{project_id}", response_model=schemas.Project)
def get_project(project_id: int, db: Session = Depends(get_db)):
    try:
        return project_costing.get_project(db, project_id)
    except LookupError as e:
        raise to_http_error(e)


@router.patch("/{project_id}/lines/materials/{line_id}", response_model=schemas.ProjectMaterial)
def update_material_quantity(project_id: int, line_id: int, body: schemas.ManualQuantityUpdate,
                             db: Session = Depends(get_db)):
    try:
        return project_costing.set_material_manual_quantity(db, project_id, line_id, body.manual_quantity)
    except LookupError as e:
        raise to_http_error(e)


@router.patch("/{project_id}/lines/labor/{line_id}", response_model=schemas.ProjectLabor)
def update_labor_quantity(project_id: int, line_id: int, body: schemas.ManualQuantityUpdate,
                          db: Session = Depends(get_db)):
    try:
        return project_costing.set_labor_manual_quantity(db, project_id, line_id, body.manual_quantity)
    except LookupError as e:
        raise to_http_error(e)


@router.put("/{project_id}/adjustments", response_model=schemas.Project)
def update_manual_adjustments(project_id: int, body: schemas.ManualAdjustmentUpdate,
                              db: Session = Depends(get_db)):
    try:
        return project_costing.set_manual_adjustment(db, project_id, body.manual_adjustments)
    except (LookupError, ValueError) as e:
        raise to_http_error(e)


# --- Fulfillment ---

@router.post("/{project_id}/advance", response_model=schemas.Project)
def advance_project(project_id: int, body: schemas.AdvanceRequest = None, db: Session = Depends(get_db)):
    body = body or schemas.AdvanceRequest()
    try:
        return fulfillment.advance(db, project_id, yard_spot_id=body.yard_spot_id,
                                   notes=body.notes, crew_name=body.crew_name)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.put("/{project_id}/status", response_model=schemas.Project)
def set_project_status(project_id: int, body: schemas.StatusUpdate, db: Session = Depends(get_db)):
    try:
        return fulfillment.set_status(db, project_id, body.status, notes=body.notes,
                                      yard_spot_id=body.yard_spot_id)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post("/{project_id}/stage", response_model=schemas.Project)
def stage_project(project_id: int, body: schemas.StageRequest, db: Session = Depends(get_db)):
    try:
        return fulfillment.stage(db, project_id, body.yard_spot_id, notes=body.notes)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post("/{project_id}/complete", response_model=schemas.Project)
def complete_project(project_id: int, body: schemas.CompleteRequest, db: Session = Depends(get_db)):
    try:
        return fulfillment.complete(db, project_id, partial=body.partial, notes=body.notes,
                                    crew_name=body.crew_name)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post("/{project_id}/clear-partial-pickup", response_model=schemas.Project)
def clear_partial_pickup(project_id: int, db: Session = Depends(get_db)):
    try:
        return fulfillment.clear_partial_pickup(db, project_id)
    except (LookupError, ValueError) as e:
        raise to_http_error(e)


@router.post("/{project_id}/revert", response_model=schemas.Project)
def revert_completion(project_id: int, body: schemas.RevertRequest = None, db: Session = Depends(get_db)):
    body = body or schemas.RevertRequest()
    try:
        return fulfillment.revert_completion(db, project_id, notes=body.notes)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post("/{project_id}/archive", response_model=schemas.Project)
def archive_project(project_id: int, db: Session = Depends(get_db)):
    try:
        return fulfillment.archive(db, project_id)
    except LookupError as e:
        raise to_http_error(e)


@router.post("/{project_id}/restore", response_model=schemas.Project)
def restore_project(project_id: int, db: Session = Depends(get_db)):
    try:
        return fulfillment.restore(db, project_id)
    except LookupError as e:
        raise to_http_error(e)


@router.get("/{project_id}/history", response_model=List[schemas.StatusHistoryEntry])
def project_history(project_id: int, db: Session = Depends(get_db)):
    try:
        return fulfillment.history(db, project_id)
    except LookupError as e:
        raise to_http_error(e)
