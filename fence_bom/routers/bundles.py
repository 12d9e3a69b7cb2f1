from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from .. import bundles, schemas
from ..database import get_db
from .projects import to_http_error

router = APIRouter(prefix="/bundles", tags=["bundles"])


def _bundle_out(db: Session, bundle) -> schemas.Bundle:
    return schemas.Bundle(
        id=bundle.id,
        project_code=bundle.project_code,
        project_name=bundle.project_name,
        status=bundle.status,
        yard_id=bundle.yard_id,
        expected_pickup_date=bundle.expected_pickup_date,
        crew_name=bundle.crew_name,
        child_ids=[c.id for c in bundles.bundle_children(db, bundle)],
    )


@router.post("/", response_model=schemas.Bundle)
def create_bundle(body: schemas.BundleCreate, db: Session = Depends(get_db)):
    try:
        bundle = bundles.create_bundle(db, body.project_ids, bundle_name=body.bundle_name,
                                       crew_name=body.crew_name)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)
    return _bundle_out(db, bundle)


@router.delete("/{bundle_id}")
def unbundle(bundle_id: int, db: Session = Depends(get_db)):
    try:
        freed = bundles.unbundle(db, bundle_id)
    except LookupError as e:
        raise to_http_error(e)
    return {"unbundled": True, "project_ids": freed}


@router.put("/{bundle_id}/status", response_model=schemas.Bundle)
def set_bundle_status(bundle_id: int, body: schemas.StatusUpdate, db: Session = Depends(get_db)):
    """Applies to the bundle row only; children keep their own status."""
    try:
        bundle = bundles.set_bundle_status(db, bundle_id, body.status, notes=body.notes,
                                           yard_spot_id=body.yard_spot_id)
    except (LookupError, ValueError) as e:
        db.rollback()
        raise to_http_error(e)
    return _bundle_out(db, bundle)


@router.get("/{bundle_id}/pick-list", response_model=List[schemas.PickListEntry])
def bundle_pick_list(bundle_id: int, db: Session = Depends(get_db)):
    try:
        return bundles.bundle_pick_list(db, bundle_id)
    except LookupError as e:
        raise to_http_error(e)
