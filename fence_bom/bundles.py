"""
Bundle coordinator: several projects picked up together as one logistics unit.

A bundle is a BOMProject row with is_bundle=True; its children point at it
through bundle_id. A bundle always has at least two children. When a child
leaves and fewer than two remain, the last child is detached too and the
bundle row is deleted.

Status changes on the bundle apply to the bundle row only; children keep
their own status.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import fulfillment, models
from .project_costing import ProjectNotFound, generate_project_code, pick_list

logger = logging.getLogger(__name__)

MIN_BUNDLE_SIZE = 2


class BundleValidationError(ValueError):
    pass


class BundleNotFound(LookupError):
    pass


def get_bundle(db: Session, bundle_id: int) -> models.BOMProject:
    bundle = db.query(models.BOMProject).filter(
        models.BOMProject.id == bundle_id,
        models.BOMProject.is_bundle == True,  # noqa: E712
    ).first()
    if not bundle:
        raise BundleNotFound("Bundle %s not found" % bundle_id)
    return bundle


def bundle_children(db: Session, bundle: models.BOMProject) -> List[models.BOMProject]:
    db.flush()
    return (db.query(models.BOMProject)
            .filter(models.BOMProject.bundle_id == bundle.id)
            .order_by(models.BOMProject.id).all())


def create_bundle(db: Session, project_ids: List[int], bundle_name: Optional[str] = None,
                  crew_name: Optional[str] = None) -> models.BOMProject:
    """
    Group projects into a bundle. Everything is validated before the first write:
    - at least two distinct projects
    - none is a bundle or already bundled
    - all share yard_id and expected_pickup_date
    The bundle takes status, yard, pickup date and crew from the first project.
    """
    ids = list(dict.fromkeys(project_ids))
    if len(ids) < MIN_BUNDLE_SIZE:
        raise BundleValidationError("A bundle needs at least %d distinct projects" % MIN_BUNDLE_SIZE)

    projects = []
    for project_id in ids:
        project = db.query(models.BOMProject).filter(models.BOMProject.id == project_id).first()
        if not project:
            raise ProjectNotFound("Project %s not found" % project_id)
        if project.is_bundle:
            raise BundleValidationError("Project %s is itself a bundle" % project.project_code)
        if project.bundle_id is not None:
            raise BundleValidationError("Project %s is already in a bundle" % project.project_code)
        projects.append(project)

    first = projects[0]
    for project in projects[1:]:
        if project.yard_id != first.yard_id:
            raise BundleValidationError("All projects must share the same yard")
        if project.expected_pickup_date != first.expected_pickup_date:
            raise BundleValidationError("All projects must share the same pickup date")

    codes = [p.project_code for p in projects]
    bundle = models.BOMProject(
        project_code=generate_project_code(db),
        project_name=bundle_name or "Bundle: %s" % ", ".join(c for c in codes if c),
        bundle_name=bundle_name,
        is_bundle=True,
        status=first.status,
        yard_id=first.yard_id,
        expected_pickup_date=first.expected_pickup_date,
        crew_name=crew_name or first.crew_name,
        business_unit_id=first.business_unit_id,
    )
    db.add(bundle)
    db.flush()
    for project in projects:
        project.bundle_id = bundle.id
    db.commit()
    db.refresh(bundle)
    logger.info("Created bundle %s with %s", bundle.project_code, ", ".join(c for c in codes if c))
    return bundle


def detach_child(db: Session, child: models.BOMProject):
    """
    Take one project out of its bundle. Dissolves the bundle when fewer than
    two children would remain. Does not commit.
    """
    bundle = db.query(models.BOMProject).filter(models.BOMProject.id == child.bundle_id).first()
    child.bundle_id = None
    if bundle is None:
        return
    remaining = bundle_children(db, bundle)
    logger.info("Detached %s from bundle %s (%d left)", child.project_code, bundle.project_code, len(remaining))
    if len(remaining) < MIN_BUNDLE_SIZE:
        _dissolve(db, bundle, remaining)


def unbundle(db: Session, bundle_id: int) -> List[int]:
    """Detach every child and delete the bundle. Returns the freed project ids."""
    bundle = get_bundle(db, bundle_id)
    children = bundle_children(db, bundle)
    _dissolve(db, bundle, children)
    db.commit()
    return [c.id for c in children]


def set_bundle_status(db: Session, bundle_id: int, status, notes: Optional[str] = None,
                      yard_spot_id: Optional[int] = None) -> models.BOMProject:
    bundle = get_bundle(db, bundle_id)
    return fulfillment.set_status(db, bundle.id, status, notes=notes, yard_spot_id=yard_spot_id)


def bundle_pick_list(db: Session, bundle_id: int) -> List[dict]:
    """Materials for the whole pickup, summed across children."""
    bundle = get_bundle(db, bundle_id)
    return pick_list(bundle_children(db, bundle))


def _dissolve(db: Session, bundle: models.BOMProject, children: List[models.BOMProject]):
    for child in children:
        child.bundle_id = None

    # Hand the staging spot down to a sole survivor; otherwise free it
    spot = None
    if bundle.yard_spot_id:
        spot = db.query(models.YardSpot).filter(models.YardSpot.id == bundle.yard_spot_id).first()
    if spot and spot.occupied_by_project_id == bundle.id:
        if len(children) == 1 and not children[0].yard_spot_id:
            spot.occupied_by_project_id = children[0].id
            children[0].yard_spot_id = spot.id
        else:
            fulfillment.release_spot(db, bundle)

    db.flush()
    db.delete(bundle)
    logger.info("Dissolved bundle %s", bundle.project_code)
