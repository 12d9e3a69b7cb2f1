"""
Project fulfillment state machine.

    draft -> ready -> sent_to_yard -> staged -> loaded -> completed

`advance` moves exactly one step along that path. `set_status` assigns any
status directly, cancelled included. Staging needs a free yard spot in the
project's yard; the spot is claimed in the same commit as the status write.
Reaching loaded, completed or cancelled from any other state frees the spot.

Archival is orthogonal: archive/restore never touch status.

A direct status change on a bundled project detaches it from its bundle
first (see bundles.detach_child).
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from . import models
from .models import STATUS_SEQUENCE, ProjectStatus
from .project_costing import get_project

logger = logging.getLogger(__name__)

# Entering one of these from outside the group frees the yard spot
SPOT_RELEASING_STATUSES = {ProjectStatus.LOADED, ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}


class TransitionError(ValueError):
    pass


class YardSpotUnavailable(ValueError):
    pass


# --- Public operations ---

def advance(db: Session, project_id: int, yard_spot_id: Optional[int] = None,
            notes: Optional[str] = None, crew_name: Optional[str] = None) -> models.BOMProject:
    """Move one step forward. Staging needs a spot; completing is a normal (full) pickup."""
    project = get_project(db, project_id)
    current = ProjectStatus(project.status)
    if current not in STATUS_SEQUENCE or current == ProjectStatus.COMPLETED:
        raise TransitionError("Cannot advance a %s project" % current.value)

    target = STATUS_SEQUENCE[STATUS_SEQUENCE.index(current) + 1]
    if target == ProjectStatus.STAGED:
        return stage(db, project_id, yard_spot_id, notes=notes)
    if target == ProjectStatus.COMPLETED:
        return complete(db, project_id, crew_name=crew_name, notes=notes)

    change_status(db, project, target, notes)
    db.commit()
    db.refresh(project)
    return project


def set_status(db: Session, project_id: int, status, notes: Optional[str] = None,
               yard_spot_id: Optional[int] = None) -> models.BOMProject:
    """Direct assignment. Any status may be reached from any other."""
    target = ProjectStatus(status)
    if target == ProjectStatus.STAGED:
        return stage(db, project_id, yard_spot_id, notes=notes)

    project = get_project(db, project_id)
    change_status(db, project, target, notes)
    db.commit()
    db.refresh(project)
    return project


def stage(db: Session, project_id: int, yard_spot_id: Optional[int],
          notes: Optional[str] = None) -> models.BOMProject:
    """Assign a yard spot and move to staged. Re-staging moves the project to the new spot."""
    project = get_project(db, project_id)
    if ProjectStatus(project.status) in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED):
        raise TransitionError("Cannot stage a %s project" % project.status)
    if yard_spot_id is None:
        raise TransitionError("A yard spot is required to stage a project")

    spot = db.query(models.YardSpot).filter(models.YardSpot.id == yard_spot_id).first()
    if not spot or not spot.is_active:
        raise YardSpotUnavailable("Yard spot %s does not exist or is inactive" % yard_spot_id)
    if spot.is_occupied and spot.occupied_by_project_id != project.id:
        raise YardSpotUnavailable("Yard spot %s is occupied by project %s" % (
            spot.spot_code, spot.occupied_by_project_id))
    if project.yard_id is not None and spot.yard_id != project.yard_id:
        raise YardSpotUnavailable("Yard spot %s is not in the project's yard" % spot.spot_code)

    if project.bundle_id is not None:
        _detach_from_bundle(db, project)
    if project.yard_spot_id and project.yard_spot_id != spot.id:
        release_spot(db, project)

    spot.is_occupied = True
    spot.occupied_by_project_id = project.id
    spot.occupied_at = datetime.utcnow()
    project.yard_spot_id = spot.id
    project.yard_id = spot.yard_id
    _write_status(db, project, ProjectStatus.STAGED, notes)
    db.commit()
    db.refresh(project)
    return project


def complete(db: Session, project_id: int, partial: bool = False,
             notes: Optional[str] = None, crew_name: Optional[str] = None) -> models.BOMProject:
    """
    Record pickup. A partial pickup must carry notes describing what was left
    behind; flag, notes and status are written in one commit.
    """
    project = get_project(db, project_id)
    current = ProjectStatus(project.status)
    if current not in (ProjectStatus.STAGED, ProjectStatus.LOADED):
        raise TransitionError("Only staged or loaded projects can be completed (status: %s)" % current.value)
    if partial and not (notes or "").strip():
        raise TransitionError("Partial pickup requires notes")

    project.partial_pickup = partial
    project.partial_pickup_notes = notes.strip() if partial else None
    if crew_name:
        project.crew_name = crew_name
    project.signoffs.append(models.ProjectSignoff(
        crew_name=crew_name or project.crew_name,
        is_partial_pickup=partial,
        partial_pickup_notes=project.partial_pickup_notes,
    ))
    change_status(db, project, ProjectStatus.COMPLETED, notes)
    db.commit()
    db.refresh(project)
    return project


def clear_partial_pickup(db: Session, project_id: int) -> models.BOMProject:
    """The rest of a partial pickup has been collected. Status is unchanged."""
    project = get_project(db, project_id)
    if not project.partial_pickup:
        raise TransitionError("Project %s is not a partial pickup" % project.project_code)
    project.partial_pickup = False
    project.partial_pickup_notes = None
    db.commit()
    db.refresh(project)
    logger.info("Cleared partial pickup on %s", project.project_code)
    return project


def revert_completion(db: Session, project_id: int, notes: Optional[str] = None) -> models.BOMProject:
    """Administrative reversal: completed -> loaded."""
    project = get_project(db, project_id)
    if ProjectStatus(project.status) != ProjectStatus.COMPLETED:
        raise TransitionError("Only completed projects can be reverted (status: %s)" % project.status)
    change_status(db, project, ProjectStatus.LOADED, notes or "Completion reverted")
    project.completed_at = None
    db.commit()
    db.refresh(project)
    return project


def archive(db: Session, project_id: int) -> models.BOMProject:
    project = get_project(db, project_id)
    project.is_archived = True
    project.archived_at = datetime.utcnow()
    db.commit()
    db.refresh(project)
    logger.info("Archived %s", project.project_code)
    return project


def restore(db: Session, project_id: int) -> models.BOMProject:
    project = get_project(db, project_id)
    project.is_archived = False
    project.archived_at = None
    db.commit()
    db.refresh(project)
    logger.info("Restored %s", project.project_code)
    return project


def history(db: Session, project_id: int):
    return get_project(db, project_id).status_history


# --- Building blocks (no commit) ---

def change_status(db: Session, project: models.BOMProject, target: ProjectStatus,
                  notes: Optional[str] = None):
    """Detach from a bundle if needed, then write the status."""
    if project.bundle_id is not None:
        _detach_from_bundle(db, project)
    _write_status(db, project, target, notes)


def release_spot(db: Session, project: models.BOMProject):
    """Free the spot this project occupies. The project keeps yard_spot_id as a record."""
    if not project.yard_spot_id:
        return
    spot = db.query(models.YardSpot).filter(models.YardSpot.id == project.yard_spot_id).first()
    if spot and spot.occupied_by_project_id == project.id:
        spot.is_occupied = False
        spot.occupied_by_project_id = None
        spot.occupied_at = None
        logger.info("Released yard spot %s from %s", spot.spot_code, project.project_code)


def _write_status(db: Session, project: models.BOMProject, target: ProjectStatus,
                  notes: Optional[str] = None):
    old = ProjectStatus(project.status) if project.status else None
    now = datetime.utcnow()

    if target in SPOT_RELEASING_STATUSES and old not in SPOT_RELEASING_STATUSES:
        release_spot(db, project)

    if target == ProjectStatus.STAGED:
        project.staged_at = now
    elif target == ProjectStatus.LOADED:
        project.loaded_at = now
    elif target == ProjectStatus.COMPLETED:
        project.completed_at = now

    project.status = target.value
    project.status_history.append(models.ProjectStatusHistory(
        old_status=old.value if old else None,
        new_status=target.value,
        changed_at=now,
        notes=notes,
        yard_spot_id=project.yard_spot_id,
    ))
    logger.info("Project %s: %s -> %s", project.project_code, old.value if old else None, target.value)


def _detach_from_bundle(db: Session, project: models.BOMProject):
    from .bundles import detach_child
    detach_child(db, project)
