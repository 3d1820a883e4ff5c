"""Binding workers to shifts.

``assign`` is a check-then-insert: the worker row is locked first so that two
requests for the same worker run one after the other, the overlap check sees
everything the earlier one committed, and the unique (shift, worker)
constraint catches any duplicate that still slips through.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..errors import DuplicateAssignment, InvalidState, NotFound, SchedulingConflict, WorkerUnavailable
from ..models import Shift, ShiftAssignment, Worker
from ..permissions import ASSIGNMENTS_MANAGE, Capability, allow_all, require
from ..repository import ShiftRepository
from ..timeutil import overlaps
from .events import ASSIGNMENT_CREATED, EventSink, emit_safely

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "guard"


def assign(
    db: Session,
    shift_id: int,
    worker_id: int,
    role: str | None = DEFAULT_ROLE,
    *,
    sink: EventSink | None = None,
    authorize: Capability = allow_all,
) -> ShiftAssignment:
    require(authorize, ASSIGNMENTS_MANAGE)
    repo = ShiftRepository(db)
    try:
        worker = repo.lock_worker(worker_id)
        if not worker:
            raise NotFound("Worker not found", worker_id=worker_id)
        shift = repo.find_shift(shift_id)
        if not shift:
            raise NotFound("Shift not found", shift_id=shift_id)

        existing = repo.find_assignment_for_pair(shift_id, worker_id)
        if existing:
            raise DuplicateAssignment(
                "Worker is already assigned to this shift",
                shift_id=shift_id,
                worker_id=worker_id,
                assignment_id=existing.id,
            )
        _ensure_eligible(worker, shift)
        _ensure_no_overlap(repo, shift, worker_id)

        assignment = repo.insert_assignment(
            ShiftAssignment(shift_id=shift_id, worker_id=worker_id, role=role or DEFAULT_ROLE, status="assigned")
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Assigned worker %s to shift %s (assignment %s)", worker_id, shift_id, assignment.id)
    emit_safely(
        sink,
        ASSIGNMENT_CREATED,
        {
            "assignment_id": assignment.id,
            "shift_id": shift.id,
            "worker_id": worker.id,
            "worker_name": worker.full_name,
            "role": assignment.role,
            "date": shift.date.isoformat(),
            "start_time": shift.start_time.strftime("%H:%M"),
            "end_time": shift.end_time.strftime("%H:%M"),
        },
    )
    return assignment


def unassign(db: Session, shift_id: int, assignment_id: int, *, authorize: Capability = allow_all) -> None:
    require(authorize, ASSIGNMENTS_MANAGE)
    repo = ShiftRepository(db)
    assignment = repo.find_assignment(assignment_id)
    if not assignment or assignment.shift_id != shift_id:
        raise NotFound("Assignment not found for this shift", shift_id=shift_id, assignment_id=assignment_id)
    if assignment.status != "assigned":
        raise InvalidState(
            "Only assignments that have not started can be removed",
            assignment_id=assignment_id,
            status=assignment.status,
        )
    if not repo.delete_assignment(shift_id, assignment_id):
        db.rollback()
        raise InvalidState("Assignment changed while being removed", assignment_id=assignment_id)
    db.commit()
    logger.info("Removed assignment %s from shift %s", assignment_id, shift_id)


def mark_no_show(db: Session, assignment_id: int, *, authorize: Capability = allow_all) -> ShiftAssignment:
    """Operator action; only an assignment nobody checked in to can become a no-show."""
    require(authorize, ASSIGNMENTS_MANAGE)
    repo = ShiftRepository(db)
    assignment = repo.find_assignment(assignment_id)
    if not assignment:
        raise NotFound("Assignment not found", assignment_id=assignment_id)

    shift = repo.find_shift(assignment.shift_id, for_update=True)
    if not repo.update_assignment_status(assignment_id, "no_show", expected_status="assigned"):
        db.rollback()
        current = repo.find_assignment(assignment_id)
        raise InvalidState(
            "Only assigned workers can be marked as no-show",
            assignment_id=assignment_id,
            status=current.status if current else None,
        )
    # A shift nobody started stays scheduled even when every worker is absent.
    completed = repo.complete_shift_if_done(shift.id, from_statuses=("in_progress",))
    db.commit()
    logger.info("Assignment %s marked as no-show", assignment_id)
    if completed:
        logger.info("Shift %s completed", shift.id)
    return repo.find_assignment(assignment_id)


def _ensure_eligible(worker: Worker, shift: Shift) -> None:
    if worker.status != "active":
        raise WorkerUnavailable("Worker is not active", worker_id=worker.id, shift_id=shift.id)
    if shift.requires_weapon:
        expiry = worker.weapon_license_expiry
        if not worker.has_weapon_license or (expiry is not None and expiry < shift.date):
            raise WorkerUnavailable(
                "Shift requires a valid weapon license",
                worker_id=worker.id,
                shift_id=shift.id,
                license_expiry=expiry.isoformat() if expiry else None,
            )


def _ensure_no_overlap(repo: ShiftRepository, shift: Shift, worker_id: int) -> None:
    for other in repo.find_assignments_for_worker_on_date(worker_id, shift.date):
        booked = other.shift
        if overlaps(booked.start_time, booked.end_time, shift.start_time, shift.end_time):
            raise SchedulingConflict(
                "Worker already has an overlapping shift",
                shift_id=shift.id,
                worker_id=worker_id,
                conflicting_assignment_id=other.id,
                conflicting_shift_id=booked.id,
                conflicting_window=f"{booked.start_time.strftime('%H:%M')}-{booked.end_time.strftime('%H:%M')}",
            )
