from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidState, NotFound
from ..models import ShiftAssignment
from ..permissions import ATTENDANCE_RECORD, Capability, allow_all, require
from ..repository import ShiftRepository
from ..schemas.attendance import LocationAttestation, LocationWarning
from ..timeutil import duration_hours, utcnow
from .location import check_attested_location

logger = logging.getLogger(__name__)


@dataclass
class AttendanceResult:
    assignment: ShiftAssignment
    location_warning: Optional[LocationWarning] = None
    shift_completed: bool = False


def check_in(
    db: Session,
    assignment_id: int,
    location: Optional[LocationAttestation] = None,
    *,
    now: datetime | None = None,
    authorize: Capability = allow_all,
) -> AttendanceResult:
    require(authorize, ATTENDANCE_RECORD)
    repo = ShiftRepository(db)
    assignment = _load(repo, assignment_id)
    if assignment.status != "assigned":
        raise _invalid(assignment, "Assignment cannot be checked in")

    shift = repo.find_shift(assignment.shift_id, for_update=True)
    now = now or utcnow()
    coords = {}
    if location:
        coords = {"check_in_latitude": location.latitude, "check_in_longitude": location.longitude}
    if not repo.update_assignment_status(
        assignment_id, "checked_in", expected_status="assigned", check_in_time=now, **coords
    ):
        db.rollback()
        raise _invalid(_load(repo, assignment_id), "Assignment cannot be checked in")
    if repo.update_shift_status(shift.id, "in_progress", from_statuses=("scheduled",)):
        logger.info("Shift %s is now in progress", shift.id)
    db.commit()

    warning = check_attested_location(shift.site, location)
    if warning:
        logger.info("Check-in %s is %.0fm from site %s", assignment_id, warning.distance_meters, warning.site_id)
    return AttendanceResult(assignment=repo.find_assignment(assignment_id), location_warning=warning)


def check_out(
    db: Session,
    assignment_id: int,
    location: Optional[LocationAttestation] = None,
    *,
    now: datetime | None = None,
    authorize: Capability = allow_all,
) -> AttendanceResult:
    require(authorize, ATTENDANCE_RECORD)
    repo = ShiftRepository(db)
    assignment = _load(repo, assignment_id)
    if assignment.status != "checked_in" or assignment.check_in_time is None:
        raise _invalid(assignment, "Assignment has no open check-in")

    # Lock the shift so that concurrent final check-outs agree on completion.
    shift = repo.find_shift(assignment.shift_id, for_update=True)
    now = now or utcnow()
    hours = duration_hours(assignment.check_in_time, now)
    coords = {}
    if location:
        coords = {"check_out_latitude": location.latitude, "check_out_longitude": location.longitude}
    if not repo.update_assignment_status(
        assignment_id,
        "checked_out",
        expected_status="checked_in",
        check_out_time=now,
        actual_hours=hours,
        **coords,
    ):
        db.rollback()
        raise _invalid(_load(repo, assignment_id), "Assignment has no open check-in")

    completed = repo.complete_shift_if_done(shift.id, from_statuses=("scheduled", "in_progress"))
    db.commit()
    if completed:
        logger.info("Shift %s completed", shift.id)

    warning = check_attested_location(shift.site, location)
    return AttendanceResult(
        assignment=repo.find_assignment(assignment_id),
        location_warning=warning,
        shift_completed=completed,
    )


def _load(repo: ShiftRepository, assignment_id: int) -> ShiftAssignment:
    assignment = repo.find_assignment(assignment_id)
    if not assignment:
        raise NotFound("Assignment not found", assignment_id=assignment_id)
    return assignment


def _invalid(assignment: ShiftAssignment, message: str) -> InvalidState:
    return InvalidState(
        message,
        assignment_id=assignment.id,
        shift_id=assignment.shift_id,
        worker_id=assignment.worker_id,
        status=assignment.status,
    )
