from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ..config import get_settings
from ..models import ShiftAssignment
from ..repository import ShiftRepository
from ..timeutil import lead_window_end, local_now, minutes_between, utcnow
from .events import GUARD_OVERDUE, SHIFT_IMMINENT, EventSink, emit_safely

logger = logging.getLogger(__name__)


def send_imminent_shift_reminders(
    db: Session,
    sink: EventSink | None,
    *,
    now: datetime | None = None,
    lead_minutes: int | None = None,
) -> int:
    """Emit ``shift.imminent`` once per assignment whose shift starts within the lead window."""
    now = now or local_now()
    if lead_minutes is None:
        lead_minutes = get_settings().imminent_lead_minutes
    starting_by = lead_window_end(now, lead_minutes)

    repo = ShiftRepository(db)
    claimed: list[ShiftAssignment] = []
    for assignment in repo.find_due_assignments(now.date(), starting_by=starting_by, alert="reminder"):
        if _starts_at(assignment) < now:
            continue
        if repo.claim_alert(assignment.id, "reminder", utcnow()):
            claimed.append(assignment)
    db.commit()

    for assignment in claimed:
        payload = _payload(assignment)
        payload["minutes_until_start"] = minutes_between(now, _starts_at(assignment))
        emit_safely(sink, SHIFT_IMMINENT, payload)
    if claimed:
        logger.info("Sent %s shift reminders", len(claimed))
    return len(claimed)


def flag_overdue_guards(
    db: Session,
    sink: EventSink | None,
    *,
    now: datetime | None = None,
    grace_minutes: int | None = None,
) -> int:
    """Emit ``guard.overdue`` once per assignment still not checked in past start + grace.

    Only raises the alarm; marking a no-show stays an operator decision.
    """
    now = now or local_now()
    if grace_minutes is None:
        grace_minutes = get_settings().overdue_grace_minutes
    cutoff = now - timedelta(minutes=grace_minutes)
    if cutoff.date() != now.date():
        return 0

    repo = ShiftRepository(db)
    claimed: list[ShiftAssignment] = []
    for assignment in repo.find_due_assignments(now.date(), starting_by=cutoff.time(), alert="overdue"):
        if repo.claim_alert(assignment.id, "overdue", utcnow()):
            claimed.append(assignment)
    db.commit()

    for assignment in claimed:
        payload = _payload(assignment)
        payload["minutes_late"] = minutes_between(_starts_at(assignment), now)
        emit_safely(sink, GUARD_OVERDUE, payload)
    if claimed:
        logger.warning("%s guards overdue for check-in", len(claimed))
    return len(claimed)


def _starts_at(assignment: ShiftAssignment) -> datetime:
    return datetime.combine(assignment.shift.date, assignment.shift.start_time)


def _payload(assignment: ShiftAssignment) -> dict:
    shift = assignment.shift
    return {
        "assignment_id": assignment.id,
        "shift_id": shift.id,
        "worker_id": assignment.worker_id,
        "worker_name": assignment.worker.full_name,
        "phone": assignment.worker.phone,
        "site_name": shift.site.name if shift.site else None,
        "company_name": shift.customer.company_name if shift.customer else None,
        "date": shift.date.isoformat(),
        "start_time": shift.start_time.strftime("%H:%M"),
        "end_time": shift.end_time.strftime("%H:%M"),
    }
