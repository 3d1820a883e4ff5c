from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..errors import NotFound, ValidationError
from ..models import Shift
from ..permissions import SHIFTS_CREATE, SHIFTS_DELETE, SHIFTS_VIEW, Capability, allow_all, require
from ..repository import ShiftRepository
from ..schemas.shift import AssignmentRead, ShiftCreate, ShiftDetail, ShiftListItem, ShiftTemplate
from ..timeutil import iter_dates, sunday_based_weekday

logger = logging.getLogger(__name__)

SHIFT_STATUSES = ("scheduled", "in_progress", "completed")


@dataclass
class RecurringBatch:
    shifts: List[Shift] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.shifts)


def create_shift(db: Session, payload: ShiftCreate, *, authorize: Capability = allow_all) -> Shift:
    require(authorize, SHIFTS_CREATE)
    repo = ShiftRepository(db)
    _validate_template(repo, payload)
    shift = repo.insert_shift(_build_shift(payload, payload.date))
    db.commit()
    logger.info("Created shift %s on %s %s-%s", shift.id, shift.date, shift.start_time, shift.end_time)
    return shift


def create_recurring_shifts(
    db: Session,
    template: ShiftTemplate,
    start_date: date,
    end_date: date,
    weekdays: Iterable[int],
    *,
    authorize: Capability = allow_all,
) -> RecurringBatch:
    """Create one shift per date in the inclusive range whose weekday (0=Sunday) is selected.

    Every shift is committed on its own. If persisting one fails the batch
    stops there, keeps what was already created and reports the error.
    """
    require(authorize, SHIFTS_CREATE)
    repo = ShiftRepository(db)
    _validate_template(repo, template)
    selected = _validate_weekdays(weekdays)
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", start_date=str(start_date), end_date=str(end_date))
    span_days = (end_date - start_date).days + 1
    max_days = get_settings().max_recurring_days
    if span_days > max_days:
        raise ValidationError(f"Recurring range may cover at most {max_days} days", days=span_days)

    batch = RecurringBatch()
    for current in iter_dates(start_date, end_date):
        if sunday_based_weekday(current) not in selected:
            continue
        try:
            shift = repo.insert_shift(_build_shift(template, current))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Recurring batch stopped at %s after %s shifts", current, batch.count)
            batch.error = f"Failed to create shift on {current}: {exc.__class__.__name__}"
            break
        batch.shifts.append(shift)
    logger.info("Recurring batch %s..%s created %s shifts", start_date, end_date, batch.count)
    return batch


def get_shift_detail(db: Session, shift_id: int, *, authorize: Capability = allow_all) -> ShiftDetail:
    require(authorize, SHIFTS_VIEW)
    repo = ShiftRepository(db)
    shift = repo.find_shift_detail(shift_id)
    if not shift:
        raise NotFound("Shift not found", shift_id=shift_id)
    assigned = repo.count_assignments(shift_id)
    item = _list_item(shift, assigned)
    return ShiftDetail(
        **item.model_dump(),
        open_slots=max(0, shift.required_workers - assigned),
        assignments=[AssignmentRead.model_validate(a) for a in sorted(shift.assignments, key=lambda a: a.id)],
    )


def list_shifts(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    customer_id: int | None = None,
    site_id: int | None = None,
    status: str | None = None,
    authorize: Capability = allow_all,
) -> list[ShiftListItem]:
    require(authorize, SHIFTS_VIEW)
    if status and status not in SHIFT_STATUSES:
        raise ValidationError("Unknown shift status", status=status)
    rows = ShiftRepository(db).list_shifts(
        start_date=start_date,
        end_date=end_date,
        customer_id=customer_id,
        site_id=site_id,
        status=status,
    )
    return [_list_item(shift, count) for shift, count in rows]


def delete_shift(db: Session, shift_id: int, *, authorize: Capability = allow_all) -> None:
    require(authorize, SHIFTS_DELETE)
    repo = ShiftRepository(db)
    if not repo.delete_shift(shift_id):
        db.rollback()
        raise NotFound("Shift not found", shift_id=shift_id)
    db.commit()
    logger.info("Deleted shift %s with its assignments", shift_id)


def _validate_template(repo: ShiftRepository, template: ShiftTemplate) -> None:
    if template.start_time >= template.end_time:
        raise ValidationError(
            "Shift start time must be before its end time",
            start_time=str(template.start_time),
            end_time=str(template.end_time),
        )
    if template.required_workers < 1:
        raise ValidationError("A shift needs at least one worker", required_workers=template.required_workers)
    if not repo.customer_exists(template.customer_id):
        raise ValidationError("Unknown customer", customer_id=template.customer_id)
    if template.site_id is not None:
        site = repo.find_site(template.site_id)
        if not site:
            raise ValidationError("Unknown site", site_id=template.site_id)
        if site.customer_id != template.customer_id:
            raise ValidationError(
                "Site does not belong to the customer",
                site_id=template.site_id,
                customer_id=template.customer_id,
            )


def _validate_weekdays(weekdays: Iterable[int]) -> set[int]:
    selected = set(weekdays)
    if not selected:
        raise ValidationError("Select at least one day of the week")
    invalid = sorted(day for day in selected if day not in range(7))
    if invalid:
        raise ValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday)", invalid=invalid)
    return selected


def _build_shift(template: ShiftTemplate, on_date: date) -> Shift:
    return Shift(
        customer_id=template.customer_id,
        site_id=template.site_id,
        date=on_date,
        start_time=template.start_time,
        end_time=template.end_time,
        required_workers=template.required_workers,
        requires_weapon=template.requires_weapon,
        requires_vehicle=template.requires_vehicle,
        notes=template.notes,
        status="scheduled",
    )


def _list_item(shift: Shift, assigned_count: int) -> ShiftListItem:
    return ShiftListItem.model_validate(
        {
            "id": shift.id,
            "customer_id": shift.customer_id,
            "site_id": shift.site_id,
            "date": shift.date,
            "start_time": shift.start_time,
            "end_time": shift.end_time,
            "required_workers": shift.required_workers,
            "requires_weapon": shift.requires_weapon,
            "requires_vehicle": shift.requires_vehicle,
            "notes": shift.notes,
            "status": shift.status,
            "company_name": shift.customer.company_name if shift.customer else None,
            "site_name": shift.site.name if shift.site else None,
            "assigned_count": assigned_count,
        }
    )
