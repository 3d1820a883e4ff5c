"""Read/write gateway between the scheduling services and the relational store.

Methods flush but never commit; the calling service owns the transaction so
that a compound operation (lock, check, insert) commits or fails as a unit.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Iterable, Optional

from sqlalchemy import distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from .errors import DuplicateAssignment
from .models import Customer, Shift, ShiftAssignment, Site, Worker

logger = logging.getLogger(__name__)

ALERT_COLUMNS = {
    "reminder": ShiftAssignment.reminder_sent_at,
    "overdue": ShiftAssignment.overdue_alerted_at,
}


class ShiftRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # reference data

    def customer_exists(self, customer_id: int) -> bool:
        return self.db.query(Customer.id).filter(Customer.id == customer_id).first() is not None

    def find_site(self, site_id: int) -> Optional[Site]:
        return self.db.query(Site).filter(Site.id == site_id).one_or_none()

    def lock_worker(self, worker_id: int) -> Optional[Worker]:
        """Row-lock the worker so concurrent assignments for them serialize."""
        return (
            self.db.query(Worker)
            .filter(Worker.id == worker_id)
            .populate_existing()
            .with_for_update()
            .one_or_none()
        )

    # shifts

    def find_shift(self, shift_id: int, *, for_update: bool = False) -> Optional[Shift]:
        query = self.db.query(Shift).filter(Shift.id == shift_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.one_or_none()

    def find_shift_detail(self, shift_id: int) -> Optional[Shift]:
        return (
            self.db.query(Shift)
            .options(
                joinedload(Shift.customer),
                joinedload(Shift.site),
                selectinload(Shift.assignments).joinedload(ShiftAssignment.worker),
            )
            .filter(Shift.id == shift_id)
            .one_or_none()
        )

    def insert_shift(self, shift: Shift) -> Shift:
        self.db.add(shift)
        self.db.flush()
        return shift

    def update_shift_status(self, shift_id: int, status: str, *, from_statuses: Iterable[str]) -> bool:
        """Move a shift to ``status`` only from one of ``from_statuses``."""
        updated = (
            self.db.query(Shift)
            .filter(Shift.id == shift_id, Shift.status.in_(list(from_statuses)))
            .update({Shift.status: status}, synchronize_session="fetch")
        )
        return updated > 0

    def delete_shift(self, shift_id: int) -> bool:
        """Remove a shift together with its assignments in the current transaction."""
        self.db.query(ShiftAssignment).filter(ShiftAssignment.shift_id == shift_id).delete(
            synchronize_session=False
        )
        deleted = self.db.query(Shift).filter(Shift.id == shift_id).delete(synchronize_session=False)
        self.db.expunge_all()
        return deleted > 0

    def list_shifts(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        customer_id: int | None = None,
        site_id: int | None = None,
        status: str | None = None,
    ) -> list[tuple[Shift, int]]:
        assigned = (
            self.db.query(ShiftAssignment.shift_id, func.count(ShiftAssignment.id).label("assigned"))
            .group_by(ShiftAssignment.shift_id)
            .subquery()
        )
        query = (
            self.db.query(Shift, func.coalesce(assigned.c.assigned, 0))
            .outerjoin(assigned, assigned.c.shift_id == Shift.id)
            .options(joinedload(Shift.customer), joinedload(Shift.site))
        )
        if start_date:
            query = query.filter(Shift.date >= start_date)
        if end_date:
            query = query.filter(Shift.date <= end_date)
        if customer_id:
            query = query.filter(Shift.customer_id == customer_id)
        if site_id:
            query = query.filter(Shift.site_id == site_id)
        if status:
            query = query.filter(Shift.status == status)
        rows = query.order_by(Shift.date.asc(), Shift.start_time.asc(), Shift.id.asc()).all()
        return [(shift, int(count)) for shift, count in rows]

    def find_today_shifts_with_assignments(self, today: date) -> list[Shift]:
        return (
            self.db.query(Shift)
            .options(
                joinedload(Shift.customer),
                joinedload(Shift.site),
                selectinload(Shift.assignments).joinedload(ShiftAssignment.worker),
            )
            .filter(Shift.date == today)
            .populate_existing()
            .order_by(Shift.start_time.asc(), Shift.id.asc())
            .all()
        )

    # assignments

    def find_assignment(self, assignment_id: int) -> Optional[ShiftAssignment]:
        return (
            self.db.query(ShiftAssignment)
            .filter(ShiftAssignment.id == assignment_id)
            .populate_existing()
            .one_or_none()
        )

    def find_assignment_for_pair(self, shift_id: int, worker_id: int) -> Optional[ShiftAssignment]:
        return (
            self.db.query(ShiftAssignment)
            .filter(ShiftAssignment.shift_id == shift_id, ShiftAssignment.worker_id == worker_id)
            .one_or_none()
        )

    def find_assignments_for_worker_on_date(self, worker_id: int, on_date: date) -> list[ShiftAssignment]:
        return (
            self.db.query(ShiftAssignment)
            .join(Shift, ShiftAssignment.shift)
            .options(joinedload(ShiftAssignment.shift))
            .filter(ShiftAssignment.worker_id == worker_id, Shift.date == on_date)
            .all()
        )

    def insert_assignment(self, assignment: ShiftAssignment) -> ShiftAssignment:
        self.db.add(assignment)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info(
                "Unique guard rejected assignment shift=%s worker=%s: %s",
                assignment.shift_id,
                assignment.worker_id,
                exc.orig,
            )
            raise DuplicateAssignment(
                "Worker is already assigned to this shift",
                shift_id=assignment.shift_id,
                worker_id=assignment.worker_id,
            ) from exc
        return assignment

    def update_assignment_status(
        self,
        assignment_id: int,
        status: str,
        *,
        expected_status: str,
        check_in_time: datetime | None = None,
        check_out_time: datetime | None = None,
        actual_hours: float | None = None,
        **extra,
    ) -> bool:
        """Compare-and-swap the assignment status; False when it was not ``expected_status``."""
        values = {ShiftAssignment.status: status}
        if check_in_time is not None:
            values[ShiftAssignment.check_in_time] = check_in_time
        if check_out_time is not None:
            values[ShiftAssignment.check_out_time] = check_out_time
        if actual_hours is not None:
            values[ShiftAssignment.actual_hours] = actual_hours
        for key, value in extra.items():
            values[getattr(ShiftAssignment, key)] = value
        updated = (
            self.db.query(ShiftAssignment)
            .filter(ShiftAssignment.id == assignment_id, ShiftAssignment.status == expected_status)
            .update(values, synchronize_session="fetch")
        )
        return updated > 0

    def delete_assignment(self, shift_id: int, assignment_id: int) -> bool:
        deleted = (
            self.db.query(ShiftAssignment)
            .filter(
                ShiftAssignment.id == assignment_id,
                ShiftAssignment.shift_id == shift_id,
                ShiftAssignment.status == "assigned",
            )
            .delete(synchronize_session="fetch")
        )
        return deleted > 0

    def count_assignments(self, shift_id: int) -> int:
        return (
            self.db.query(func.count(ShiftAssignment.id))
            .filter(ShiftAssignment.shift_id == shift_id)
            .scalar()
            or 0
        )

    def count_outstanding_assignments(self, shift_id: int) -> int:
        """Assignments that still block completion; no-shows never check out."""
        return (
            self.db.query(func.count(ShiftAssignment.id))
            .filter(
                ShiftAssignment.shift_id == shift_id,
                ShiftAssignment.status.notin_(["checked_out", "no_show"]),
            )
            .scalar()
            or 0
        )

    def complete_shift_if_done(self, shift_id: int, *, from_statuses: Iterable[str]) -> bool:
        """Mark the shift completed once nothing outstanding is left; caller holds the shift lock."""
        if self.count_outstanding_assignments(shift_id) > 0:
            return False
        return self.update_shift_status(shift_id, "completed", from_statuses=from_statuses)

    # aggregates for the coverage snapshot

    def count_distinct_workers(self, on_date: date, status: str | None = None) -> int:
        query = (
            self.db.query(func.count(distinct(ShiftAssignment.worker_id)))
            .join(Shift, ShiftAssignment.shift)
            .filter(Shift.date == on_date)
        )
        if status:
            query = query.filter(ShiftAssignment.status == status)
        return query.scalar() or 0

    def count_covered_sites(self, on_date: date) -> int:
        return (
            self.db.query(func.count(distinct(Shift.site_id)))
            .join(ShiftAssignment, ShiftAssignment.shift_id == Shift.id)
            .filter(
                Shift.date == on_date,
                Shift.site_id.isnot(None),
                ShiftAssignment.status == "checked_in",
            )
            .scalar()
            or 0
        )

    def find_waiting_assignments(self, on_date: date, *, starting_by: time) -> list[ShiftAssignment]:
        """Assignments still ``assigned`` on shifts starting at or before ``starting_by``."""
        return (
            self.db.query(ShiftAssignment)
            .join(Shift, ShiftAssignment.shift)
            .options(
                joinedload(ShiftAssignment.worker),
                joinedload(ShiftAssignment.shift).joinedload(Shift.site),
                joinedload(ShiftAssignment.shift).joinedload(Shift.customer),
            )
            .populate_existing()
            .filter(
                Shift.date == on_date,
                ShiftAssignment.status == "assigned",
                Shift.start_time <= starting_by,
            )
            .order_by(Shift.start_time.asc(), ShiftAssignment.id.asc())
            .all()
        )

    def find_due_assignments(self, on_date: date, *, starting_by: time, alert: str) -> list[ShiftAssignment]:
        column = ALERT_COLUMNS[alert]
        return [
            assignment
            for assignment in self.find_waiting_assignments(on_date, starting_by=starting_by)
            if getattr(assignment, column.key) is None
        ]

    def claim_alert(self, assignment_id: int, alert: str, now: datetime) -> bool:
        """Stamp an alert column once; False when another tick already claimed it."""
        column = ALERT_COLUMNS[alert]
        updated = (
            self.db.query(ShiftAssignment)
            .filter(
                ShiftAssignment.id == assignment_id,
                ShiftAssignment.status == "assigned",
                column.is_(None),
            )
            .update({column: now}, synchronize_session="fetch")
        )
        return updated > 0
