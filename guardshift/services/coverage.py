"""Live operational picture for today's shifts.

Nothing here is cached: every call reads the store and the wall clock
again. Each section is computed on its own so that one failing query leaves
the rest of the snapshot intact; failed sections come back empty and are
named in ``degraded``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from ..config import get_settings
from ..permissions import COVERAGE_VIEW, Capability, allow_all, require
from ..repository import ShiftRepository
from ..schemas.coverage import CoverageSnapshot, PendingCheckIn, TodaySummary, UncoveredShift, UnderstaffedShift
from ..timeutil import lead_window_end, local_now, minutes_between

logger = logging.getLogger(__name__)

T = TypeVar("T")


def coverage_snapshot(
    db: Session,
    *,
    now: datetime | None = None,
    lead_minutes: int | None = None,
    authorize: Capability = allow_all,
) -> CoverageSnapshot:
    require(authorize, COVERAGE_VIEW)
    now = now or local_now()
    today = now.date()
    if lead_minutes is None:
        lead_minutes = get_settings().coverage_lead_minutes
    repo = ShiftRepository(db)
    degraded: list[str] = []

    def section(name: str, fallback: T, compute: Callable[[], T]) -> T:
        return _guarded(db, name, degraded, fallback, compute)

    return CoverageSnapshot(
        date=today,
        generated_at=now,
        guards_on_duty=section("guards_on_duty", 0, lambda: repo.count_distinct_workers(today, "checked_in")),
        guards_expected_today=section("guards_expected_today", 0, lambda: repo.count_distinct_workers(today)),
        sites_with_coverage=section("sites_with_coverage", 0, lambda: repo.count_covered_sites(today)),
        sites_without_coverage=section("sites_without_coverage", [], lambda: _uncovered_shifts(repo, today)),
        guards_not_checked_in=section(
            "guards_not_checked_in", [], lambda: _pending_check_ins(repo, now, lead_minutes)
        ),
        degraded=degraded,
    )


def todays_summary(db: Session, *, now: datetime | None = None, authorize: Capability = allow_all) -> TodaySummary:
    require(authorize, COVERAGE_VIEW)
    now = now or local_now()
    today = now.date()
    repo = ShiftRepository(db)
    degraded: list[str] = []
    summary = TodaySummary(date=today)

    counts = _guarded(db, "shift_counts", degraded, None, lambda: _status_counts(repo, today))
    if counts:
        summary.total_shifts, summary.scheduled, summary.in_progress, summary.completed, summary.no_shows = counts
    summary.understaffed_shifts = _guarded(
        db, "understaffed_shifts", degraded, [], lambda: _understaffed_shifts(repo, today)
    )
    summary.degraded = degraded
    return summary


def _guarded(db: Session, name: str, degraded: list[str], fallback: T, compute: Callable[[], T]) -> T:
    try:
        return compute()
    except Exception:
        logger.warning("Coverage section %s failed; serving it empty", name, exc_info=True)
        db.rollback()
        degraded.append(name)
        return fallback


def _uncovered_shifts(repo: ShiftRepository, today) -> list[UncoveredShift]:
    uncovered = []
    for shift in repo.find_today_shifts_with_assignments(today):
        if shift.site_id is None:
            continue
        if any(assignment.status == "checked_in" for assignment in shift.assignments):
            continue
        uncovered.append(
            UncoveredShift(
                shift_id=shift.id,
                site_id=shift.site_id,
                site_name=shift.site.name if shift.site else None,
                site_address=shift.site.address if shift.site else None,
                company_name=shift.customer.company_name if shift.customer else None,
                start_time=shift.start_time,
                end_time=shift.end_time,
            )
        )
    return uncovered


def _pending_check_ins(repo: ShiftRepository, now: datetime, lead_minutes: int) -> list[PendingCheckIn]:
    starting_by = lead_window_end(now, lead_minutes)
    pending = []
    for assignment in repo.find_waiting_assignments(now.date(), starting_by=starting_by):
        shift = assignment.shift
        starts_at = datetime.combine(shift.date, shift.start_time)
        pending.append(
            PendingCheckIn(
                assignment_id=assignment.id,
                shift_id=shift.id,
                worker_id=assignment.worker_id,
                worker_name=assignment.worker.full_name,
                phone=assignment.worker.phone,
                start_time=shift.start_time,
                end_time=shift.end_time,
                site_name=shift.site.name if shift.site else None,
                company_name=shift.customer.company_name if shift.customer else None,
                minutes_until_start=minutes_between(now, starts_at),
            )
        )
    return pending


def _status_counts(repo: ShiftRepository, today) -> tuple[int, int, int, int, int]:
    shifts = repo.find_today_shifts_with_assignments(today)
    by_status = {"scheduled": 0, "in_progress": 0, "completed": 0}
    no_shows = 0
    for shift in shifts:
        by_status[shift.status] = by_status.get(shift.status, 0) + 1
        no_shows += sum(1 for assignment in shift.assignments if assignment.status == "no_show")
    return len(shifts), by_status["scheduled"], by_status["in_progress"], by_status["completed"], no_shows


def _understaffed_shifts(repo: ShiftRepository, today) -> list[UnderstaffedShift]:
    return [
        UnderstaffedShift(
            shift_id=shift.id,
            site_name=shift.site.name if shift.site else None,
            company_name=shift.customer.company_name if shift.customer else None,
            start_time=shift.start_time,
            end_time=shift.end_time,
            required_workers=shift.required_workers,
            assigned_count=len(shift.assignments),
        )
        for shift in repo.find_today_shifts_with_assignments(today)
        if len(shift.assignments) < shift.required_workers
    ]
