from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError

from guardshift.errors import NotFound, PermissionDenied, ValidationError
from guardshift.models import Shift, ShiftAssignment
from guardshift.permissions import capability_for_role
from guardshift.repository import ShiftRepository
from guardshift.schemas.shift import ShiftCreate, ShiftTemplate
from guardshift.services import assignments, shifts

from conftest import SHIFT_DAY

SUNDAY, WEDNESDAY = 0, 3


def _template(customer, site=None, **overrides):
    values = dict(
        customer_id=customer.id,
        site_id=site.id if site else None,
        start_time=time(7, 0),
        end_time=time(15, 0),
        required_workers=2,
        requires_weapon=True,
    )
    values.update(overrides)
    return ShiftTemplate(**values)


def test_create_shift_persists_scheduled_shift(db, customer, site):
    payload = ShiftCreate(
        customer_id=customer.id,
        site_id=site.id,
        date=SHIFT_DAY,
        start_time=time(8, 0),
        end_time=time(16, 0),
        notes="Bring radio",
    )

    shift = shifts.create_shift(db, payload)

    stored = db.get(Shift, shift.id)
    assert stored.status == "scheduled"
    assert stored.required_workers == 1
    assert stored.notes == "Bring radio"


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_time": time(16, 0), "end_time": time(8, 0)},
        {"start_time": time(8, 0), "end_time": time(8, 0)},
        {"required_workers": 0},
    ],
)
def test_create_shift_rejects_invariant_violations(db, customer, overrides):
    values = dict(customer_id=customer.id, date=SHIFT_DAY, start_time=time(8, 0), end_time=time(16, 0))
    values.update(overrides)

    with pytest.raises(ValidationError):
        shifts.create_shift(db, ShiftCreate(**values))
    assert db.query(Shift).count() == 0


def test_create_shift_rejects_unknown_customer_and_foreign_site(db, customer, site):
    with pytest.raises(ValidationError) as excinfo:
        shifts.create_shift(
            db, ShiftCreate(customer_id=999, date=SHIFT_DAY, start_time=time(8, 0), end_time=time(9, 0))
        )
    assert excinfo.value.context["customer_id"] == 999

    with pytest.raises(ValidationError):
        shifts.create_shift(
            db,
            ShiftCreate(customer_id=customer.id, site_id=site.id + 100, date=SHIFT_DAY, start_time=time(8, 0), end_time=time(9, 0)),
        )


def test_create_shift_checks_capability(db, customer):
    payload = ShiftCreate(customer_id=customer.id, date=SHIFT_DAY, start_time=time(8, 0), end_time=time(9, 0))
    with pytest.raises(PermissionDenied):
        shifts.create_shift(db, payload, authorize=capability_for_role("GUARD"))


def test_recurring_expansion_over_two_weeks_for_sunday_and_wednesday(db, customer, site):
    batch = shifts.create_recurring_shifts(
        db, _template(customer, site), date(2025, 3, 2), date(2025, 3, 15), {SUNDAY, WEDNESDAY}
    )

    assert batch.count == 4
    assert batch.error is None
    assert [shift.date for shift in batch.shifts] == [
        date(2025, 3, 2),
        date(2025, 3, 5),
        date(2025, 3, 9),
        date(2025, 3, 12),
    ]
    for shift in batch.shifts:
        assert (shift.start_time, shift.end_time) == (time(7, 0), time(15, 0))
        assert shift.required_workers == 2
        assert shift.requires_weapon is True
        assert shift.status == "scheduled"
    assert db.query(Shift).count() == 4


def test_recurring_range_is_inclusive_of_both_ends(db, customer):
    batch = shifts.create_recurring_shifts(db, _template(customer), date(2025, 3, 2), date(2025, 3, 2), [SUNDAY])
    assert batch.count == 1


@pytest.mark.parametrize(
    "start, end, weekdays",
    [
        (date(2025, 3, 10), date(2025, 3, 2), [SUNDAY]),
        (date(2025, 3, 2), date(2025, 3, 9), []),
        (date(2025, 3, 2), date(2025, 3, 9), [7]),
        (date(2025, 1, 1), date(2026, 6, 1), [SUNDAY]),
    ],
)
def test_recurring_rejects_bad_ranges_before_writing(db, customer, start, end, weekdays):
    with pytest.raises(ValidationError):
        shifts.create_recurring_shifts(db, _template(customer), start, end, weekdays)
    assert db.query(Shift).count() == 0


def test_recurring_batch_keeps_shifts_created_before_a_failure(db, customer, monkeypatch):
    original = ShiftRepository.insert_shift
    calls = {"n": 0}

    def flaky_insert(self, shift):
        calls["n"] += 1
        if calls["n"] == 3:
            raise OperationalError("INSERT INTO shifts", {}, Exception("connection reset"))
        return original(self, shift)

    monkeypatch.setattr(ShiftRepository, "insert_shift", flaky_insert)

    batch = shifts.create_recurring_shifts(
        db, _template(customer), date(2025, 3, 2), date(2025, 3, 8), range(7)
    )

    assert batch.count == 2
    assert "2025-03-04" in batch.error
    assert db.query(Shift).count() == 2


def test_shift_detail_counts_open_slots(db, make_shift, make_worker):
    shift = make_shift(required_workers=3)
    worker = make_worker()
    assignments.assign(db, shift.id, worker.id)

    detail = shifts.get_shift_detail(db, shift.id)

    assert detail.assigned_count == 1
    assert detail.open_slots == 2
    assert detail.site_name == "Main Gate"
    assert detail.company_name == "Harbor Logistics"
    assert detail.assignments[0].worker.full_name == "Dana Levi"


def test_shift_detail_missing_shift(db):
    with pytest.raises(NotFound):
        shifts.get_shift_detail(db, 12345)


def test_list_shifts_filters_by_date_and_status(db, make_shift, make_worker):
    first = make_shift()
    make_shift(on=date(2025, 3, 3))
    make_shift(on=date(2025, 3, 4), status="completed")
    assignments.assign(db, first.id, make_worker().id)

    listed = shifts.list_shifts(db, start_date=date(2025, 3, 2), end_date=date(2025, 3, 3))
    assert [item.date for item in listed] == [date(2025, 3, 2), date(2025, 3, 3)]
    assert [item.assigned_count for item in listed] == [1, 0]

    completed = shifts.list_shifts(db, status="completed")
    assert [item.date for item in completed] == [date(2025, 3, 4)]

    with pytest.raises(ValidationError):
        shifts.list_shifts(db, status="cancelled")


def test_delete_shift_cascades_to_assignments(db, make_shift, make_worker):
    shift = make_shift()
    assignments.assign(db, shift.id, make_worker().id)
    assignments.assign(db, shift.id, make_worker("Omer", "Cohen").id)

    shifts.delete_shift(db, shift.id)

    assert db.query(Shift).count() == 0
    assert db.query(ShiftAssignment).count() == 0
    with pytest.raises(NotFound):
        shifts.delete_shift(db, shift.id)


def test_delete_shift_requires_admin_capability(db, make_shift):
    shift = make_shift()
    with pytest.raises(PermissionDenied):
        shifts.delete_shift(db, shift.id, authorize=capability_for_role("MANAGER"))
    shifts.delete_shift(db, shift.id, authorize=capability_for_role("ADMIN"))
