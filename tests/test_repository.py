from datetime import datetime

from guardshift.repository import ShiftRepository
from guardshift.services import assignments


def test_count_assignments_per_shift(db, make_shift, make_worker):
    shift = make_shift(required_workers=2)
    worker = make_worker()
    assignments.assign(db, shift.id, worker.id)
    repo = ShiftRepository(db)

    assert repo.count_assignments(shift.id) == 1
    assert repo.count_assignments(shift.id + 1) == 0


def test_status_updates_are_compare_and_swap(db, make_shift, make_worker):
    shift = make_shift()
    assignment = assignments.assign(db, shift.id, make_worker().id)
    repo = ShiftRepository(db)

    assert repo.update_assignment_status(assignment.id, "checked_in", expected_status="checked_in") is False
    assert repo.update_assignment_status(
        assignment.id, "checked_in", expected_status="assigned", check_in_time=datetime(2025, 3, 2, 8, 0)
    )
    assert repo.update_assignment_status(assignment.id, "checked_in", expected_status="assigned") is False

    assert repo.update_shift_status(shift.id, "completed", from_statuses=("in_progress",)) is False
    assert repo.update_shift_status(shift.id, "in_progress", from_statuses=("scheduled",))
    db.commit()
    assert repo.find_shift(shift.id).status == "in_progress"


def test_alert_claim_happens_once(db, make_shift, make_worker):
    assignment = assignments.assign(db, make_shift().id, make_worker().id)
    repo = ShiftRepository(db)
    stamp = datetime(2025, 3, 2, 7, 0)

    assert repo.claim_alert(assignment.id, "reminder", stamp)
    assert repo.claim_alert(assignment.id, "reminder", stamp) is False
    assert repo.claim_alert(assignment.id, "overdue", stamp)
