from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_capability
from ..permissions import Capability
from ..schemas.shift import (
    AssignmentRead,
    AssignRequest,
    RecurringShiftCreate,
    RecurringShiftsResult,
    ShiftCreate,
    ShiftDetail,
    ShiftListItem,
    ShiftRead,
)
from ..services import assignments as assignment_service
from ..services import shifts as shift_service
from ..services.events import EventSink, get_event_sink

router = APIRouter(prefix="/api", tags=["shifts"])


@router.get("/shifts", response_model=list[ShiftListItem])
def list_shifts(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    customer_id: Optional[int] = None,
    site_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    return shift_service.list_shifts(
        db,
        start_date=start_date,
        end_date=end_date,
        customer_id=customer_id,
        site_id=site_id,
        status=status,
        authorize=authorize,
    )


@router.post("/shifts", response_model=ShiftRead, status_code=status.HTTP_201_CREATED)
def create_shift(
    payload: ShiftCreate,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    return shift_service.create_shift(db, payload, authorize=authorize)


@router.post("/shifts/recurring", response_model=RecurringShiftsResult, status_code=status.HTTP_201_CREATED)
def create_recurring_shifts(
    payload: RecurringShiftCreate,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    batch = shift_service.create_recurring_shifts(
        db,
        payload,
        payload.start_date,
        payload.end_date,
        payload.days_of_week,
        authorize=authorize,
    )
    return RecurringShiftsResult(
        shifts=[ShiftRead.model_validate(shift) for shift in batch.shifts],
        count=batch.count,
        error=batch.error,
    )


@router.get("/shifts/{shift_id}", response_model=ShiftDetail)
def get_shift(
    shift_id: int,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    return shift_service.get_shift_detail(db, shift_id, authorize=authorize)


@router.delete("/shifts/{shift_id}")
def delete_shift(
    shift_id: int,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    shift_service.delete_shift(db, shift_id, authorize=authorize)
    return {"status": "deleted", "shift_id": shift_id}


@router.post("/shifts/{shift_id}/assign", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def assign_worker(
    shift_id: int,
    payload: AssignRequest,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
    sink: EventSink = Depends(get_event_sink),
):
    return assignment_service.assign(
        db,
        shift_id,
        payload.worker_id,
        payload.role,
        sink=sink,
        authorize=authorize,
    )


@router.delete("/shifts/{shift_id}/assign/{assignment_id}")
def unassign_worker(
    shift_id: int,
    assignment_id: int,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    assignment_service.unassign(db, shift_id, assignment_id, authorize=authorize)
    return {"status": "removed", "assignment_id": assignment_id}


@router.post("/assignments/{assignment_id}/no-show", response_model=AssignmentRead)
def mark_no_show(
    assignment_id: int,
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    return assignment_service.mark_no_show(db, assignment_id, authorize=authorize)
