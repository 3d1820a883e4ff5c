from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_capability
from ..permissions import Capability
from ..schemas.attendance import AttendanceResponse, LocationAttestation
from ..schemas.shift import AssignmentRead
from ..services import attendance as attendance_service

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


def _respond(result: attendance_service.AttendanceResult) -> AttendanceResponse:
    return AttendanceResponse(
        assignment=AssignmentRead.model_validate(result.assignment),
        location_warning=result.location_warning,
    )


@router.post("/{assignment_id}/check-in", response_model=AttendanceResponse)
def check_in(
    assignment_id: int,
    location: Optional[LocationAttestation] = Body(default=None),
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    result = attendance_service.check_in(db, assignment_id, location, authorize=authorize)
    return _respond(result)


@router.post("/{assignment_id}/check-out", response_model=AttendanceResponse)
def check_out(
    assignment_id: int,
    location: Optional[LocationAttestation] = Body(default=None),
    db: Session = Depends(get_db),
    authorize: Capability = Depends(get_capability),
):
    result = attendance_service.check_out(db, assignment_id, location, authorize=authorize)
    return _respond(result)
