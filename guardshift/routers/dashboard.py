from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_capability
from ..permissions import Capability
from ..schemas.coverage import CoverageSnapshot, TodaySummary
from ..services import coverage as coverage_service

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/coverage", response_model=CoverageSnapshot)
def coverage(db: Session = Depends(get_db), authorize: Capability = Depends(get_capability)):
    return coverage_service.coverage_snapshot(db, authorize=authorize)


@router.get("/today", response_model=TodaySummary)
def today_summary(db: Session = Depends(get_db), authorize: Capability = Depends(get_capability)):
    return coverage_service.todays_summary(db, authorize=authorize)
