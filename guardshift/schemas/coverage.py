from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field


class UncoveredShift(BaseModel):
    shift_id: int
    site_id: int
    site_name: Optional[str] = None
    site_address: Optional[str] = None
    company_name: Optional[str] = None
    start_time: time
    end_time: time


class PendingCheckIn(BaseModel):
    assignment_id: int
    shift_id: int
    worker_id: int
    worker_name: str
    phone: Optional[str] = None
    start_time: time
    end_time: time
    site_name: Optional[str] = None
    company_name: Optional[str] = None
    minutes_until_start: int


class CoverageSnapshot(BaseModel):
    date: date
    generated_at: datetime
    guards_on_duty: int = 0
    guards_expected_today: int = 0
    sites_with_coverage: int = 0
    sites_without_coverage: List[UncoveredShift] = Field(default_factory=list)
    guards_not_checked_in: List[PendingCheckIn] = Field(default_factory=list)
    degraded: List[str] = Field(default_factory=list)


class UnderstaffedShift(BaseModel):
    shift_id: int
    site_name: Optional[str] = None
    company_name: Optional[str] = None
    start_time: time
    end_time: time
    required_workers: int
    assigned_count: int


class TodaySummary(BaseModel):
    date: date
    total_shifts: int = 0
    scheduled: int = 0
    in_progress: int = 0
    completed: int = 0
    no_shows: int = 0
    understaffed_shifts: List[UnderstaffedShift] = Field(default_factory=list)
    degraded: List[str] = Field(default_factory=list)
