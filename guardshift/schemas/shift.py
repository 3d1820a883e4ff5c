from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShiftTemplate(BaseModel):
    """Time window and staffing requirements shared by single and recurring shifts."""

    customer_id: int
    site_id: Optional[int] = None
    start_time: dt.time
    end_time: dt.time
    required_workers: int = 1
    requires_weapon: bool = False
    requires_vehicle: bool = False
    notes: Optional[str] = Field(default=None, max_length=2000)


class ShiftCreate(ShiftTemplate):
    date: dt.date


class RecurringShiftCreate(ShiftTemplate):
    start_date: dt.date
    end_date: dt.date
    days_of_week: List[int] = Field(..., min_length=1, description="0=Sunday .. 6=Saturday")


class AssignRequest(BaseModel):
    worker_id: int
    role: str = Field(default="guard", min_length=1, max_length=50)


class WorkerSummary(BaseModel):
    id: int
    full_name: str
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AssignmentRead(BaseModel):
    id: int
    shift_id: int
    worker_id: int
    role: str
    status: str
    check_in_time: Optional[dt.datetime] = None
    check_out_time: Optional[dt.datetime] = None
    actual_hours: Optional[Decimal] = None
    worker: Optional[WorkerSummary] = None

    model_config = ConfigDict(from_attributes=True)


class ShiftRead(BaseModel):
    id: int
    customer_id: int
    site_id: Optional[int] = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    required_workers: int
    requires_weapon: bool
    requires_vehicle: bool
    notes: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class ShiftListItem(ShiftRead):
    company_name: Optional[str] = None
    site_name: Optional[str] = None
    assigned_count: int = 0


class ShiftDetail(ShiftListItem):
    open_slots: int = 0
    assignments: List[AssignmentRead] = Field(default_factory=list)


class RecurringShiftsResult(BaseModel):
    shifts: List[ShiftRead]
    count: int
    error: Optional[str] = None
