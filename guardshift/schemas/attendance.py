from typing import Optional

from pydantic import BaseModel, Field

from .shift import AssignmentRead


class LocationAttestation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationWarning(BaseModel):
    site_id: int
    distance_meters: float
    tolerance_meters: float


class AttendanceResponse(BaseModel):
    assignment: AssignmentRead
    location_warning: Optional[LocationWarning] = None
