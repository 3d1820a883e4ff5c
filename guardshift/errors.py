"""Domain errors raised by the scheduling and attendance services.

Each error carries enough context (shift, worker, assignment ids) for a
caller to explain the rejection without another round-trip.
"""

from __future__ import annotations

from typing import Any


class ShiftEngineError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.context}


class ValidationError(ShiftEngineError):
    status_code = 400
    code = "validation_error"


class PermissionDenied(ShiftEngineError):
    status_code = 403
    code = "permission_denied"


class NotFound(ShiftEngineError):
    status_code = 404
    code = "not_found"


class DuplicateAssignment(ShiftEngineError):
    status_code = 409
    code = "duplicate_assignment"


class SchedulingConflict(ShiftEngineError):
    status_code = 409
    code = "scheduling_conflict"


class WorkerUnavailable(ShiftEngineError):
    status_code = 409
    code = "worker_unavailable"


class InvalidState(ShiftEngineError):
    status_code = 409
    code = "invalid_state"
