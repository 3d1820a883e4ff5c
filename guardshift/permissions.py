"""Capability predicates handed to each service operation.

Authentication and role management live outside this service; callers
arrive with a role and the role is reduced to a predicate over action names.
"""

from __future__ import annotations

from typing import Callable

from .errors import PermissionDenied

Capability = Callable[[str], bool]

SHIFTS_CREATE = "shifts.create"
SHIFTS_DELETE = "shifts.delete"
SHIFTS_VIEW = "shifts.view"
ASSIGNMENTS_MANAGE = "assignments.manage"
ATTENDANCE_RECORD = "attendance.record"
COVERAGE_VIEW = "coverage.view"

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "ADMIN": frozenset(
        {SHIFTS_CREATE, SHIFTS_DELETE, SHIFTS_VIEW, ASSIGNMENTS_MANAGE, ATTENDANCE_RECORD, COVERAGE_VIEW}
    ),
    "MANAGER": frozenset({SHIFTS_CREATE, SHIFTS_VIEW, ASSIGNMENTS_MANAGE, ATTENDANCE_RECORD, COVERAGE_VIEW}),
    "DISPATCHER": frozenset({SHIFTS_VIEW, ASSIGNMENTS_MANAGE, COVERAGE_VIEW}),
    "GUARD": frozenset({SHIFTS_VIEW, ATTENDANCE_RECORD}),
}


def allow_all(action: str) -> bool:
    return True


def capability_for_role(role: str | None) -> Capability:
    granted = ROLE_CAPABILITIES.get((role or "").upper(), frozenset())
    return lambda action: action in granted


def require(authorize: Capability, action: str) -> None:
    if not authorize(action):
        raise PermissionDenied(f"Not allowed to perform {action}", action=action)
