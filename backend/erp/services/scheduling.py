"""Schedule conflict detection for teacher, assistant and room bookings.

A teaching session books up to three resources for a time block: its teacher,
an optional assistant and an optional room. Each role is checked on its own, so
a booking only collides with bookings for the same ``(resource_role,
resource_id)`` on the same lesson date.

Intervals are half-open: ``[09:00, 10:00)`` and ``[10:00, 11:00)`` do not
overlap. All comparisons are made on timezone-aware instants; wall-clock input
must be converted with ``backend.erp.core.time.to_instant`` before it gets here.

The functions here are pure. Fetching existing bookings and writing accepted
ones is the caller's job, and nothing here guards against two requests that
both pass the check before either writes.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from backend.erp.core.time import ensure_utc, to_local
from backend.erp.services.errors import InvalidInput

ROLE_TEACHER = "teacher"
ROLE_ASSISTANT = "assistant"
ROLE_ROOM = "room"
RESOURCE_ROLES = (ROLE_TEACHER, ROLE_ASSISTANT, ROLE_ROOM)

_ROLE_LABELS = {
    ROLE_TEACHER: "Teacher",
    ROLE_ASSISTANT: "Assistant",
    ROLE_ROOM: "Room",
}


@dataclass(frozen=True)
class Booking:
    resource_role: str
    resource_id: Optional[int]
    date: Optional[date]
    start: datetime
    end: datetime
    session_id: Optional[int] = None

    @property
    def key(self) -> Tuple[str, Optional[int]]:
        return (self.resource_role, self.resource_id)

    def overlaps(self, other: "Booking") -> bool:
        return self.start < other.end and self.end > other.start


@dataclass(frozen=True)
class Conflict:
    resource_role: str
    resource_id: int
    booking: Booking
    conflicting: Booking
    within_batch: bool = False

    def describe(self, tz: ZoneInfo) -> str:
        start = to_local(self.conflicting.start, tz)
        end = to_local(self.conflicting.end, tz)
        label = _ROLE_LABELS.get(self.resource_role, self.resource_role)
        source = "another session in this request" if self.within_batch else "an existing session"
        return (
            f"{label} #{self.resource_id} is already booked "
            f"{start:%H:%M}-{end:%H:%M} on {self.conflicting.date.isoformat()} by {source}"
        )

    def as_detail(self, tz: ZoneInfo) -> dict:
        return {
            "resource_role": self.resource_role,
            "resource_id": self.resource_id,
            "date": self.booking.date.isoformat(),
            "requested_start": to_local(self.booking.start, tz).isoformat(),
            "requested_end": to_local(self.booking.end, tz).isoformat(),
            "conflicting_start": to_local(self.conflicting.start, tz).isoformat(),
            "conflicting_end": to_local(self.conflicting.end, tz).isoformat(),
            "conflicting_session_id": self.conflicting.session_id,
            "within_batch": self.within_batch,
            "message": self.describe(tz),
        }


@dataclass(frozen=True)
class ConflictResult:
    conflicts: Tuple[Conflict, ...] = ()

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)

    @property
    def first(self) -> Optional[Conflict]:
        return self.conflicts[0] if self.conflicts else None

    def describe(self, tz: ZoneInfo) -> str:
        if not self.conflicts:
            return "No schedule conflicts"
        return self.conflicts[0].describe(tz)

    def as_detail(self, tz: ZoneInfo) -> List[dict]:
        return [conflict.as_detail(tz) for conflict in self.conflicts]


def bookings_for_session(
    day: date,
    start: datetime,
    end: datetime,
    teacher_id: Optional[int],
    assistant_id: Optional[int] = None,
    room_id: Optional[int] = None,
    session_id: Optional[int] = None,
) -> List[Booking]:
    """Expand one teaching session into a booking per assigned resource."""
    resources = (
        (ROLE_TEACHER, teacher_id),
        (ROLE_ASSISTANT, assistant_id),
        (ROLE_ROOM, room_id),
    )
    return [
        Booking(
            resource_role=role,
            resource_id=resource_id,
            date=day,
            start=start,
            end=end,
            session_id=session_id,
        )
        for role, resource_id in resources
        if resource_id is not None
    ]


def validate_booking(booking: Booking, field: str = "booking") -> Optional[InvalidInput]:
    if booking.resource_role not in RESOURCE_ROLES:
        return InvalidInput(field, f"Unknown resource role '{booking.resource_role}'")
    if booking.resource_id is not None and (
        isinstance(booking.resource_id, bool) or not isinstance(booking.resource_id, int)
    ):
        return InvalidInput(field, f"Malformed {booking.resource_role} reference {booking.resource_id!r}")
    if booking.date is None:
        return InvalidInput(field, "Booking date is required")
    if booking.start.tzinfo is None or booking.end.tzinfo is None:
        return InvalidInput(field, "Start and end must be timezone-aware instants")
    if booking.start >= booking.end:
        return InvalidInput(field, "Start time must be before end time")
    return None


def check_conflicts(proposed: Iterable[Booking], existing: Iterable[Booking]) -> ConflictResult | InvalidInput:
    """
    Find every proposed booking that collides with an existing booking or with
    another proposed booking in the same batch.

    Returns ``InvalidInput`` for the first malformed proposal, otherwise a
    ``ConflictResult`` whose ``conflicts`` is empty when the batch can be written.
    """
    proposed = list(proposed)
    for index, booking in enumerate(proposed):
        error = validate_booking(booking, field=f"bookings[{index}]")
        if error is not None:
            return error

    candidates = [_normalized(booking) for booking in existing if _is_comparable(booking)]

    conflicts: List[Conflict] = []
    for index, booking in enumerate(proposed):
        if booking.resource_id is None:
            continue
        for other in candidates:
            if _collides(booking, other):
                conflicts.append(_conflict(booking, other, within_batch=False))
        for other in proposed[index + 1:]:
            if _collides(booking, other):
                conflicts.append(_conflict(booking, other, within_batch=True))
    return ConflictResult(conflicts=tuple(conflicts))


def _is_comparable(booking: Booking) -> bool:
    return (
        booking.resource_id is not None
        and booking.date is not None
        and booking.start is not None
        and booking.end is not None
        and ensure_utc(booking.start) < ensure_utc(booking.end)
    )


def _normalized(booking: Booking) -> Booking:
    return Booking(
        resource_role=booking.resource_role,
        resource_id=booking.resource_id,
        date=booking.date,
        start=ensure_utc(booking.start),
        end=ensure_utc(booking.end),
        session_id=booking.session_id,
    )


def _collides(booking: Booking, other: Booking) -> bool:
    if other.resource_id is None or other.key != booking.key:
        return False
    if other.date != booking.date:
        return False
    # An update is never blocked by the row it replaces
    if booking.session_id is not None and booking.session_id == other.session_id:
        return False
    return booking.overlaps(other)


def _conflict(booking: Booking, other: Booking, within_batch: bool) -> Conflict:
    return Conflict(
        resource_role=booking.resource_role,
        resource_id=booking.resource_id,
        booking=booking,
        conflicting=other,
        within_batch=within_batch,
    )
