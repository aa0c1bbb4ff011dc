"""
Availability and conflict engine for vehicle bookings.

Pure functions over in-memory reservation lists. Callers fetch the
reservations for one vehicle, validate the candidate (start < end, start
not in the past) and then ask:

- check_conflict: may this reservation coexist with the existing ones?
- compute_free_windows: which parts of a calendar day are free?

Malformed reservations (unparseable instants, start >= end) are excluded
from every computation instead of raising.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence

from .reservation import Reservation
from .status import Availability
from .vehicle import Vehicle
from .verdict import AvailabilityVerdict, FreeWindow, VehicleStatus

# Minimum gap between a vehicle's return and its next pickup
TURNAROUND_MINUTES = 60


def day_bounds(day: date) -> tuple:
    """Return (midnight, next midnight) for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def conflicts_with(
    start: datetime, end: datetime, existing: Reservation, buffer_minutes: int
) -> bool:
    """
    True when [start, end) collides with an existing reservation.

    The candidate must finish at least buffer_minutes before the existing
    pickup, or start after the existing return. No buffer after a return.
    """
    latest_return = existing.start - timedelta(minutes=buffer_minutes)
    return end > latest_return and start < existing.end


def check_conflict(
    candidate: Reservation,
    existing: Iterable[Reservation],
    buffer_minutes: int = TURNAROUND_MINUTES,
    exclude_id: Optional[str] = None,
) -> AvailabilityVerdict:
    """
    Decide whether a candidate reservation may be created.

    Completed, cancelled and invalid reservations never block, nor does the
    one matching exclude_id. When several reservations conflict, the one
    with the earliest start is reported.
    """
    blocking = None
    for other in existing:
        if exclude_id is not None and other.id == exclude_id:
            continue
        if not other.is_active or not other.is_valid:
            continue
        if not conflicts_with(candidate.start, candidate.end, other, buffer_minutes):
            continue
        if blocking is None or other.start < blocking.start:
            blocking = other

    if blocking is None:
        return AvailabilityVerdict(status=Availability.AVAILABLE)
    return AvailabilityVerdict(
        status=Availability.UNAVAILABLE,
        blocking=blocking,
        until=blocking.start - timedelta(minutes=buffer_minutes),
    )


def occurs_on_day(reservation: Reservation, day: date) -> bool:
    """Starts before the next midnight and ends after this one."""
    if not reservation.is_valid:
        return False
    day_start, day_end = day_bounds(day)
    return reservation.start < day_end and reservation.end > day_start


def reservations_on_day(
    reservations: Iterable[Reservation], day: date
) -> List[Reservation]:
    """Valid reservations overlapping the day, sorted by start."""
    matching = [r for r in reservations if occurs_on_day(r, day)]
    return sorted(matching, key=lambda r: r.start)


def _clamp(value: datetime, lower: datetime, upper: datetime) -> datetime:
    return min(max(value, lower), upper)


class FreeWindows:
    """
    Free windows of one vehicle on one day.

    Iterating walks the reservations afresh each time, so the sequence can be
    consumed any number of times.
    """

    def __init__(
        self,
        reservations: Sequence[Reservation],
        day: date,
        buffer_minutes: int = TURNAROUND_MINUTES,
    ):
        self.reservations = reservations_on_day(reservations, day)
        self.day = day
        self.buffer_minutes = buffer_minutes

    def __iter__(self) -> Iterator[FreeWindow]:
        day_start, day_end = day_bounds(self.day)
        ordered = self.reservations

        if not ordered:
            yield FreeWindow(day_start, day_end)
            return

        first = ordered[0]
        if first.start > day_start:
            yield FreeWindow(day_start, _clamp(first.start, day_start, day_end))

        buffer = timedelta(minutes=self.buffer_minutes)
        for current, following in zip(ordered, ordered[1:]):
            window_start = _clamp(current.end, day_start, day_end)
            window_end = _clamp(following.start - buffer, day_start, day_end)
            if window_end > window_start:
                yield FreeWindow(window_start, window_end)

        last = ordered[-1]
        if last.end < day_end:
            yield FreeWindow(_clamp(last.end, day_start, day_end), day_end)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    @property
    def is_whole_day(self) -> bool:
        """True when the vehicle has nothing booked on the day."""
        return not self.reservations


def compute_free_windows(
    reservations: Sequence[Reservation],
    day: date,
    buffer_minutes: int = TURNAROUND_MINUTES,
) -> FreeWindows:
    """Partition a calendar day into the vehicle's free windows."""
    return FreeWindows(reservations, day, buffer_minutes)


def latest_return(
    reservations: Iterable[Reservation],
    departure: datetime,
    buffer_minutes: int = TURNAROUND_MINUTES,
) -> Optional[datetime]:
    """
    Latest return time for a booking departing at `departure`.

    The next active reservation starting after departure, minus the buffer.
    None when nothing is booked afterwards.
    """
    upcoming = [
        r for r in reservations
        if r.is_active and r.is_valid and r.start > departure
    ]
    if not upcoming:
        return None
    following = min(upcoming, key=lambda r: r.start)
    return following.start - timedelta(minutes=buffer_minutes)


def vehicle_status_at(
    vehicle: Vehicle,
    reservations: Iterable[Reservation],
    when: datetime,
    buffer_minutes: int = TURNAROUND_MINUTES,
) -> VehicleStatus:
    """Availability of a vehicle at one instant, for the booking screen."""
    reservations = list(reservations)
    if vehicle.disabled:
        return VehicleStatus(vehicle=vehicle, available=False)

    for r in reservations:
        if r.is_active and r.is_valid and r.start <= when <= r.end:
            return VehicleStatus(vehicle=vehicle, available=False, busy_until=r.end)

    return VehicleStatus(
        vehicle=vehicle,
        available=True,
        latest_return=latest_return(reservations, when, buffer_minutes),
    )


def has_future_reservations(
    reservations: Iterable[Reservation], now: datetime
) -> bool:
    """True when any reservation ends after now (blocks vehicle deletion)."""
    return any(r.end is not None and r.end > now for r in reservations)
