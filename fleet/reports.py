"""Dashboard aggregates, daily summary and reservation receipts."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from .availability import (
    TURNAROUND_MINUTES,
    FreeWindows,
    compute_free_windows,
    day_bounds,
    reservations_on_day,
)
from .reservation import Reservation
from .vehicle import Vehicle

DISPLAY_FORMAT = "%d/%m/%Y %H:%M"

# =============================================================================
# Formatting helpers
# =============================================================================


def format_instant(value: Optional[datetime]) -> str:
    """Format an instant for display, or '-' when missing."""
    return value.strftime(DISPLAY_FORMAT) if value is not None else "-"


def format_clock(value: datetime, context: str) -> str:
    """
    Format a free-window boundary, dropping redundant ':00'.

    On the hour, 'until' reads 8h00, the start of a 'between' range reads 8,
    and anything else reads 8h. Other minutes always read 8:30.
    """
    if value.minute == 0:
        if context == "until":
            return f"{value.hour}h00"
        if context == "between_start":
            return str(value.hour)
        return f"{value.hour}h"
    return f"{value.hour}:{value.minute:02d}"


def describe_free_windows(windows: FreeWindows) -> str:
    """Sentence describing a vehicle's free windows for the daily summary."""
    if windows.is_whole_day:
        return "Available all day"

    day_start, day_end = day_bounds(windows.day)
    parts = []
    for window in windows:
        if window.start == day_start and window.end == day_end:
            parts.append("Available all day")
        elif window.start == day_start:
            parts.append(f"Free until {format_clock(window.end, 'until')}")
        elif window.end == day_end:
            parts.append(f"Free after {format_clock(window.start, 'after')}")
        else:
            parts.append(
                f"Free between {format_clock(window.start, 'between_start')} "
                f"and {format_clock(window.end, 'between_end')}"
            )

    if not parts:
        return "Busy all day"
    return ", ".join(parts)


# =============================================================================
# Daily summary
# =============================================================================


@dataclass
class SummaryRow:
    """One vehicle's line in the daily summary."""

    vehicle: Vehicle
    reservations: List[Reservation] = field(default_factory=list)
    availability: str = ""


@dataclass
class DailySummary:
    day: date
    scheduled: List[SummaryRow]
    free: List[SummaryRow]

    @property
    def total_vehicles(self) -> int:
        return len(self.scheduled) + len(self.free)


def daily_summary(
    vehicles: Iterable[Vehicle],
    reservations: Iterable[Reservation],
    day: date,
    buffer_minutes: int = TURNAROUND_MINUTES,
) -> DailySummary:
    """
    Split the fleet into vehicles booked on `day` and vehicles with no booking.

    Cancelled reservations are left out. Both lists are sorted by model.
    """
    by_vehicle: Dict[str, List[Reservation]] = {}
    for r in reservations:
        if not r.cancelled:
            by_vehicle.setdefault(r.vehicle_id, []).append(r)

    scheduled, free = [], []
    for vehicle in vehicles:
        own = by_vehicle.get(vehicle.id, [])
        todays = reservations_on_day(own, day)
        windows = compute_free_windows(todays, day, buffer_minutes)
        row = SummaryRow(vehicle, todays, describe_free_windows(windows))
        (scheduled if todays else free).append(row)

    scheduled.sort(key=lambda row: row.vehicle.model.lower())
    free.sort(key=lambda row: row.vehicle.model.lower())
    return DailySummary(day=day, scheduled=scheduled, free=free)


# =============================================================================
# Dashboard
# =============================================================================


def reservations_departing_on(
    reservations: Iterable[Reservation], day: date
) -> List[Reservation]:
    """Active reservations departing on the given day, by departure."""
    todays = [
        r for r in reservations
        if r.is_active and r.start is not None and r.start.date() == day
    ]
    return sorted(todays, key=lambda r: r.start)


def vehicles_free_on(
    vehicles: Iterable[Vehicle], reservations: Iterable[Reservation], day: date
) -> List[Vehicle]:
    """Vehicles with no active reservation departing on the given day."""
    busy = {r.vehicle_id for r in reservations_departing_on(reservations, day)}
    return [v for v in vehicles if v.id not in busy]


def ranking(
    reservations: Iterable[Reservation],
    vehicles: Iterable[Vehicle],
    by: str = "driver",
    period: str = "week",
    now: Optional[datetime] = None,
) -> List[Tuple[str, int]]:
    """
    Count active reservations per driver or per vehicle.

    Args:
        by: "driver" or "vehicle"
        period: "week" or "month", counted back from now
    """
    now = now or datetime.now()
    since = now - (relativedelta(weeks=1) if period == "week" else relativedelta(months=1))
    names = {v.id: v.name for v in vehicles}

    counts: Counter = Counter()
    for r in reservations:
        if not r.is_active or r.start is None or r.start < since:
            continue
        if by == "vehicle":
            counts[names.get(r.vehicle_id, "Unknown vehicle")] += 1
        else:
            counts[r.driver or "Unknown"] += 1
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def daily_counts(
    reservations: Iterable[Reservation], days: int, today: date
) -> List[Tuple[date, int]]:
    """Active reservations departing on each of the last `days` days, oldest first."""
    reservations = list(reservations)
    result = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        result.append((day, len(reservations_departing_on(reservations, day))))
    return result


# =============================================================================
# Receipt
# =============================================================================

INSTRUCTIONS = {
    "Pickup": [
        "Collect the vehicle at the central garage at the scheduled time.",
        "Show your ID and registration number to the person in charge.",
        "Check fuel, tyres and bodywork and report any problem before leaving.",
    ],
    "Care": [
        "Keep the vehicle clean and in good condition.",
        "Do not smoke or eat anything that could dirty the interior.",
        "Do not overload the vehicle.",
    ],
    "Driving": [
        "Obey traffic laws and speed limits.",
        "Drive attentively and avoid distractions such as phone use.",
        "All occupants must wear seat belts.",
    ],
    "Return": [
        "Return the vehicle to the pickup location by the scheduled arrival time.",
        "Refuel to the initial level where applicable.",
        "Report any damage or problem that occurred during use.",
    ],
}


def receipt_text(reservation: Reservation, vehicle: Optional[Vehicle]) -> str:
    """Plain-text reservation receipt with usage instructions."""
    lines = [
        "Vehicle Reservation Receipt",
        "",
        f"Driver: {reservation.driver}",
        f"Registration: {reservation.registration}",
        f"Phone: {reservation.phone}",
        f"Destination: {reservation.destination}",
    ]
    if reservation.notes:
        lines.append(f"Notes: {reservation.notes}")
    lines += [
        f"Vehicle: {vehicle.name if vehicle else 'Vehicle not found'}",
        f"Departure: {format_instant(reservation.start)}",
        f"Arrival: {format_instant(reservation.end)}",
        f"Seats: {reservation.seats}",
        "",
        "Instructions",
    ]
    for number, (title, items) in enumerate(INSTRUCTIONS.items(), 1):
        lines.append(f"{number}. {title}:")
        lines.extend(f"- {item}" for item in items)
    return "\n".join(lines)
