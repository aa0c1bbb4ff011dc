"""Reservation class for vehicle bookings."""

from datetime import datetime
from typing import Optional, Union

from dateutil.parser import isoparse


def parse_instant(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored instant into a naive local datetime.

    Returns None for missing or unparseable values. Timezone-aware values
    are converted to local wall-clock time so they compare with naive ones.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = isoparse(str(value).strip())
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class Reservation:
    """A booking of one vehicle for the interval [departure, arrival)."""

    def __init__(
            self,
            id: Optional[str],
            vehicle_id: str,
            departure: Union[str, datetime, None],
            arrival: Union[str, datetime, None],
            driver: str = "",
            registration: str = "",
            phone: str = "",
            destination: str = "",
            notes: str = "",
            seats: int = 1,
            completed: bool = False,
            cancelled: bool = False,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.departure = departure
        self.arrival = arrival
        self.driver = driver
        self.registration = registration
        self.phone = phone
        self.destination = destination
        self.notes = notes
        self.seats = seats
        self.completed = completed or False
        self.cancelled = cancelled or False
        self.start = parse_instant(departure)
        self.end = parse_instant(arrival)

    @property
    def is_valid(self) -> bool:
        """Both instants parsed and start strictly before end."""
        return self.start is not None and self.end is not None and self.start < self.end

    @property
    def is_active(self) -> bool:
        """Neither completed nor cancelled."""
        return not (self.completed or self.cancelled)

    @property
    def status_label(self) -> str:
        if self.cancelled:
            return "Cancelled"
        if self.completed:
            return "Completed"
        return "In progress"

    def __repr__(self) -> str:
        return f"Reservation({self.id!r}, {self.vehicle_id!r}, {self.departure!r}, {self.arrival!r})"
