"""Derived results of the availability engine."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from .status import Availability

if TYPE_CHECKING:
    from .reservation import Reservation
    from .vehicle import Vehicle


@dataclass
class AvailabilityVerdict:
    """Outcome of a conflict check for one candidate reservation."""

    status: Availability
    blocking: Optional["Reservation"] = None
    until: Optional[datetime] = None

    @property
    def is_available(self) -> bool:
        return self.status == Availability.AVAILABLE


@dataclass(frozen=True)
class FreeWindow:
    """A gap inside one calendar day with no reservation."""

    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


@dataclass
class VehicleStatus:
    """Availability of a vehicle at one instant, for booking lists."""

    vehicle: "Vehicle"
    available: bool
    busy_until: Optional[datetime] = None
    latest_return: Optional[datetime] = None
