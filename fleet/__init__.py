"""
Vehicle fleet scheduling models.

This package provides the data models and availability engine for a shared
vehicle pool:
- Vehicle, Reservation, Driver: records kept in the document store
- ChecklistTemplate, ChecklistResponse: pre-departure checklists
- check_conflict: may a reservation coexist with a vehicle's bookings?
- compute_free_windows: free/busy partition of one calendar day
- DocumentStore: YAML collections keyed by name
"""

from .status import Availability
from .vehicle import Vehicle
from .reservation import Reservation, parse_instant
from .driver import Driver
from .checklist import (
    ChecklistAnswer,
    ChecklistQuestion,
    ChecklistResponse,
    ChecklistTemplate,
)
from .verdict import AvailabilityVerdict, FreeWindow, VehicleStatus
from .availability import (
    TURNAROUND_MINUTES,
    check_conflict,
    compute_free_windows,
    reservations_on_day,
    vehicle_status_at,
    latest_return,
)
from .store import DocumentStore

__all__ = [
    "Availability",
    "Vehicle",
    "Reservation",
    "parse_instant",
    "Driver",
    "ChecklistAnswer",
    "ChecklistQuestion",
    "ChecklistResponse",
    "ChecklistTemplate",
    "AvailabilityVerdict",
    "FreeWindow",
    "VehicleStatus",
    "TURNAROUND_MINUTES",
    "check_conflict",
    "compute_free_windows",
    "reservations_on_day",
    "vehicle_status_at",
    "latest_return",
    "DocumentStore",
]
