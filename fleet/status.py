"""Availability enum for conflict-check verdicts."""

from enum import Enum


class Availability(Enum):
    """Booking verdict categories."""

    AVAILABLE = 1
    UNAVAILABLE = 2
