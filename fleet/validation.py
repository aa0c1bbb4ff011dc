"""Form validation run before records reach the store or the engine."""

import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .availability import TURNAROUND_MINUTES, check_conflict
from .checklist import ChecklistTemplate
from .driver import Driver
from .reports import format_instant
from .reservation import Reservation
from .vehicle import Vehicle

PLATE_PATTERN = re.compile(r"^[A-Z0-9]{7}$")


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def is_valid_phone(value: Optional[str]) -> bool:
    """Phone numbers carry 10 or 11 digits once punctuation is stripped."""
    return len(digits_only(value)) in (10, 11)


def format_phone(value: Optional[str]) -> str:
    """Format as (XX) XXXXX-XXXX, tolerating partial input."""
    digits = digits_only(value)[:11]
    if len(digits) <= 2:
        return digits
    if len(digits) <= 7:
        return f"({digits[:2]}) {digits[2:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"


def normalize_plate(value: Optional[str]) -> str:
    return re.sub(r"\s", "", value or "").upper()


def validate_vehicle(plate: Optional[str], model: Optional[str]) -> List[str]:
    """Validate vehicle form fields. Returns list of errors."""
    if not plate or not model:
        return ["Fill in the required fields: Plate and Model"]
    if not PLATE_PATTERN.match(normalize_plate(plate)):
        return ["The plate must have 7 alphanumeric characters (e.g. ABC1234)"]
    return []


def validate_driver(driver: Driver) -> List[str]:
    """Validate driver form fields. Returns list of errors."""
    if not all([driver.name, driver.registration, driver.department, driver.role, driver.phone]):
        return ["Fill in all required fields."]
    if not is_valid_phone(driver.phone):
        return ["The phone number must have 10 or 11 digits."]
    return []


def validate_reservation(reservation: Reservation, now: datetime) -> List[str]:
    """
    Validate a candidate reservation before the conflict check.

    Checks required fields, phone format, that departure precedes arrival
    and that departure is not in the past. Returns list of errors.
    """
    required = [
        ("Departure", reservation.departure),
        ("Arrival", reservation.arrival),
        ("Vehicle", reservation.vehicle_id),
        ("Driver", reservation.driver),
        ("Registration", reservation.registration),
        ("Phone", reservation.phone),
        ("Destination", reservation.destination),
        ("Seats", reservation.seats and reservation.seats > 0),
    ]
    missing = [label for label, value in required if not value]
    if missing:
        return [f"Fill in the required fields: {', '.join(missing)}"]

    if not is_valid_phone(reservation.phone):
        return ["The phone number must have 10 or 11 digits"]

    errors = []
    if reservation.start is None:
        errors.append("Departure is not a valid date and time")
    if reservation.end is None:
        errors.append("Arrival is not a valid date and time")
    if errors:
        return errors

    if reservation.start >= reservation.end:
        errors.append("Arrival must be after departure")
    if reservation.start < now:
        errors.append("Departure cannot be in the past")
    return errors


def conflict_message(blocking: Reservation, until: datetime, buffer_minutes: int) -> str:
    """User-facing explanation of why a booking was refused."""
    return (
        f"This vehicle is already booked to depart at "
        f"{format_instant(blocking.start)}. It must be returned at least "
        f"{buffer_minutes} minutes earlier, by {format_instant(until)}."
    )


def vehicle_booking_errors(vehicle: Optional[Vehicle]) -> List[str]:
    """A booking needs a vehicle that exists and is not switched off."""
    if vehicle is None:
        return ["Selected vehicle does not exist"]
    if vehicle.disabled:
        return ["Selected vehicle is not available for booking"]
    return []


def check_booking(
    candidate: Reservation,
    vehicle: Optional[Vehicle],
    existing: Iterable[Reservation],
    now: datetime,
    buffer_minutes: int = TURNAROUND_MINUTES,
    exclude_id: Optional[str] = None,
) -> List[str]:
    """
    Full pre-commit check for a booking: form validation, the vehicle,
    then conflicts. `vehicle` is the stored record for the candidate's
    vehicle_id, or None when there is none.

    `existing` may hold other vehicles' reservations; only those of the
    candidate's vehicle are considered.
    """
    errors = validate_reservation(candidate, now)
    if errors:
        return errors

    errors = vehicle_booking_errors(vehicle)
    if errors:
        return errors

    same_vehicle = [r for r in existing if r.vehicle_id == candidate.vehicle_id]
    verdict = check_conflict(candidate, same_vehicle, buffer_minutes, exclude_id)
    if not verdict.is_available:
        return [conflict_message(verdict.blocking, verdict.until, buffer_minutes)]
    return []


def validate_checklist_answers(
    checklist: ChecklistTemplate, answers: Dict[str, str]
) -> List[str]:
    """Every required question needs an answer; number answers must be numeric."""
    errors = []
    for question in checklist.questions:
        value = (answers.get(question.id) or "").strip()
        if question.required and not value:
            errors.append(f"Answer required: {question.text}")
            continue
        if value and question.answer_type == "number":
            try:
                float(value.replace(",", "."))
            except ValueError:
                errors.append(f"Answer must be a number: {question.text}")
    return errors
