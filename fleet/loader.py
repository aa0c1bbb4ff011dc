"""Conversion between stored documents and fleet objects."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from .checklist import (
    ChecklistAnswer,
    ChecklistQuestion,
    ChecklistResponse,
    ChecklistTemplate,
)
from .driver import Driver
from .reservation import Reservation
from .store import (
    CHECKLIST_RESPONSES,
    CHECKLISTS,
    DRIVERS,
    RESERVATIONS,
    VEHICLES,
    DocumentStore,
)
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


# =============================================================================
# Vehicles
# =============================================================================


def parse_vehicle(doc: Dict[str, Any]) -> Vehicle:
    """Build a Vehicle from a stored document. Missing availability means enabled."""
    return Vehicle(
        doc.get("id"),
        doc.get("plate") or "",
        doc.get("model") or "",
        disabled=doc.get("available") is False,
        checklist_id=doc.get("checklistId") or None,
    )


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    """Serialize a Vehicle to the stored dict format (camelCase keys)."""
    d: Dict[str, Any] = {
        "plate": vehicle.plate.upper(),
        "model": vehicle.model,
        "available": not vehicle.disabled,
    }
    if vehicle.checklist_id:
        d["checklistId"] = vehicle.checklist_id
    return d


def list_vehicles(store: DocumentStore) -> List[Vehicle]:
    return [parse_vehicle(doc) for doc in store.list_documents(VEHICLES)]


def get_vehicle(store: DocumentStore, vehicle_id: str) -> Optional[Vehicle]:
    """Find a vehicle by id, or None."""
    try:
        return parse_vehicle(store.get_document(VEHICLES, vehicle_id))
    except KeyError:
        return None


# =============================================================================
# Reservations
# =============================================================================


def _instant_to_str(value) -> Optional[str]:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M")
    return value


def parse_reservation(doc: Dict[str, Any]) -> Reservation:
    """
    Build a Reservation from a stored document.

    Malformed instants are kept as-is on the raw fields and left unparsed,
    which marks the reservation invalid rather than failing the load.
    """
    try:
        seats = int(doc.get("seats") or 1)
    except (TypeError, ValueError):
        seats = 1

    reservation = Reservation(
        doc.get("id"),
        doc.get("vehicleId") or "",
        doc.get("departure"),
        doc.get("arrival"),
        driver=doc.get("driver") or "",
        registration=doc.get("registration") or "",
        phone=doc.get("phone") or "",
        destination=doc.get("destination") or "",
        notes=doc.get("notes") or "",
        seats=seats,
        completed=bool(doc.get("completed")),
        cancelled=bool(doc.get("cancelled")),
    )
    if not reservation.is_valid:
        logger.warning(
            "Reservation %s has unusable times (%r -> %r)",
            reservation.id,
            reservation.departure,
            reservation.arrival,
        )
    return reservation


def reservation_to_dict(reservation: Reservation) -> Dict[str, Any]:
    """Serialize a Reservation to the stored dict format (camelCase keys)."""
    d: Dict[str, Any] = {
        "vehicleId": reservation.vehicle_id,
        "departure": _instant_to_str(reservation.departure),
        "arrival": _instant_to_str(reservation.arrival),
        "driver": reservation.driver,
        "registration": reservation.registration,
        "phone": reservation.phone,
        "destination": reservation.destination,
        "seats": reservation.seats,
        "notes": reservation.notes,
        "completed": reservation.completed,
        "cancelled": reservation.cancelled,
    }
    return d


def list_reservations(
    store: DocumentStore, vehicle_id: Optional[str] = None
) -> List[Reservation]:
    """All reservations, or only those for one vehicle."""
    if vehicle_id is None:
        docs = store.list_documents(RESERVATIONS)
    else:
        docs = store.query_documents(RESERVATIONS, "vehicleId", vehicle_id)
    return [parse_reservation(doc) for doc in docs]


def get_reservation(store: DocumentStore, reservation_id: str) -> Optional[Reservation]:
    """Find a reservation by id, or None."""
    try:
        return parse_reservation(store.get_document(RESERVATIONS, reservation_id))
    except KeyError:
        return None


def save_reservation(store: DocumentStore, reservation: Reservation) -> str:
    """Insert a new reservation, or replace an existing one, and return its id."""
    data = reservation_to_dict(reservation)
    if reservation.id is None:
        reservation.id = store.add_document(RESERVATIONS, data)
    else:
        store.update_document(RESERVATIONS, reservation.id, data)
    return reservation.id


def find_reservations_for_driver(
    store: DocumentStore, vehicle_id: str, registration: str
) -> List[Reservation]:
    """
    Open reservations of one vehicle held by a driver registration.

    Matching ignores case and surrounding whitespace. Cancelled reservations
    are left out. Sorted by departure.
    """
    wanted = registration.strip().lower()
    found = [
        r for r in list_reservations(store, vehicle_id)
        if r.registration.strip().lower() == wanted and not r.cancelled
    ]
    return sorted(found, key=lambda r: (r.start is None, r.start or datetime.min))


# =============================================================================
# Drivers
# =============================================================================


def parse_driver(doc: Dict[str, Any]) -> Driver:
    return Driver(
        doc.get("id"),
        doc.get("name") or "",
        doc.get("registration") or "",
        department=doc.get("department") or "",
        role=doc.get("role") or "",
        phone=doc.get("phone") or "",
    )


def driver_to_dict(driver: Driver) -> Dict[str, Any]:
    """Serialize a Driver to the stored dict format."""
    return {
        "name": driver.name,
        "registration": driver.registration,
        "department": driver.department,
        "role": driver.role,
        "phone": driver.phone,
    }


def list_drivers(store: DocumentStore) -> List[Driver]:
    drivers = [parse_driver(doc) for doc in store.list_documents(DRIVERS)]
    return sorted(drivers, key=lambda d: d.name.lower())


# =============================================================================
# Checklists
# =============================================================================


def parse_checklist(doc: Dict[str, Any]) -> ChecklistTemplate:
    """Build a ChecklistTemplate, filling defaults for loosely stored questions."""
    questions = []
    raw_questions = doc.get("questions")
    if isinstance(raw_questions, list):
        for index, q in enumerate(raw_questions):
            q = q or {}
            questions.append(
                ChecklistQuestion(
                    id=str(q.get("id") or index),
                    text=q.get("text") or "",
                    required=bool(q.get("required", False)),
                    answer_type=q.get("answerType") or "text",
                    allows_note=bool(q.get("allowsNote", False)),
                )
            )
    return ChecklistTemplate(
        id=doc.get("id"),
        name=doc.get("name") or "Untitled checklist",
        description=doc.get("description") or "",
        questions=questions,
        updated_at=doc.get("updatedAt") or "",
    )


def checklist_to_dict(checklist: ChecklistTemplate) -> Dict[str, Any]:
    """Serialize a ChecklistTemplate, stamping updatedAt with the current time."""
    return {
        "name": checklist.name,
        "description": checklist.description,
        "questions": [
            {
                "id": q.id,
                "text": q.text,
                "required": q.required,
                "answerType": q.answer_type,
                "allowsNote": q.allows_note,
            }
            for q in checklist.questions
        ],
        "updatedAt": datetime.now().isoformat(timespec="seconds"),
    }


def list_checklists(store: DocumentStore) -> List[ChecklistTemplate]:
    return [parse_checklist(doc) for doc in store.list_documents(CHECKLISTS)]


def get_checklist(store: DocumentStore, checklist_id: str) -> Optional[ChecklistTemplate]:
    """Find a checklist template by id, or None."""
    try:
        return parse_checklist(store.get_document(CHECKLISTS, checklist_id))
    except KeyError:
        return None


def parse_checklist_response(doc: Dict[str, Any]) -> ChecklistResponse:
    answers = []
    raw_answers = doc.get("answers")
    if isinstance(raw_answers, list):
        for a in raw_answers:
            a = a or {}
            answers.append(
                ChecklistAnswer(
                    question_id=str(a.get("questionId") or ""),
                    question_text=a.get("questionText") or "",
                    answer_type=a.get("answerType") or "text",
                    value=str(a.get("value") if a.get("value") is not None else ""),
                    note=a.get("note") or "",
                )
            )
    return ChecklistResponse(
        id=doc.get("id"),
        vehicle_id=doc.get("vehicleId") or "",
        reservation_id=doc.get("reservationId") or "",
        checklist_id=doc.get("checklistId") or "",
        answered_at=str(doc.get("answeredAt") or ""),
        answers=answers,
        responder_name=doc.get("responderName"),
        responder_registration=doc.get("responderRegistration"),
        departure_confirmed=bool(doc.get("departureConfirmed", False)),
    )


def checklist_response_to_dict(response: ChecklistResponse) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "vehicleId": response.vehicle_id,
        "reservationId": response.reservation_id,
        "checklistId": response.checklist_id,
        "answeredAt": response.answered_at,
        "departureConfirmed": response.departure_confirmed,
        "answers": [
            {
                "questionId": a.question_id,
                "questionText": a.question_text,
                "answerType": a.answer_type,
                "value": a.value,
                "note": a.note,
            }
            for a in response.answers
        ],
    }
    if response.responder_name is not None:
        d["responderName"] = response.responder_name
    if response.responder_registration is not None:
        d["responderRegistration"] = response.responder_registration
    return d


def save_checklist_response(store: DocumentStore, response: ChecklistResponse) -> str:
    """Store a new checklist response and return its id."""
    response.id = store.add_document(
        CHECKLIST_RESPONSES, checklist_response_to_dict(response)
    )
    return response.id


def list_responses_for_vehicle(
    store: DocumentStore, vehicle_id: str
) -> List[ChecklistResponse]:
    """All responses for a vehicle, newest first."""
    if not vehicle_id:
        return []
    docs = store.query_documents(CHECKLIST_RESPONSES, "vehicleId", vehicle_id)
    responses = [parse_checklist_response(doc) for doc in docs]
    return sorted(responses, key=lambda r: r.answered_at, reverse=True)


def latest_response_for_reservation(
    store: DocumentStore, reservation_id: str
) -> Optional[ChecklistResponse]:
    """Most recent response submitted for a reservation, or None."""
    if not reservation_id:
        return None
    docs = store.query_documents(CHECKLIST_RESPONSES, "reservationId", reservation_id)
    if not docs:
        return None
    responses = [parse_checklist_response(doc) for doc in docs]
    return max(responses, key=lambda r: r.answered_at)


def confirm_departure(store: DocumentStore, response_id: str) -> None:
    """Flag a checklist response as having confirmed the departure."""
    if not response_id:
        return
    store.update_document(CHECKLIST_RESPONSES, response_id, {"departureConfirmed": True})
