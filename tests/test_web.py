#!/usr/bin/env python3
"""Tests for the Flask web screens."""

from io import BytesIO

import pytest
from openpyxl import load_workbook
from werkzeug.security import generate_password_hash

from fleet import Reservation, Vehicle
from fleet.checklist import ChecklistTemplate, parse_question_lines
from fleet.loader import (
    checklist_to_dict,
    get_reservation,
    latest_response_for_reservation,
    list_drivers,
    list_reservations,
    list_vehicles,
    save_reservation,
    vehicle_to_dict,
)
from fleet.store import CHECKLISTS, USERS, VEHICLES, DocumentStore
from web.app import app

BOOKING = {
    "departure": "2099-05-06T08:00",
    "arrival": "2099-05-06T12:00",
    "driver": "Ana Souza",
    "registration": "4471",
    "phone": "11912345678",
    "destination": "City Hall",
    "seats": "2",
}


@pytest.fixture
def store(tmp_path):
    app.config["TESTING"] = True
    app.config["DATA_DIR"] = tmp_path
    app.config["TURNAROUND_MINUTES"] = 60
    return DocumentStore(tmp_path)


@pytest.fixture
def client(store):
    return app.test_client()


@pytest.fixture
def admin(client):
    with client.session_transaction() as sess:
        sess["user"] = "admin@example.com"
    return client


@pytest.fixture
def vehicle_id(store):
    return store.add_document(VEHICLES, vehicle_to_dict(Vehicle(None, "ABC1234", "Gol")))


def book(vehicle_id, **overrides):
    return {**BOOKING, "vehicle_id": vehicle_id, **overrides}


# =============================================================================
# Authentication
# =============================================================================


class TestAuth:
    """Tests for login and the login_required guard."""

    def test_admin_pages_redirect_to_login(self, client):
        resp = client.get("/vehicles")
        assert resp.status_code == 302
        assert "/login" in resp.headers["Location"]

    def test_login_with_valid_password(self, client, store):
        store.add_document(USERS, {
            "email": "admin@example.com",
            "passwordHash": generate_password_hash("s3cret"),
        })
        resp = client.post(
            "/login?next=/vehicles",
            data={"email": "Admin@Example.com", "password": "s3cret"},
        )
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/vehicles")
        assert client.get("/vehicles").status_code == 200

    def test_login_with_wrong_password(self, client, store):
        store.add_document(USERS, {
            "email": "admin@example.com",
            "passwordHash": generate_password_hash("s3cret"),
        })
        resp = client.post("/login", data={"email": "admin@example.com", "password": "nope"})
        assert resp.status_code == 401
        assert b"Invalid email or password" in resp.data

    def test_external_next_ignored(self, client, store):
        store.add_document(USERS, {
            "email": "admin@example.com",
            "passwordHash": generate_password_hash("s3cret"),
        })
        resp = client.post(
            "/login?next=//evil.example.com",
            data={"email": "admin@example.com", "password": "s3cret"},
        )
        assert "evil" not in resp.headers["Location"]

    def test_logout(self, admin):
        admin.post("/logout")
        assert admin.get("/").status_code == 302


# =============================================================================
# Vehicles
# =============================================================================


class TestVehicles:
    """Tests for vehicle screens."""

    def test_create(self, admin, store):
        resp = admin.post("/vehicles/new", data={"plate": "abc 1234", "model": "Gol", "available": "on"})
        assert resp.status_code == 302
        [vehicle] = list_vehicles(store)
        assert vehicle.plate == "ABC1234"
        assert vehicle.disabled is False

    def test_create_bad_plate(self, admin, store):
        resp = admin.post("/vehicles/new", data={"plate": "AB12", "model": "Gol"})
        assert resp.status_code == 400
        assert b"7 alphanumeric" in resp.data
        assert list_vehicles(store) == []

    def test_edit_unchecked_available_disables(self, admin, store, vehicle_id):
        admin.post(f"/vehicles/{vehicle_id}/edit", data={"plate": "ABC1234", "model": "Gol G5"})
        [vehicle] = list_vehicles(store)
        assert vehicle.model == "Gol G5"
        assert vehicle.disabled is True

    def test_list_sorted(self, admin, store, vehicle_id):
        store.add_document(VEHICLES, vehicle_to_dict(Vehicle(None, "ZZZ9999", "Argo")))
        html = admin.get("/vehicles?sort=model").get_data(as_text=True)
        assert html.index("Argo") < html.index("Gol")

    def test_delete_refused_with_future_reservation(self, admin, store, vehicle_id):
        save_reservation(store, Reservation(None, vehicle_id, "2099-05-06T08:00", "2099-05-06T12:00"))
        resp = admin.post(f"/vehicles/{vehicle_id}/delete", follow_redirects=True)
        assert b"active reservations" in resp.data
        assert len(list_vehicles(store)) == 1

    def test_delete(self, admin, store, vehicle_id):
        save_reservation(store, Reservation(None, vehicle_id, "2001-05-06T08:00", "2001-05-06T12:00"))
        admin.post(f"/vehicles/{vehicle_id}/delete")
        assert list_vehicles(store) == []


# =============================================================================
# Booking
# =============================================================================


class TestBooking:
    """Tests for the public booking page."""

    def test_form_is_public(self, client, vehicle_id):
        assert client.get("/book").status_code == 200

    def test_availability_lists(self, client, store, vehicle_id):
        other = store.add_document(VEHICLES, vehicle_to_dict(Vehicle(None, "ZZZ9999", "Argo")))
        save_reservation(store, Reservation(None, other, "2099-05-06T07:00", "2099-05-06T10:00"))
        save_reservation(store, Reservation(None, vehicle_id, "2099-05-06T15:00", "2099-05-06T16:00"))

        html = client.get("/book?departure=2099-05-06T08:00").get_data(as_text=True)
        assert "busy until 06/05/2099 10:00" in html
        assert "return by 06/05/2099 14:00" in html

    def test_successful_booking_shows_receipt(self, client, store, vehicle_id):
        resp = client.post("/book", data=book(vehicle_id))
        assert resp.status_code == 302
        [reservation] = list_reservations(store)
        assert resp.headers["Location"].endswith(f"/reservations/{reservation.id}/receipt")
        assert reservation.seats == 2

        receipt = client.get(resp.headers["Location"]).get_data(as_text=True)
        assert "Vehicle Reservation Receipt" in receipt
        assert "Gol - ABC1234" in receipt

    def test_conflict_rejected(self, client, store, vehicle_id):
        save_reservation(store, Reservation(None, vehicle_id, "2099-05-06T12:30", "2099-05-06T14:00"))
        resp = client.post("/book", data=book(vehicle_id))
        assert resp.status_code == 400
        assert b"already booked" in resp.data
        assert len(list_reservations(store)) == 1

    def test_past_departure_rejected(self, client, store, vehicle_id):
        resp = client.post(
            "/book",
            data=book(vehicle_id, departure="2001-05-06T08:00", arrival="2001-05-06T12:00"),
        )
        assert resp.status_code == 400
        assert b"Departure cannot be in the past" in resp.data

    def test_unknown_vehicle_rejected(self, client, store, vehicle_id):
        resp = client.post("/book", data=book("nope"))
        assert resp.status_code == 400
        assert list_reservations(store) == []

    def test_disabled_vehicle_rejected(self, client, store):
        disabled = store.add_document(
            VEHICLES, vehicle_to_dict(Vehicle(None, "ABC1234", "Gol", disabled=True))
        )
        resp = client.post("/book", data=book(disabled))
        assert resp.status_code == 400
        assert b"Selected vehicle is not available for booking" in resp.data
        assert list_reservations(store) == []


# =============================================================================
# Reservation management
# =============================================================================


class TestReservations:
    """Tests for admin reservation screens."""

    @pytest.fixture
    def reservation_id(self, store, vehicle_id):
        return save_reservation(
            store,
            Reservation(None, vehicle_id, "2099-05-06T08:00", "2099-05-06T12:00",
                        driver="Ana Souza", registration="4471", phone="11912345678",
                        destination="City Hall"),
        )

    def test_list(self, admin, reservation_id):
        html = admin.get("/reservations?sort=driver&dir=desc").get_data(as_text=True)
        assert "Ana Souza" in html

    def test_edit_does_not_conflict_with_itself(self, admin, store, vehicle_id, reservation_id):
        resp = admin.post(
            f"/reservations/{reservation_id}/edit",
            data=book(vehicle_id, arrival="2099-05-06T13:00"),
        )
        assert resp.status_code == 302
        assert get_reservation(store, reservation_id).arrival == "2099-05-06T13:00"

    def test_create_for_unknown_vehicle_rejected(self, admin, store, vehicle_id):
        resp = admin.post("/reservations/new", data=book("nope"))
        assert resp.status_code == 400
        assert b"Selected vehicle does not exist" in resp.data
        assert list_reservations(store) == []

    def test_create_for_disabled_vehicle_rejected(self, admin, store):
        disabled = store.add_document(
            VEHICLES, vehicle_to_dict(Vehicle(None, "ZZZ9999", "Argo", disabled=True))
        )
        resp = admin.post("/reservations/new", data=book(disabled))
        assert resp.status_code == 400
        assert list_reservations(store) == []

    def test_complete(self, admin, store, reservation_id):
        admin.post(f"/reservations/{reservation_id}/complete")
        assert get_reservation(store, reservation_id).completed is True

    def test_delete_from_history(self, admin, store, reservation_id):
        resp = admin.post(f"/reservations/{reservation_id}/delete", data={"next": "history"})
        assert resp.headers["Location"].endswith("/history")
        assert list_reservations(store) == []

    def test_delete_missing(self, admin):
        resp = admin.post("/reservations/nope/delete", follow_redirects=True)
        assert b"not found" in resp.data

    def test_export(self, admin, reservation_id):
        resp = admin.get("/reservations/export.xlsx")
        assert resp.status_code == 200
        ws = load_workbook(BytesIO(resp.data)).active
        assert ws.cell(row=2, column=4).value == "Ana Souza"

    def test_history(self, admin, reservation_id):
        assert b"City Hall" in admin.get("/history").data


# =============================================================================
# Drivers / checklists / summary
# =============================================================================


class TestDrivers:
    """Tests for driver screens."""

    DRIVER = {
        "name": "Ana Souza",
        "registration": "4471",
        "department": "Health",
        "role": "Nurse",
        "phone": "11912345678",
    }

    def test_register_formats_phone(self, admin, store):
        resp = admin.post("/drivers", data=self.DRIVER)
        assert resp.status_code == 302
        [driver] = list_drivers(store)
        assert driver.phone == "(11) 91234-5678"

    def test_register_missing_field(self, admin, store):
        resp = admin.post("/drivers", data={**self.DRIVER, "role": ""})
        assert resp.status_code == 400
        assert list_drivers(store) == []

    def test_search(self, admin, store):
        admin.post("/drivers", data=self.DRIVER, follow_redirects=True)
        admin.post(
            "/drivers",
            data={**self.DRIVER, "name": "Bruno Lima", "department": "Works"},
            follow_redirects=True,
        )
        page = admin.get("/drivers?q=works").get_data(as_text=True)
        html = page[page.index('id="driver-table"'):]
        assert "Bruno Lima" in html
        assert "Ana Souza" not in html


class TestChecklists:
    """Tests for checklist template screens."""

    def test_create(self, admin, store):
        resp = admin.post("/checklists/new", data={
            "name": "Daily",
            "questions": "Odometer | number | yes\nDamage | text | no | yes",
        })
        assert resp.status_code == 302
        [doc] = store.list_documents(CHECKLISTS)
        assert [q["answerType"] for q in doc["questions"]] == ["number", "text"]

    def test_bad_type_rejected(self, admin, store):
        resp = admin.post("/checklists/new", data={"name": "Daily", "questions": "Paint | colour"})
        assert resp.status_code == 400
        assert b"Unknown answer type" in resp.data
        assert store.list_documents(CHECKLISTS) == []


class TestSummary:
    """Tests for the daily summary and dashboard."""

    def test_summary(self, admin, store, vehicle_id):
        save_reservation(store, Reservation(None, vehicle_id, "2099-05-06T08:00", "2099-05-06T18:00",
                                            driver="Ana"))
        html = admin.get("/summary?date=2099-05-06").get_data(as_text=True)
        assert "Free until 8h00, Free after 18h" in html

    def test_summary_bad_date(self, admin):
        resp = admin.get("/summary?date=yesterday")
        assert resp.status_code == 200
        assert b"Invalid date" in resp.data

    def test_dashboard(self, admin, vehicle_id):
        resp = admin.get("/?by=vehicle&period=month")
        assert resp.status_code == 200
        assert b"Gol - ABC1234" in resp.data


# =============================================================================
# Driver self-service
# =============================================================================


class TestAccess:
    """Tests for the public per-vehicle driver page."""

    @pytest.fixture
    def checklist_vehicle(self, store):
        checklist = ChecklistTemplate(
            id=None, name="Daily", questions=parse_question_lines("Odometer | number | yes")
        )
        checklist_id = store.add_document(CHECKLISTS, checklist_to_dict(checklist))
        return store.add_document(
            VEHICLES, vehicle_to_dict(Vehicle(None, "ABC1234", "Gol", checklist_id=checklist_id))
        )

    @pytest.fixture
    def reservation_id(self, store, checklist_vehicle):
        return save_reservation(
            store,
            Reservation(None, checklist_vehicle, "2099-05-06T08:00", "2099-05-06T12:00",
                        driver="Ana Souza", registration="4471"),
        )

    def test_lookup_by_registration(self, client, checklist_vehicle, reservation_id):
        html = client.get(f"/access/{checklist_vehicle}?registration=4471").get_data(as_text=True)
        assert "06/05/2099 08:00" in html
        assert "Confirm departure" in html

    def test_lookup_no_match(self, client, checklist_vehicle, reservation_id):
        resp = client.get(f"/access/{checklist_vehicle}?registration=9999")
        assert b"No reservation found" in resp.data

    def test_unknown_vehicle(self, client):
        assert client.get("/access/nope").status_code == 404

    def test_required_answer_enforced(self, client, store, checklist_vehicle, reservation_id):
        url = f"/access/{checklist_vehicle}/{reservation_id}/checklist"
        resp = client.post(url, data={"answer_0": ""})
        assert resp.status_code == 400
        assert latest_response_for_reservation(store, reservation_id) is None

    def test_checklist_confirms_departure(self, client, store, checklist_vehicle, reservation_id):
        url = f"/access/{checklist_vehicle}/{reservation_id}/checklist"
        resp = client.post(url, data={"answer_0": "15320"})
        assert resp.status_code == 302
        response = latest_response_for_reservation(store, reservation_id)
        assert response.departure_confirmed is True
        assert response.answers[0].value == "15320"
        assert response.responder_registration == "4471"

    def test_cancel(self, client, store, checklist_vehicle, reservation_id):
        client.post(f"/access/{checklist_vehicle}/{reservation_id}/cancel")
        assert get_reservation(store, reservation_id).cancelled is True

    def test_cancel_wrong_vehicle(self, client, store, vehicle_id, reservation_id):
        client.post(f"/access/{vehicle_id}/{reservation_id}/cancel")
        assert get_reservation(store, reservation_id).cancelled is False
