"""Flask web application for fleet vehicle scheduling."""

import os
from datetime import date, datetime
from functools import wraps
from io import BytesIO
from pathlib import Path

from flask import (
    Flask,
    flash,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)
from werkzeug.security import check_password_hash

# Add parent directory to path for fleet imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet.availability import (
    TURNAROUND_MINUTES,
    has_future_reservations,
    vehicle_status_at,
)
from fleet.checklist import (
    ChecklistAnswer,
    ChecklistResponse,
    ChecklistTemplate,
    parse_question_lines,
    questions_to_lines,
)
from fleet.export import reservations_workbook
from fleet.loader import (
    checklist_to_dict,
    confirm_departure,
    driver_to_dict,
    find_reservations_for_driver,
    get_checklist,
    get_reservation,
    get_vehicle,
    latest_response_for_reservation,
    list_checklists,
    list_drivers,
    list_reservations,
    list_responses_for_vehicle,
    list_vehicles,
    parse_driver,
    save_checklist_response,
    save_reservation,
    vehicle_to_dict,
)
from fleet.reports import (
    daily_counts,
    daily_summary,
    format_instant,
    ranking,
    receipt_text,
    reservations_departing_on,
    vehicles_free_on,
)
from fleet.reservation import Reservation
from fleet.store import CHECKLISTS, DRIVERS, RESERVATIONS, USERS, VEHICLES, DocumentStore
from fleet.validation import (
    check_booking,
    format_phone,
    normalize_plate,
    validate_checklist_answers,
    validate_driver,
    validate_vehicle,
)
from fleet.vehicle import Vehicle

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

# Path to the data directory (relative to project root)
app.config["DATA_DIR"] = Path(
    os.environ.get("FLEET_DATA_DIR", Path(__file__).parent.parent / "data")
)
app.config["TURNAROUND_MINUTES"] = int(
    os.environ.get("FLEET_TURNAROUND_MINUTES", TURNAROUND_MINUTES)
)


def get_store() -> DocumentStore:
    return DocumentStore(app.config["DATA_DIR"])


def buffer_minutes() -> int:
    return app.config["TURNAROUND_MINUTES"]


def current_time() -> datetime:
    """Current instant, truncated to the minute like datetime-local inputs."""
    return datetime.now().replace(second=0, microsecond=0)


def format_input(value) -> str:
    """Format an instant for a datetime-local input."""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M")
    return value or ""


def status_badge_color(reservation: Reservation) -> str:
    """Get Tailwind color classes for a reservation status badge."""
    if reservation.cancelled:
        return "bg-red-100 text-red-800"
    if reservation.completed:
        return "bg-gray-100 text-gray-700"
    return "bg-emerald-100 text-emerald-800"


# Register template filters
app.jinja_env.filters["format_instant"] = format_instant
app.jinja_env.filters["format_input"] = format_input
app.jinja_env.filters["format_phone"] = format_phone
app.jinja_env.filters["status_badge_color"] = status_badge_color


# =============================================================================
# Authentication
# =============================================================================


def login_required(fn):
    @wraps(fn)
    def _wrap(*args, **kwargs):
        if not session.get("user"):
            return redirect(url_for("login", next=request.path))
        return fn(*args, **kwargs)
    return _wrap


@app.route("/login", methods=["GET", "POST"])
def login():
    """Email/password login against the users collection."""
    if request.method == "GET":
        return render_template("login.html")

    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    users = get_store().query_documents(USERS, "email", email)
    if not users or not check_password_hash(users[0].get("passwordHash", ""), password):
        app.logger.warning("Failed login for %s", email or "<empty>")
        flash("Invalid email or password", "error")
        return render_template("login.html", email=email), 401

    session["user"] = email
    next_url = request.args.get("next") or ""
    # Only follow local redirects
    if not next_url.startswith("/") or next_url.startswith("//"):
        next_url = url_for("index")
    return redirect(next_url)


@app.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return redirect(url_for("login"))


# =============================================================================
# Form helpers
# =============================================================================


def reservation_from_form(form, reservation_id=None) -> Reservation:
    """Build a candidate Reservation from submitted form fields."""
    try:
        seats = int(form.get("seats") or 1)
    except ValueError:
        seats = 0
    return Reservation(
        reservation_id,
        form.get("vehicle_id") or "",
        form.get("departure") or None,
        form.get("arrival") or None,
        driver=(form.get("driver") or "").strip(),
        registration=(form.get("registration") or "").strip(),
        phone=(form.get("phone") or "").strip(),
        destination=(form.get("destination") or "").strip(),
        notes=(form.get("notes") or "").strip(),
        seats=seats,
    )


def vehicle_statuses(vehicles, reservations, departure):
    """Split vehicles into (available, unavailable) statuses at a departure."""
    by_vehicle = {}
    for r in reservations:
        by_vehicle.setdefault(r.vehicle_id, []).append(r)
    statuses = [
        vehicle_status_at(v, by_vehicle.get(v.id, []), departure, buffer_minutes())
        for v in vehicles
    ]
    available = [s for s in statuses if s.available]
    unavailable = [s for s in statuses if not s.available]
    return available, unavailable


# =============================================================================
# Dashboard
# =============================================================================


@app.route("/")
@login_required
def index():
    """Dashboard with today's bookings, rankings and daily counts."""
    store = get_store()
    vehicles = list_vehicles(store)
    reservations = list_reservations(store)
    today = date.today()

    rank_by = request.args.get("by", "driver")
    period = request.args.get("period", "week")
    if rank_by not in ("driver", "vehicle"):
        rank_by = "driver"
    if period not in ("week", "month"):
        period = "week"

    return render_template(
        "index.html",
        vehicles={v.id: v for v in vehicles},
        todays=reservations_departing_on(reservations, today),
        free_today=vehicles_free_on(vehicles, reservations, today),
        ranking=ranking(reservations, vehicles, by=rank_by, period=period),
        counts=daily_counts(reservations, 7 if period == "week" else 30, today),
        rank_by=rank_by,
        period=period,
        active_tab="dashboard",
    )


# =============================================================================
# Vehicles
# =============================================================================


@app.route("/vehicles")
@login_required
def vehicles_list():
    """Vehicle list, sortable by plate or model."""
    store = get_store()
    sort = request.args.get("sort", "model")
    reverse = request.args.get("dir") == "desc"
    vehicles = list_vehicles(store)
    if sort == "plate":
        vehicles.sort(key=lambda v: v.plate, reverse=reverse)
    else:
        vehicles.sort(key=lambda v: v.model.lower(), reverse=reverse)

    return render_template(
        "vehicles.html",
        vehicles=vehicles,
        checklists={c.id: c for c in list_checklists(store)},
        sort=sort,
        reverse=reverse,
        active_tab="vehicles",
    )


def vehicle_from_form(form, vehicle_id=None) -> Vehicle:
    return Vehicle(
        vehicle_id,
        normalize_plate(form.get("plate")),
        (form.get("model") or "").strip(),
        disabled=form.get("available") != "on",
        checklist_id=form.get("checklist_id") or None,
    )


@app.route("/vehicles/new", methods=["GET", "POST"])
@login_required
def vehicle_new():
    store = get_store()
    if request.method == "GET":
        return render_template(
            "vehicle_form.html",
            vehicle=Vehicle(None, "", ""),
            checklists=list_checklists(store),
            active_tab="vehicles",
        )

    vehicle = vehicle_from_form(request.form)
    errors = validate_vehicle(vehicle.plate, vehicle.model)
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template(
            "vehicle_form.html",
            vehicle=vehicle,
            checklists=list_checklists(store),
            active_tab="vehicles",
        ), 400

    store.add_document(VEHICLES, vehicle_to_dict(vehicle))
    flash(f"Added vehicle {vehicle.name}", "success")
    return redirect(url_for("vehicles_list"))


@app.route("/vehicles/<vehicle_id>/edit", methods=["GET", "POST"])
@login_required
def vehicle_edit(vehicle_id: str):
    store = get_store()
    existing = get_vehicle(store, vehicle_id)
    if existing is None:
        flash(f"Vehicle '{vehicle_id}' not found", "error")
        return redirect(url_for("vehicles_list"))

    if request.method == "GET":
        return render_template(
            "vehicle_form.html",
            vehicle=existing,
            checklists=list_checklists(store),
            active_tab="vehicles",
        )

    vehicle = vehicle_from_form(request.form, vehicle_id)
    errors = validate_vehicle(vehicle.plate, vehicle.model)
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template(
            "vehicle_form.html",
            vehicle=vehicle,
            checklists=list_checklists(store),
            active_tab="vehicles",
        ), 400

    store.update_document(VEHICLES, vehicle_id, vehicle_to_dict(vehicle))
    flash(f"Updated vehicle {vehicle.name}", "success")
    return redirect(url_for("vehicles_list"))


@app.route("/vehicles/<vehicle_id>/delete", methods=["POST"])
@login_required
def vehicle_delete(vehicle_id: str):
    """Delete a vehicle unless it still has upcoming reservations."""
    store = get_store()
    vehicle = get_vehicle(store, vehicle_id)
    if vehicle is None:
        flash(f"Vehicle '{vehicle_id}' not found", "error")
        return redirect(url_for("vehicles_list"))

    if has_future_reservations(list_reservations(store, vehicle_id), current_time()):
        flash("Cannot delete the vehicle because it has active reservations.", "error")
        return redirect(url_for("vehicles_list"))

    store.delete_document(VEHICLES, vehicle_id)
    flash(f"Removed vehicle {vehicle.name}", "success")
    return redirect(url_for("vehicles_list"))


@app.route("/vehicles/<vehicle_id>/responses")
@login_required
def vehicle_responses(vehicle_id: str):
    """Checklist responses recorded for a vehicle, newest first."""
    store = get_store()
    vehicle = get_vehicle(store, vehicle_id)
    if vehicle is None:
        flash(f"Vehicle '{vehicle_id}' not found", "error")
        return redirect(url_for("vehicles_list"))

    return render_template(
        "responses.html",
        vehicle=vehicle,
        responses=list_responses_for_vehicle(store, vehicle_id),
        active_tab="vehicles",
    )


# =============================================================================
# Booking (public)
# =============================================================================


def render_booking_form(reservation: Reservation, status_code: int = 200):
    store = get_store()
    vehicles = list_vehicles(store)
    available, unavailable = [], []
    if reservation.start is not None:
        available, unavailable = vehicle_statuses(
            vehicles, list_reservations(store), reservation.start
        )
    return render_template(
        "book.html",
        reservation=reservation,
        vehicles=vehicles,
        available=available,
        unavailable=unavailable,
    ), status_code


@app.route("/book", methods=["GET"])
def book_form():
    """Booking request form. A departure query shows vehicle availability."""
    candidate = Reservation(None, request.args.get("vehicle_id", ""),
                            request.args.get("departure") or None, None)
    return render_booking_form(candidate)


@app.route("/book", methods=["POST"])
def book():
    """Validate and store a booking request, then show its receipt."""
    store = get_store()
    candidate = reservation_from_form(request.form)

    errors = check_booking(
        candidate,
        get_vehicle(store, candidate.vehicle_id),
        list_reservations(store),
        current_time(),
        buffer_minutes(),
    )
    if errors:
        app.logger.info("Rejected booking for vehicle %s: %s", candidate.vehicle_id, errors[0])
        for error in errors:
            flash(error, "error")
        return render_booking_form(candidate, 400)

    save_reservation(store, candidate)
    app.logger.info("Booked vehicle %s as reservation %s", candidate.vehicle_id, candidate.id)
    flash("Reservation created", "success")
    return redirect(url_for("receipt", reservation_id=candidate.id))


@app.route("/reservations/<reservation_id>/receipt")
def receipt(reservation_id: str):
    """Printable reservation receipt."""
    store = get_store()
    reservation = get_reservation(store, reservation_id)
    if reservation is None:
        flash(f"Reservation '{reservation_id}' not found", "error")
        return redirect(url_for("book_form"))

    vehicle = get_vehicle(store, reservation.vehicle_id)
    return render_template(
        "receipt.html",
        reservation=reservation,
        vehicle=vehicle,
        text=receipt_text(reservation, vehicle),
    )


# =============================================================================
# Reservation management
# =============================================================================

SORTABLE = {
    "departure": lambda r: (r.start is None, r.start or datetime.min),
    "arrival": lambda r: (r.end is None, r.end or datetime.min),
    "driver": lambda r: r.driver.lower(),
    "destination": lambda r: r.destination.lower(),
}


@app.route("/reservations")
@login_required
def reservations_list():
    store = get_store()
    sort = request.args.get("sort", "departure")
    reverse = request.args.get("dir") == "desc"
    reservations = list_reservations(store)
    reservations.sort(key=SORTABLE.get(sort, SORTABLE["departure"]), reverse=reverse)

    return render_template(
        "reservations.html",
        reservations=reservations,
        vehicles={v.id: v for v in list_vehicles(store)},
        sort=sort,
        reverse=reverse,
        active_tab="reservations",
    )


@app.route("/reservations/new", methods=["GET", "POST"])
@login_required
def reservation_new():
    store = get_store()
    if request.method == "GET":
        return render_template(
            "reservation_form.html",
            reservation=Reservation(None, "", None, None),
            vehicles=list_vehicles(store),
            active_tab="reservations",
        )

    candidate = reservation_from_form(request.form)
    errors = check_booking(
        candidate,
        get_vehicle(store, candidate.vehicle_id),
        list_reservations(store),
        current_time(),
        buffer_minutes(),
    )
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template(
            "reservation_form.html",
            reservation=candidate,
            vehicles=list_vehicles(store),
            active_tab="reservations",
        ), 400

    save_reservation(store, candidate)
    flash("Reservation created", "success")
    return redirect(url_for("reservations_list"))


@app.route("/reservations/<reservation_id>/edit", methods=["GET", "POST"])
@login_required
def reservation_edit(reservation_id: str):
    """Edit a reservation; it is never checked against its own prior version."""
    store = get_store()
    existing = get_reservation(store, reservation_id)
    if existing is None:
        flash(f"Reservation '{reservation_id}' not found", "error")
        return redirect(url_for("reservations_list"))

    if request.method == "GET":
        return render_template(
            "reservation_form.html",
            reservation=existing,
            vehicles=list_vehicles(store),
            active_tab="reservations",
        )

    candidate = reservation_from_form(request.form, reservation_id)
    candidate.completed = existing.completed
    candidate.cancelled = existing.cancelled
    errors = check_booking(
        candidate,
        get_vehicle(store, candidate.vehicle_id),
        list_reservations(store),
        current_time(),
        buffer_minutes(),
        exclude_id=reservation_id,
    )
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template(
            "reservation_form.html",
            reservation=candidate,
            vehicles=list_vehicles(store),
            active_tab="reservations",
        ), 400

    save_reservation(store, candidate)
    flash("Reservation updated", "success")
    return redirect(url_for("reservations_list"))


@app.route("/reservations/<reservation_id>/complete", methods=["POST"])
@login_required
def reservation_complete(reservation_id: str):
    store = get_store()
    try:
        store.update_document(RESERVATIONS, reservation_id, {"completed": True})
    except KeyError:
        flash(f"Reservation '{reservation_id}' not found", "error")
        return redirect(url_for("reservations_list"))

    flash("Reservation marked as completed", "success")
    return redirect(url_for("reservations_list"))


@app.route("/reservations/<reservation_id>/delete", methods=["POST"])
@login_required
def reservation_delete(reservation_id: str):
    """Delete a reservation from the management or history page."""
    back = "history" if request.form.get("next") == "history" else "reservations_list"
    try:
        get_store().delete_document(RESERVATIONS, reservation_id)
    except KeyError:
        flash(f"Reservation '{reservation_id}' not found", "error")
        return redirect(url_for(back))

    flash("Reservation deleted", "success")
    return redirect(url_for(back))


@app.route("/reservations/export.xlsx")
@login_required
def reservations_export():
    """Download all reservations as an Excel workbook."""
    store = get_store()
    reservations = list_reservations(store)
    reservations.sort(key=SORTABLE["departure"])
    data = reservations_workbook(reservations, {v.id: v for v in list_vehicles(store)})
    return send_file(
        BytesIO(data),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"reservations_{date.today().isoformat()}.xlsx",
    )


@app.route("/history")
@login_required
def history():
    """Every reservation, newest departure first."""
    store = get_store()
    reservations = list_reservations(store)
    reservations.sort(key=SORTABLE["departure"], reverse=True)
    return render_template(
        "history.html",
        reservations=reservations,
        vehicles={v.id: v for v in list_vehicles(store)},
        active_tab="history",
    )


# =============================================================================
# Drivers
# =============================================================================


@app.route("/drivers", methods=["GET", "POST"])
@login_required
def drivers():
    """Driver list with search; POST registers a new driver."""
    store = get_store()
    term = (request.args.get("q") or "").strip()

    if request.method == "POST":
        driver = parse_driver(request.form)
        errors = validate_driver(driver)
        if errors:
            for error in errors:
                flash(error, "error")
        else:
            driver.phone = format_phone(driver.phone)
            store.add_document(DRIVERS, driver_to_dict(driver))
            flash(f"Registered driver {driver.name}", "success")
            return redirect(url_for("drivers"))

    all_drivers = list_drivers(store)
    if term:
        all_drivers = [d for d in all_drivers if d.matches(term)]

    return render_template(
        "drivers.html",
        drivers=all_drivers,
        term=term,
        form=request.form if request.method == "POST" else {},
        active_tab="drivers",
    ), 400 if request.method == "POST" else 200


@app.route("/drivers/<driver_id>/edit", methods=["GET", "POST"])
@login_required
def driver_edit(driver_id: str):
    store = get_store()
    try:
        existing = parse_driver(store.get_document(DRIVERS, driver_id))
    except KeyError:
        flash(f"Driver '{driver_id}' not found", "error")
        return redirect(url_for("drivers"))

    if request.method == "GET":
        return render_template("driver_form.html", driver=existing, active_tab="drivers")

    driver = parse_driver({**request.form, "id": driver_id})
    errors = validate_driver(driver)
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template("driver_form.html", driver=driver, active_tab="drivers"), 400

    driver.phone = format_phone(driver.phone)
    store.update_document(DRIVERS, driver_id, driver_to_dict(driver))
    flash(f"Updated driver {driver.name}", "success")
    return redirect(url_for("drivers"))


@app.route("/drivers/<driver_id>/delete", methods=["POST"])
@login_required
def driver_delete(driver_id: str):
    try:
        get_store().delete_document(DRIVERS, driver_id)
    except KeyError:
        flash(f"Driver '{driver_id}' not found", "error")
        return redirect(url_for("drivers"))

    flash("Driver deleted", "success")
    return redirect(url_for("drivers"))


# =============================================================================
# Checklists
# =============================================================================


@app.route("/checklists")
@login_required
def checklists():
    return render_template(
        "checklists.html",
        checklists=list_checklists(get_store()),
        active_tab="checklists",
    )


def checklist_from_form(form, checklist_id=None) -> ChecklistTemplate:
    """Build a template from the editor form. Raises ValueError on bad lines."""
    return ChecklistTemplate(
        id=checklist_id,
        name=(form.get("name") or "").strip(),
        description=(form.get("description") or "").strip(),
        questions=parse_question_lines(form.get("questions") or ""),
    )


@app.route("/checklists/new", methods=["GET", "POST"])
@app.route("/checklists/<checklist_id>/edit", methods=["GET", "POST"])
@login_required
def checklist_edit(checklist_id=None):
    store = get_store()
    existing = None
    if checklist_id is not None:
        existing = get_checklist(store, checklist_id)
        if existing is None:
            flash(f"Checklist '{checklist_id}' not found", "error")
            return redirect(url_for("checklists"))

    if request.method == "GET":
        template = existing or ChecklistTemplate(id=None, name="")
        return render_template(
            "checklist_form.html",
            checklist=template,
            question_lines=questions_to_lines(template.questions),
            active_tab="checklists",
        )

    try:
        checklist = checklist_from_form(request.form, checklist_id)
        if not checklist.name:
            raise ValueError("Checklist name is required")
        if not checklist.questions:
            raise ValueError("Add at least one question")
    except ValueError as e:
        flash(str(e), "error")
        return render_template(
            "checklist_form.html",
            checklist=ChecklistTemplate(
                id=checklist_id,
                name=request.form.get("name") or "",
                description=request.form.get("description") or "",
            ),
            question_lines=request.form.get("questions") or "",
            active_tab="checklists",
        ), 400

    if checklist_id is None:
        store.add_document(CHECKLISTS, checklist_to_dict(checklist))
        flash(f"Created checklist {checklist.name}", "success")
    else:
        store.update_document(CHECKLISTS, checklist_id, checklist_to_dict(checklist))
        flash(f"Updated checklist {checklist.name}", "success")
    return redirect(url_for("checklists"))


@app.route("/checklists/<checklist_id>/delete", methods=["POST"])
@login_required
def checklist_delete(checklist_id: str):
    try:
        get_store().delete_document(CHECKLISTS, checklist_id)
    except KeyError:
        flash(f"Checklist '{checklist_id}' not found", "error")
        return redirect(url_for("checklists"))

    flash("Checklist deleted", "success")
    return redirect(url_for("checklists"))


# =============================================================================
# Driver self-service (public, one link per vehicle)
# =============================================================================


@app.route("/access/<vehicle_id>", methods=["GET"])
def access(vehicle_id: str):
    """Let a driver look up their reservations for this vehicle by registration."""
    store = get_store()
    vehicle = get_vehicle(store, vehicle_id)
    if vehicle is None:
        return render_template("access.html", vehicle=None, reservations=[]), 404

    registration = (request.args.get("registration") or "").strip()
    reservations = []
    if registration:
        reservations = find_reservations_for_driver(store, vehicle_id, registration)
        if not reservations:
            flash("No reservation found for this registration.", "info")

    return render_template(
        "access.html",
        vehicle=vehicle,
        registration=registration,
        reservations=reservations,
        responses={r.id: latest_response_for_reservation(store, r.id) for r in reservations},
    )


def _driver_reservation(store, vehicle_id: str, reservation_id: str):
    """The reservation if it belongs to the vehicle, else None."""
    reservation = get_reservation(store, reservation_id)
    if reservation is None or reservation.vehicle_id != vehicle_id:
        return None
    return reservation


@app.route("/access/<vehicle_id>/<reservation_id>/checklist", methods=["GET", "POST"])
def access_checklist(vehicle_id: str, reservation_id: str):
    """Answer the vehicle's checklist and confirm the departure."""
    store = get_store()
    vehicle = get_vehicle(store, vehicle_id)
    reservation = _driver_reservation(store, vehicle_id, reservation_id)
    if vehicle is None or reservation is None:
        flash("Reservation not found", "error")
        return redirect(url_for("access", vehicle_id=vehicle_id))

    checklist = get_checklist(store, vehicle.checklist_id) if vehicle.checklist_id else None
    if request.method == "GET":
        return render_template(
            "access_checklist.html",
            vehicle=vehicle,
            reservation=reservation,
            checklist=checklist,
            values={},
        )

    back = url_for("access", vehicle_id=vehicle_id, registration=reservation.registration)
    values = {
        key[len("answer_"):]: value
        for key, value in request.form.items()
        if key.startswith("answer_")
    }

    if checklist is None:
        # No checklist assigned: record a bare departure confirmation
        response = ChecklistResponse(
            id=None,
            vehicle_id=vehicle_id,
            reservation_id=reservation_id,
            checklist_id="",
            answered_at=current_time().isoformat(timespec="minutes"),
            responder_name=reservation.driver,
            responder_registration=reservation.registration,
            departure_confirmed=True,
        )
        save_checklist_response(store, response)
        flash("Departure confirmed", "success")
        return redirect(back)

    errors = validate_checklist_answers(checklist, values)
    if errors:
        for error in errors:
            flash(error, "error")
        return render_template(
            "access_checklist.html",
            vehicle=vehicle,
            reservation=reservation,
            checklist=checklist,
            values=values,
        ), 400

    answers = [
        ChecklistAnswer(
            question_id=q.id,
            question_text=q.text,
            answer_type=q.answer_type,
            value=(values.get(q.id) or "").strip(),
            note=(request.form.get(f"note_{q.id}") or "").strip() if q.allows_note else "",
        )
        for q in checklist.questions
    ]
    response = ChecklistResponse(
        id=None,
        vehicle_id=vehicle_id,
        reservation_id=reservation_id,
        checklist_id=checklist.id,
        answered_at=current_time().isoformat(timespec="minutes"),
        answers=answers,
        responder_name=reservation.driver,
        responder_registration=reservation.registration,
    )
    response_id = save_checklist_response(store, response)
    confirm_departure(store, response_id)
    flash("Checklist saved and departure confirmed", "success")
    return redirect(back)


@app.route("/access/<vehicle_id>/<reservation_id>/cancel", methods=["POST"])
def access_cancel(vehicle_id: str, reservation_id: str):
    """Driver-initiated cancellation."""
    store = get_store()
    reservation = _driver_reservation(store, vehicle_id, reservation_id)
    if reservation is None:
        flash("Reservation not found", "error")
        return redirect(url_for("access", vehicle_id=vehicle_id))

    store.update_document(RESERVATIONS, reservation_id, {"cancelled": True, "completed": False})
    flash("Reservation cancelled", "success")
    return redirect(url_for("access", vehicle_id=vehicle_id, registration=reservation.registration))


# =============================================================================
# Daily summary
# =============================================================================


@app.route("/summary")
@login_required
def summary():
    """Per-vehicle bookings and free windows for one day."""
    store = get_store()
    day_str = request.args.get("date") or date.today().isoformat()
    try:
        day = date.fromisoformat(day_str)
    except ValueError:
        flash(f"Invalid date '{day_str}'", "error")
        day = date.today()

    return render_template(
        "summary.html",
        summary=daily_summary(
            list_vehicles(store), list_reservations(store), day, buffer_minutes()
        ),
        active_tab="summary",
    )


if __name__ == "__main__":
    # Run with debug mode for development
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
