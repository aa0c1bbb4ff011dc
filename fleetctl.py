#!/usr/bin/env python3
"""
Unified CLI for fleet vehicle scheduling.

Commands:
  vehicles      - List the fleet
  reservations  - List reservations
  check         - Check whether a vehicle is free for an interval
  book          - Create a reservation
  complete      - Mark a reservation as completed
  summary       - Show per-vehicle bookings and free windows for a day
  receipt       - Print a reservation receipt
  add-user      - Create an administrator login
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from tabulate import tabulate
from typing import Dict, List, Optional

from werkzeug.security import generate_password_hash

from fleet import TURNAROUND_MINUTES, DocumentStore, Reservation, Vehicle, check_conflict
from fleet.loader import (
    get_reservation,
    get_vehicle,
    list_reservations,
    list_vehicles,
    save_reservation,
)
from fleet.reports import DailySummary, daily_summary, format_instant, receipt_text
from fleet.store import RESERVATIONS, USERS
from fleet.validation import check_booking, conflict_message

# =============================================================================
# Formatting helpers
# =============================================================================


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def vehicle_label(vehicles: Dict[str, Vehicle], vehicle_id: str) -> str:
    """Vehicle name for display, tolerating dangling ids."""
    vehicle = vehicles.get(vehicle_id)
    return vehicle.name if vehicle else f"? ({vehicle_id})"


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    return [
        [v.id, v.plate, v.model, "no" if v.disabled else "yes", v.checklist_id or "-"]
        for v in vehicles
    ]


def make_reservation_table(
    reservations: List[Reservation], vehicles: Dict[str, Vehicle]
) -> List[List[str]]:
    """Convert reservations to table rows."""
    rows = []
    for r in reservations:
        rows.append(
            [
                r.id,
                vehicle_label(vehicles, r.vehicle_id),
                format_instant(r.start),
                format_instant(r.end),
                r.driver or "-",
                truncate(r.destination),
                r.status_label,
            ]
        )
    return rows


def make_summary_table(summary: DailySummary) -> List[List[str]]:
    """One row per scheduled vehicle with its bookings and free windows."""
    rows = []
    for row in summary.scheduled:
        bookings = ", ".join(
            f"{r.start.strftime('%H:%M')}-{r.end.strftime('%H:%M')} {r.driver}".strip()
            for r in row.reservations
        )
        rows.append([row.vehicle.name, bookings, row.availability])
    return rows


def _parse_day(value: Optional[str]) -> date:
    return date.fromisoformat(value) if value else date.today()


def _store(args) -> DocumentStore:
    return DocumentStore(args.data_dir)


# =============================================================================
# Vehicles / reservations commands
# =============================================================================


def cmd_vehicles(args):
    """List the fleet."""
    vehicles = sorted(list_vehicles(_store(args)), key=lambda v: v.model.lower())
    if not vehicles:
        print("No vehicles found.")
        return 0

    headers = ["ID", "Plate", "Model", "Available", "Checklist"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_reservations(args):
    """List reservations, active ones only unless --all is given."""
    store = _store(args)
    vehicles = {v.id: v for v in list_vehicles(store)}
    reservations = list_reservations(store, args.vehicle)

    if not args.all:
        reservations = [r for r in reservations if r.is_active]
    reservations.sort(key=lambda r: (r.start is None, r.start or datetime.min))

    if not reservations:
        print("No reservations found.")
        return 0

    headers = ["ID", "Vehicle", "Departure", "Arrival", "Driver", "Destination", "Status"]
    print(
        tabulate(
            make_reservation_table(reservations, vehicles),
            headers=headers,
            tablefmt="simple",
        )
    )
    return 0


# =============================================================================
# Check / book commands
# =============================================================================


def cmd_check(args):
    """Check whether a vehicle is free for an interval."""
    store = _store(args)
    vehicle = get_vehicle(store, args.vehicle_id)
    if vehicle is None:
        print(f"Error: Unknown vehicle '{args.vehicle_id}'")
        return 1

    candidate = Reservation(None, vehicle.id, args.departure, args.arrival)
    if not candidate.is_valid:
        print("Error: Departure and arrival must be valid instants with departure first")
        return 1

    verdict = check_conflict(
        candidate,
        list_reservations(store, vehicle.id),
        args.buffer,
        exclude_id=args.exclude,
    )

    print(f"Vehicle: {vehicle.name}")
    print(f"Interval: {format_instant(candidate.start)} -> {format_instant(candidate.end)}")
    if verdict.is_available:
        print("Available")
        return 0

    print("Unavailable")
    print(conflict_message(verdict.blocking, verdict.until, args.buffer))
    return 1


def cmd_book(args):
    """Create a reservation after validation and the conflict check."""
    store = _store(args)
    vehicle = get_vehicle(store, args.vehicle_id)
    if vehicle is None:
        print(f"Error: Unknown vehicle '{args.vehicle_id}'")
        return 1

    candidate = Reservation(
        None,
        vehicle.id,
        args.departure,
        args.arrival,
        driver=args.driver,
        registration=args.registration,
        phone=args.phone,
        destination=args.destination,
        notes=args.notes or "",
        seats=args.seats,
    )
    errors = check_booking(
        candidate, vehicle, list_reservations(store), datetime.now(), args.buffer
    )
    if errors:
        for error in errors:
            print(f"Error: {error}")
        return 1

    # Show what will be added
    print(f"Booking {vehicle.name}:")
    print(f"  Departure:   {format_instant(candidate.start)}")
    print(f"  Arrival:     {format_instant(candidate.end)}")
    print(f"  Driver:      {candidate.driver} ({candidate.registration})")
    print(f"  Destination: {candidate.destination}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    reservation_id = save_reservation(store, candidate)
    print(f"Reservation saved: {reservation_id}")
    return 0


def cmd_complete(args):
    """Mark a reservation as completed."""
    store = _store(args)
    reservation = get_reservation(store, args.reservation_id)
    if reservation is None:
        print(f"Error: Unknown reservation '{args.reservation_id}'")
        return 1

    if reservation.completed:
        print("Reservation is already completed.")
        return 0

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.update_document(RESERVATIONS, reservation.id, {"completed": True})
    print("Reservation marked as completed.")
    return 0


# =============================================================================
# Summary / receipt commands
# =============================================================================


def cmd_summary(args):
    """Show per-vehicle bookings and free windows for a day."""
    try:
        day = _parse_day(args.date)
    except ValueError:
        print(f"Error: Invalid date '{args.date}' (expected YYYY-MM-DD)")
        return 1

    store = _store(args)
    summary = daily_summary(
        list_vehicles(store), list_reservations(store), day, args.buffer
    )

    print(f"Summary for {day.strftime('%d/%m/%Y')}")
    print(f"Vehicles: {summary.total_vehicles}")
    print()

    if summary.scheduled:
        print("SCHEDULED:")
        headers = ["Vehicle", "Reservations", "Availability"]
        print(tabulate(make_summary_table(summary), headers=headers, tablefmt="simple"))
        print()

    if summary.free:
        print(f"FREE ALL DAY ({len(summary.free)}):")
        for row in summary.free:
            print(f"  {row.vehicle.name}")
        print()

    return 0


def cmd_receipt(args):
    """Print a reservation receipt."""
    store = _store(args)
    reservation = get_reservation(store, args.reservation_id)
    if reservation is None:
        print(f"Error: Unknown reservation '{args.reservation_id}'")
        return 1

    print(receipt_text(reservation, get_vehicle(store, reservation.vehicle_id)))
    return 0


# =============================================================================
# Users command
# =============================================================================


def cmd_add_user(args):
    """Create an administrator login."""
    store = _store(args)
    email = args.email.strip().lower()
    if store.query_documents(USERS, "email", email):
        print(f"Error: User '{email}' already exists")
        return 1

    store.add_document(
        USERS, {"email": email, "passwordHash": generate_password_hash(args.password)}
    )
    print(f"User {email} created.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet vehicle scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data vehicles
  %(prog)s data reservations --all
  %(prog)s data check 3f2a... 2025-03-10T08:00 2025-03-10T12:00
  %(prog)s data book 3f2a... 2025-03-10T08:00 2025-03-10T12:00 \\
      --driver "Ana Souza" --registration 4471 --phone 11912345678 \\
      --destination "City Hall"
  %(prog)s data summary --date 2025-03-10
  %(prog)s data add-user admin@example.com s3cret
""",
    )
    parser.add_argument(
        "data_dir",
        type=Path,
        help="Path to the data directory holding the collection YAML files",
    )
    parser.add_argument(
        "--buffer",
        type=int,
        default=TURNAROUND_MINUTES,
        help=f"Turnaround minutes before a pickup (default: {TURNAROUND_MINUTES})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List the fleet")

    reservations_parser = subparsers.add_parser("reservations", help="List reservations")
    reservations_parser.add_argument(
        "--vehicle",
        type=str,
        help="Only show reservations for this vehicle id",
    )
    reservations_parser.add_argument(
        "--all",
        action="store_true",
        help="Include completed and cancelled reservations",
    )

    check_parser = subparsers.add_parser(
        "check", help="Check whether a vehicle is free for an interval"
    )
    check_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    check_parser.add_argument("departure", type=str, help="Departure (YYYY-MM-DDTHH:MM)")
    check_parser.add_argument("arrival", type=str, help="Arrival (YYYY-MM-DDTHH:MM)")
    check_parser.add_argument(
        "--exclude",
        type=str,
        help="Reservation id to ignore (when rescheduling it)",
    )

    book_parser = subparsers.add_parser("book", help="Create a reservation")
    book_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    book_parser.add_argument("departure", type=str, help="Departure (YYYY-MM-DDTHH:MM)")
    book_parser.add_argument("arrival", type=str, help="Arrival (YYYY-MM-DDTHH:MM)")
    book_parser.add_argument("--driver", type=str, required=True, help="Driver name")
    book_parser.add_argument(
        "--registration", type=str, required=True, help="Driver registration number"
    )
    book_parser.add_argument("--phone", type=str, required=True, help="Driver phone")
    book_parser.add_argument(
        "--destination", type=str, required=True, help="Trip destination"
    )
    book_parser.add_argument("--seats", type=int, default=1, help="Seats needed (default: 1)")
    book_parser.add_argument("--notes", type=str, help="Notes about the trip")
    book_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be booked without saving",
    )

    complete_parser = subparsers.add_parser(
        "complete", help="Mark a reservation as completed"
    )
    complete_parser.add_argument("reservation_id", type=str, help="Reservation id")
    complete_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    summary_parser = subparsers.add_parser(
        "summary", help="Show per-vehicle bookings and free windows for a day"
    )
    summary_parser.add_argument(
        "--date",
        type=str,
        help="Day in YYYY-MM-DD format (default: today)",
    )

    receipt_parser = subparsers.add_parser("receipt", help="Print a reservation receipt")
    receipt_parser.add_argument("reservation_id", type=str, help="Reservation id")

    user_parser = subparsers.add_parser("add-user", help="Create an administrator login")
    user_parser.add_argument("email", type=str, help="Login email")
    user_parser.add_argument("password", type=str, help="Login password")

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "reservations": cmd_reservations,
    "check": cmd_check,
    "book": cmd_book,
    "complete": cmd_complete,
    "summary": cmd_summary,
    "receipt": cmd_receipt,
    "add-user": cmd_add_user,
}


def main(argv=None):
    args = build_parser().parse_args(argv)

    # add-user may create the data directory; everything else needs it
    if args.command != "add-user" and not args.data_dir.is_dir():
        print(f"Error: Data directory not found: {args.data_dir}")
        return 1

    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
