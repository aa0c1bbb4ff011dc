"""Excel export of reservation lists."""

import io
from typing import Iterable, Mapping

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from .reports import format_instant
from .reservation import Reservation
from .vehicle import Vehicle

HEADERS = [
    "Departure",
    "Arrival",
    "Vehicle",
    "Driver",
    "Registration",
    "Phone",
    "Destination",
    "Seats",
    "Status",
]


def reservations_workbook(
    reservations: Iterable[Reservation], vehicles: Mapping[str, Vehicle]
) -> bytes:
    """Build an .xlsx workbook of reservations and return its bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Reservations"

    header_fill = PatternFill(start_color="16A34A", end_color="16A34A", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    for col, h in enumerate(HEADERS, 1):
        cell = ws.cell(row=1, column=col, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for i, r in enumerate(reservations, 2):
        vehicle = vehicles.get(r.vehicle_id)
        ws.cell(row=i, column=1, value=format_instant(r.start))
        ws.cell(row=i, column=2, value=format_instant(r.end))
        ws.cell(row=i, column=3, value=vehicle.name if vehicle else "Vehicle not found")
        ws.cell(row=i, column=4, value=r.driver)
        ws.cell(row=i, column=5, value=r.registration)
        ws.cell(row=i, column=6, value=r.phone)
        ws.cell(row=i, column=7, value=r.destination)
        ws.cell(row=i, column=8, value=r.seats)
        ws.cell(row=i, column=9, value=r.status_label)

    # Auto-width columns
    for col in ws.columns:
        max_len = max((len(str(cell.value or "")) for cell in col), default=12)
        ws.column_dimensions[col[0].column_letter].width = min(max_len + 3, 40)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
