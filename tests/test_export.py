#!/usr/bin/env python3
"""Tests for the Excel reservation export."""

from io import BytesIO

from openpyxl import load_workbook

from fleet import Reservation, Vehicle
from fleet.export import HEADERS, reservations_workbook


class TestReservationsWorkbook:
    """Tests for reservations_workbook."""

    def test_header_and_rows(self):
        reservations = [
            Reservation("r1", "v1", "2030-05-06T08:00", "2030-05-06T12:00",
                        driver="Ana", seats=2, completed=True),
            Reservation("r2", "gone", "2030-05-07T08:00", "2030-05-07T12:00", driver="Bruno"),
        ]
        data = reservations_workbook(reservations, {"v1": Vehicle("v1", "ABC1234", "Gol")})

        ws = load_workbook(BytesIO(data)).active
        assert ws.title == "Reservations"
        rows = list(ws.iter_rows(values_only=True))
        assert list(rows[0]) == HEADERS
        assert rows[1][:4] == ("06/05/2030 08:00", "06/05/2030 12:00", "Gol - ABC1234", "Ana")
        assert rows[1][7] == 2
        assert rows[1][8] == "Completed"
        assert rows[2][2] == "Vehicle not found"

    def test_empty_list_has_header_only(self):
        ws = load_workbook(BytesIO(reservations_workbook([], {}))).active
        assert ws.max_row == 1
