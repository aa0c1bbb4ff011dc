#!/usr/bin/env python3
"""Tests for Vehicle and Driver records."""

from fleet import Driver, Vehicle


class TestVehicle:
    """Tests for Vehicle."""

    def test_name_combines_model_and_plate(self):
        assert Vehicle("v1", "ABC1234", "Gol").name == "Gol - ABC1234"

    def test_enabled_by_default(self):
        vehicle = Vehicle("v1", "ABC1234", "Gol")
        assert vehicle.disabled is False
        assert vehicle.checklist_id is None

    def test_none_disabled_is_false(self):
        assert Vehicle("v1", "ABC1234", "Gol", disabled=None).disabled is False


class TestDriverMatches:
    """Tests for Driver.matches search."""

    def driver(self):
        return Driver(
            "d1", "Ana Souza", "4471",
            department="Health", role="Nurse", phone="(11) 91234-5678",
        )

    def test_matches_name_case_insensitive(self):
        assert self.driver().matches("ana")
        assert self.driver().matches("SOUZA")

    def test_matches_other_fields(self):
        driver = self.driver()
        assert driver.matches("447")
        assert driver.matches("health")
        assert driver.matches("nurse")
        assert driver.matches("91234")

    def test_no_match(self):
        assert not self.driver().matches("carlos")

    def test_empty_fields_tolerated(self):
        assert not Driver("d1", "Ana", "1", phone=None).matches("xyz")
