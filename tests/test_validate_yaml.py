#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from validate_yaml import load_schema, main, validate_collection_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_every_collection(self):
        properties = load_schema()["properties"]
        for name in ("vehicles", "reservations", "drivers", "checklists",
                     "checklist_responses", "users"):
            assert name in properties


class TestValidateCollectionFile:
    """Tests for validate_collection_file function."""

    def test_valid_reservations_returns_no_errors(self, tmp_path):
        path = tmp_path / "reservations.yaml"
        path.write_text("""
0f8e2a:
  vehicleId: 9b1c
  departure: '2030-05-06T08:00'
  arrival: '2030-05-06T12:00'
  driver: Ana Souza
  registration: '4471'
  phone: (11) 91234-5678
  destination: City Hall
  seats: 2
  notes: ''
  completed: false
  cancelled: false
""")
        assert validate_collection_file(path, load_schema()) == []

    def test_empty_file_is_valid(self, tmp_path):
        path = tmp_path / "vehicles.yaml"
        path.write_text("")
        assert validate_collection_file(path, load_schema()) == []

    def test_bad_plate_reports_path(self, tmp_path):
        path = tmp_path / "vehicles.yaml"
        path.write_text("""
v1:
  plate: abc-12
  model: Gol
""")
        errors = validate_collection_file(path, load_schema())
        assert errors[0].startswith("Schema validation error:")
        assert errors[1] == "  at path: v1.plate"

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "reservations.yaml"
        path.write_text("""
r1:
  vehicleId: v1
  departure: '2030-05-06T08:00'
""")
        errors = validate_collection_file(path, load_schema())
        assert any("arrival" in e for e in errors)

    def test_unknown_answer_type(self, tmp_path):
        path = tmp_path / "checklists.yaml"
        path.write_text("""
c1:
  name: Daily
  questions:
    - id: '0'
      text: Paint colour
      answerType: colour
""")
        assert validate_collection_file(path, load_schema()) != []

    def test_unknown_collection(self, tmp_path):
        path = tmp_path / "spaceships.yaml"
        path.write_text("{}")
        assert validate_collection_file(path, load_schema()) == [
            "Unknown collection 'spaceships'"
        ]

    def test_yaml_parse_error(self, tmp_path):
        path = tmp_path / "drivers.yaml"
        path.write_text("d1: [unclosed")
        errors = validate_collection_file(path, load_schema())
        assert errors[0].startswith("YAML parse error")


class TestMain:
    """Tests for validating a whole data directory."""

    def test_all_ok(self, tmp_path, capsys):
        (tmp_path / "vehicles.yaml").write_text("v1:\n  plate: ABC1234\n  model: Gol\n")
        assert main([str(tmp_path)]) == 0
        assert "OK: vehicles.yaml" in capsys.readouterr().out

    def test_failure_sets_exit_code(self, tmp_path, capsys):
        (tmp_path / "vehicles.yaml").write_text("v1:\n  model: Gol\n")
        assert main([str(tmp_path)]) == 1
        assert "FAIL: vehicles.yaml" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path):
        assert main([str(tmp_path / "nope")]) == 1
