#!/usr/bin/env python3
"""Validate fleet collection YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_collection_file(filepath: Path, schema: dict) -> list[str]:
    """
    Validate a single collection file. Returns list of errors.

    The file name (without extension) names the collection.
    """
    collection = filepath.stem
    if collection not in schema.get("properties", {}):
        return [f"Unknown collection '{collection}'"]

    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance={collection: data or {}}, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        # Drop the leading collection name from the path
        path = list(e.path)[1:]
        if path:
            errors.append(f"  at path: {'.'.join(str(p) for p in path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate all collection YAML files in a data directory."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()
    data_dir = Path(argv[0]) if argv else Path(__file__).parent / "data"

    if not data_dir.exists():
        print(f"Error: data directory not found: {data_dir}")
        return 1

    yaml_files = list(data_dir.glob("*.yaml")) + list(data_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {data_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_collection_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
