#!/usr/bin/env python3
"""Validate fleet YAML snapshots against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fleet.config import fleet_file


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given fleet files (default: $FLEET_FILE or fleet.yaml)."""
    schema = load_schema()
    paths = [Path(p) for p in (argv if argv is not None else sys.argv[1:])]
    if not paths:
        paths = [fleet_file()]

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"FAIL: {filepath.name}")
            print(f"  File not found: {filepath}")
            all_valid = False
            continue
        errors = validate_fleet_file(filepath, schema)
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
