#!/usr/bin/env python3
"""
Split a units JSON export into per-unit YAML files.

This script reads a JSON list of unit records (the community units.json
format) and writes one YAML file per unit into data/units/.

Usage:
    python scripts/split_units_json.py resources/units.json

The script will:
1. Validate every record against the Unit model
2. Write data/units/<unit-id>.yaml for each valid record
3. Skip units that already have YAML files (unless --overwrite is passed)
"""

import argparse
import json
from datetime import date
from pathlib import Path

import yaml
from pydantic import ValidationError

from assault_planner.models import Unit, create_unit_id

# Key order in generated files
FIELD_ORDER = ["name", "rank", "limited", "tier", "tags", "join", "stat", "synergy"]


def to_yaml_record(entry: dict) -> dict:
    """Normalize a raw record: known keys in a fixed order, empty values dropped."""
    record = {}
    for key in FIELD_ORDER:
        value = entry.get(key)
        if value is None or value == [] or value == {}:
            continue
        if key == "synergy":
            value = {k: v for k, v in value.items() if v}
            if not value:
                continue
        record[key] = value
    return record


def generate_yaml(entry: dict) -> str:
    """Generate YAML content for one unit record."""
    header = [
        f"# Unit: {entry['name']}",
        f"# Generated from JSON on {date.today().isoformat()}",
        "",
    ]
    body = yaml.safe_dump(to_yaml_record(entry), sort_keys=False, allow_unicode=True)
    return "\n".join(header) + body


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Split a units JSON list into YAML files")
    parser.add_argument("source", type=Path, help="JSON file containing a list of units")
    parser.add_argument("--output-dir", type=Path, default=Path(__file__).parent.parent / "data" / "units",
                        help="Directory for the YAML files")
    parser.add_argument("--overwrite", action="store_true",
                        help="Overwrite existing YAML files")
    parser.add_argument("--dry-run", action="store_true",
                        help="Print what would be done without writing files")
    args = parser.parse_args(argv)

    if not args.source.exists():
        print(f"ERROR: JSON file not found: {args.source}")
        return 1

    with open(args.source, encoding="utf-8") as f:
        entries = json.load(f)

    print(f"Found {len(entries)} units in JSON")
    args.output_dir.mkdir(parents=True, exist_ok=True)

    created = 0
    skipped = 0
    errors = 0

    for entry in entries:
        name = str(entry.get("name", "")).strip()
        if not name:
            continue

        unit_id = create_unit_id(name)
        output_path = args.output_dir / f"{unit_id}.yaml"

        if output_path.exists() and not args.overwrite:
            print(f"  SKIP: {unit_id} (already exists)")
            skipped += 1
            continue

        try:
            Unit.model_validate(entry)
        except ValidationError as e:
            print(f"  ERROR: {unit_id} - {e.errors()[0]['msg']}")
            errors += 1
            continue

        if args.dry_run:
            print(f"  WOULD CREATE: {unit_id}")
        else:
            output_path.write_text(generate_yaml(entry), encoding="utf-8")
            print(f"  CREATED: {unit_id}")
        created += 1

    print("\nSummary:")
    print(f"  Created: {created}")
    print(f"  Skipped: {skipped}")
    print(f"  Errors: {errors}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
