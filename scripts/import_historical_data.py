from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
BACKEND_DIR = BASE_DIR / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal, init_db  # noqa: E402
from app.services.importer import (  # noqa: E402
    DATA_TYPES,
    ImportFailed,
    import_records,
    parse_csv,
)


def _print_progress(number: int, total: int, size: int) -> None:
    print(f"Importing batch {number}/{total} ({size} records)...")


def main() -> None:
    parser = argparse.ArgumentParser(description="Import historical football data from a CSV file.")
    parser.add_argument("--file", "-f", required=True, type=Path, help="CSV file to import")
    parser.add_argument("--type", "-t", required=True, choices=DATA_TYPES, help="Data type")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, write nothing")
    parser.add_argument(
        "--no-skip-duplicates",
        action="store_true",
        help="Update existing rows instead of skipping them",
    )
    args = parser.parse_args()

    if not args.file.exists():
        print(f"File not found: {args.file}")
        raise SystemExit(1)

    records = parse_csv(args.file.read_text(encoding="utf-8"))
    print(f"Parsed {len(records)} records from {args.file}")
    if records:
        print("Sample record:")
        print(json.dumps(records[0], indent=2, default=str))

    init_db()
    db = SessionLocal()
    try:
        result = import_records(
            db,
            args.type,
            records,
            dry_run=args.dry_run,
            skip_duplicates=not args.no_skip_duplicates,
            fail_fast=True,
            progress=_print_progress,
        )
    except ImportFailed as exc:
        print(f"Import failed: {exc}")
        raise SystemExit(1)
    finally:
        db.close()

    print(result.message)
    print(f"Records: {result.records}")
    for error in result.errors:
        print(f"  - {error}")
    if result.rejected:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
