from __future__ import annotations

import argparse
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
BACKEND_DIR = BASE_DIR / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal, init_db  # noqa: E402
from app.services.importer import ImportFailed, import_players_by_team_name, parse_csv  # noqa: E402
from app.services.validation import ValidationError  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Import players, resolving their team by name.")
    parser.add_argument("--file", "-f", required=True, type=Path, help="CSV file to import")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, write nothing")
    args = parser.parse_args()

    if not args.file.exists():
        print(f"File not found: {args.file}")
        raise SystemExit(1)

    records = parse_csv(args.file.read_text(encoding="utf-8"))
    print(f"Parsed {len(records)} records from {args.file}")

    init_db()
    db = SessionLocal()
    try:
        result = import_players_by_team_name(db, records, dry_run=args.dry_run, fail_fast=True)
    except (ImportFailed, ValidationError) as exc:
        print(f"Import failed: {exc}")
        raise SystemExit(1)
    finally:
        db.close()

    print(result.message)
    for error in result.errors:
        print(f"  - {error}")
    if result.rejected:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
