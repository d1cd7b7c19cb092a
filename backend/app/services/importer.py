"""CSV import for teams, players, matches and per-match player stats.

Records go through three stages: parse (CSV text to raw string records),
validate (required fields, then column coercion with pandas) and write
(batched upserts). Dry runs stop after validation and never touch the
write path.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from pandas.errors import EmptyDataError
from sqlalchemy import Table, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team
from app.services.action_log import log_action
from app.services.teams import TEAM_COLOR_MAP, DEFAULT_TEAM_COLOR
from app.services.validation import TEAM_TYPES, ValidationError, missing_required_fields

logger = logging.getLogger(__name__)

DATA_TYPES = ("teams", "players", "matches", "player_stats")

REQUIRED_FIELDS: Dict[str, tuple[str, ...]] = {
    "teams": ("name",),
    "players": ("name",),
    "matches": ("match_date", "home_team_id", "away_team_id"),
    "player_stats": ("player_id", "match_id", "team_id"),
}

TABLES: Dict[str, Table] = {
    "teams": Team.__table__,
    "players": Player.__table__,
    "matches": Match.__table__,
    "player_stats": PlayerMatchStat.__table__,
}

CONFLICT_KEYS: Dict[str, list[str]] = {
    "teams": ["external_id"],
    "players": ["external_id"],
    "matches": ["external_id"],
    "player_stats": ["player_id", "match_id"],
}

# Used instead of external_id for rows that do not carry one.
NATURAL_KEYS: Dict[str, list[str]] = {
    "teams": ["name"],
    "players": ["name", "team_id"],
}

COLUMN_ALIASES = {
    "birth_date": ["birth_date", "date_of_birth"],
    "dominant_foot": ["dominant_foot", "preferred_foot"],
}

POSITION_MAP = {
    "G": "Goalkeeper",
    "GK": "Goalkeeper",
    "GOALKEEPER": "Goalkeeper",
    "D": "Defender",
    "DF": "Defender",
    "DEF": "Defender",
    "DEFENDER": "Defender",
    "M": "Midfielder",
    "MF": "Midfielder",
    "MID": "Midfielder",
    "MIDFIELDER": "Midfielder",
    "F": "Forward",
    "FW": "Forward",
    "FWD": "Forward",
    "ST": "Forward",
    "FORWARD": "Forward",
}

TRUTHY = {"1", "true", "t", "yes", "y"}
FALSY = {"0", "false", "f", "no", "n"}

STAT_COUNTERS = ("goals", "assists", "own_goals", "minutes_played", "yellow_cards", "red_cards")
STAT_OPTIONAL = ("shots_total", "shots_on_target", "passes", "key_passes", "tackles", "interceptions")

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

Progress = Callable[[int, int, int], None]
KeyGroup = tuple[List[dict], List[str]]


class ImportFailed(Exception):
    """Raised by fail-fast imports when a write step fails."""


@dataclass
class ImportResult:
    message: str
    records: int
    errors: List[str] = field(default_factory=list)
    rejected: bool = False

    def as_dict(self) -> dict:
        return {"message": self.message, "records": self.records, "errors": list(self.errors)}


def parse_csv(data: Optional[str], comments: bool = False) -> List[Dict[str, str]]:
    """Parse CSV text with a header row into trimmed string records."""
    if not data or not data.strip():
        return []
    if comments:
        data = "\n".join(line for line in data.splitlines() if not line.lstrip().startswith("#"))
    try:
        df = pd.read_csv(
            io.StringIO(data),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except EmptyDataError:
        return []
    if df.empty:
        return []
    df.columns = [str(column).strip() for column in df.columns]
    df = df.fillna("").apply(lambda column: column.str.strip())
    df = df[~(df == "").all(axis=1)]
    return df.to_dict("records")


def to_int64_nullable(s: pd.Series) -> pd.Series:
    num = pd.to_numeric(s, errors="coerce")
    num = num.where(num.isna() | (num % 1 == 0))
    return num.astype("Int64")


def to_float64(s: pd.Series) -> pd.Series:
    return pd.to_numeric(s, errors="coerce").astype("float64")


def to_bool(s: pd.Series, default: bool) -> pd.Series:
    if s.dtype == bool:
        return s
    x = s.astype("string").str.strip().str.lower()
    out = pd.Series(default, index=s.index, dtype="boolean")
    out[x.isin(TRUTHY).fillna(False)] = True
    out[x.isin(FALSY).fillna(False)] = False
    return out


def to_text(s: pd.Series, default: Optional[str] = None) -> pd.Series:
    x = s.astype("string").str.strip().replace("", pd.NA)
    if default is not None:
        x = x.fillna(default)
    return x


def to_datetime(s: pd.Series) -> pd.Series:
    return pd.to_datetime(to_text(s), errors="coerce", format="mixed")


def normalize_position(s: pd.Series) -> pd.Series:
    x = to_text(s)
    mapped = x.str.upper().map(POSITION_MAP)
    return mapped.fillna(x)


def coalesce_columns(df: pd.DataFrame, target: str, candidates: list[str]) -> pd.DataFrame:
    existing = [c for c in candidates if c in df.columns]
    if not existing:
        return df
    work = df.copy()
    if target not in work.columns:
        work[target] = pd.NA
    for c in existing:
        if c == target:
            continue
        current = work[target].replace("", pd.NA)
        work[target] = current.combine_first(work[c])
    drop_cols = [c for c in existing if c != target]
    return work.drop(columns=drop_cols, errors="ignore")


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series("", index=df.index, dtype="object")


def _coerce_frame(data_type: str, df: pd.DataFrame) -> pd.DataFrame:
    for target, candidates in COLUMN_ALIASES.items():
        df = coalesce_columns(df, target, candidates)

    out = pd.DataFrame(index=df.index)
    if data_type == "teams":
        out["name"] = to_text(_column(df, "name"))
        out["primary_shirt_color"] = to_text(_column(df, "primary_shirt_color"), "#000000")
        out["secondary_shirt_color"] = to_text(_column(df, "secondary_shirt_color"))
        out["team_type"] = to_text(_column(df, "team_type"), "internal")
        out["founded_year"] = to_int64_nullable(_column(df, "founded_year"))
        out["description"] = to_text(_column(df, "description"))
        out["logo_url"] = to_text(_column(df, "logo_url"))
        out["is_active"] = to_bool(_column(df, "is_active"), default=True)
    elif data_type == "players":
        out["name"] = to_text(_column(df, "name"))
        out["position"] = normalize_position(_column(df, "position"))
        for name in ("team_id", "jersey_number", "height_cm", "weight_kg"):
            out[name] = to_int64_nullable(_column(df, name))
        out["dominant_foot"] = to_text(_column(df, "dominant_foot"))
        out["birth_date"] = to_datetime(_column(df, "birth_date")).dt.date
        out["is_active"] = to_bool(_column(df, "is_active"), default=True)
    elif data_type == "matches":
        out["match_date"] = to_datetime(_column(df, "match_date"))
        for name in ("home_team_id", "away_team_id", "home_score", "away_score", "attendance"):
            out[name] = to_int64_nullable(_column(df, name))
        out["venue"] = to_text(_column(df, "venue"), "Unknown")
        out["match_type"] = to_text(_column(df, "match_type"), "internal_friendly")
        for name in ("weather_conditions", "referee", "notes"):
            out[name] = to_text(_column(df, name))
    elif data_type == "player_stats":
        for name in ("player_id", "match_id", "team_id"):
            out[name] = to_int64_nullable(_column(df, name))
        for name in STAT_COUNTERS:
            out[name] = to_int64_nullable(_column(df, name)).fillna(0)
        for name in STAT_OPTIONAL:
            out[name] = to_int64_nullable(_column(df, name))
        out["xg"] = to_float64(_column(df, "xg"))
        out["clean_sheet"] = to_bool(_column(df, "clean_sheet"), default=False)
    else:
        raise ValidationError([f"invalid_data_type: {data_type}"])
    out["external_id"] = to_text(_column(df, "external_id"))
    return out


def _clean(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item"):
        return value.item()
    return value


def coerce_records(data_type: str, records: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not records:
        return []
    frame = _coerce_frame(data_type, pd.DataFrame.from_records(list(records)))
    return [
        {key: _clean(value) for key, value in row.items()}
        for row in frame.astype(object).to_dict("records")
    ]


def validate_records(
    data_type: str,
    records: Sequence[Dict[str, Any]],
) -> tuple[List[Dict[str, Any]], List[str]]:
    """Return (coerced valid rows, per-record error messages)."""
    if data_type not in DATA_TYPES:
        raise ValidationError([f"invalid_data_type: {data_type}"])
    coerced = coerce_records(data_type, records)
    rows: List[Dict[str, Any]] = []
    errors: List[str] = []
    for index, row in enumerate(coerced):
        missing = missing_required_fields(row, REQUIRED_FIELDS[data_type])
        if missing:
            errors.append(f"Record {index + 1}: Missing required field '{missing[0]}'")
            continue
        rows.append(row)
    return rows, errors


def chunked(rows: Sequence[dict], size: int) -> List[Sequence[dict]]:
    return [rows[start : start + size] for start in range(0, len(rows), size)]


def dedupe_rows(rows: Iterable[dict], keys: Sequence[str], keep_first: bool) -> List[dict]:
    out: List[dict] = []
    seen: Dict[tuple, int] = {}
    for row in rows:
        key = tuple(row.get(name) for name in keys)
        if any(value is None for value in key):
            out.append(row)
            continue
        if key in seen:
            if not keep_first:
                out[seen[key]] = row
            continue
        seen[key] = len(out)
        out.append(row)
    return out


def upsert_rows(
    db: Session,
    table: Table,
    rows: Sequence[dict],
    conflict_keys: Sequence[str],
    skip_duplicates: bool,
) -> None:
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"upsert_not_supported dialect={dialect}")
    stmt = insert(table)
    update_columns = [name for name in rows[0] if name not in conflict_keys]
    if skip_duplicates or not update_columns:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_keys))
    else:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_keys),
            set_={name: stmt.excluded[name] for name in update_columns},
        )
    db.execute(stmt, list(rows))


def conflict_groups(data_type: str, rows: Sequence[dict]) -> List[KeyGroup]:
    """Split rows by the unique key their upsert conflicts on.

    Teams and players without an external_id fall back to their natural key.
    The external_id column is left out of those rows so an update never
    clears one that is already stored.
    """
    natural = NATURAL_KEYS.get(data_type)
    if natural is None:
        return [(list(rows), CONFLICT_KEYS[data_type])]
    with_id = [row for row in rows if row.get("external_id") is not None]
    without_id = [
        {key: value for key, value in row.items() if key != "external_id"}
        for row in rows
        if row.get("external_id") is None
    ]
    groups: List[KeyGroup] = []
    if with_id:
        groups.append((with_id, CONFLICT_KEYS[data_type]))
    if without_id:
        groups.append((without_id, natural))
    return groups


def _write_batches(
    db: Session,
    label: str,
    table: Table,
    groups: Sequence[KeyGroup],
    skip_duplicates: bool,
    fail_fast: bool,
    progress: Optional[Progress],
) -> tuple[int, List[str]]:
    batch_size = get_settings().IMPORT_BATCH_SIZE
    batches: List[tuple[Sequence[dict], Sequence[str]]] = []
    for rows, conflict_keys in groups:
        rows = dedupe_rows(rows, conflict_keys, keep_first=skip_duplicates)
        batches.extend((batch, conflict_keys) for batch in chunked(rows, batch_size))
    imported = 0
    errors: List[str] = []
    for number, (batch, conflict_keys) in enumerate(batches, start=1):
        if progress:
            progress(number, len(batches), len(batch))
        try:
            upsert_rows(db, table, batch, conflict_keys, skip_duplicates)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            detail = str(getattr(exc, "orig", None) or exc)
            logger.warning(
                "import_batch_failed data_type=%s batch=%s detail=%s", label, number, detail
            )
            message = f"Batch import error ({number}): {detail}"
            if fail_fast:
                raise ImportFailed(message) from exc
            errors.append(message)
            continue
        imported += len(batch)
    return imported, errors


def derive_assignments(rows: Iterable[dict]) -> List[dict]:
    """Unique (player_id, match_id) -> team_id pairs, first occurrence wins."""
    assignments: Dict[tuple[int, int], dict] = {}
    for row in rows:
        key = (row["player_id"], row["match_id"])
        if key not in assignments:
            assignments[key] = {
                "player_id": row["player_id"],
                "match_id": row["match_id"],
                "team_id": row["team_id"],
            }
    return list(assignments.values())


def _write_assignments(db: Session, rows: Sequence[dict], fail_fast: bool) -> List[str]:
    assignments = derive_assignments(rows)
    if not assignments:
        return []
    try:
        upsert_rows(
            db,
            PlayerMatchAssignment.__table__,
            assignments,
            ["player_id", "match_id"],
            skip_duplicates=True,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        detail = str(getattr(exc, "orig", None) or exc)
        logger.warning("import_assignments_failed count=%s detail=%s", len(assignments), detail)
        message = f"Error creating player assignments: {detail}"
        if fail_fast:
            raise ImportFailed(message) from exc
        return [message]
    logger.info("import_assignments_written count=%s", len(assignments))
    return []


def import_records(
    db: Session,
    data_type: str,
    records: Sequence[Dict[str, Any]],
    dry_run: bool = True,
    skip_duplicates: bool = True,
    fail_fast: bool = False,
    progress: Optional[Progress] = None,
) -> ImportResult:
    if data_type not in DATA_TYPES:
        raise ValidationError([f"invalid_data_type: {data_type}"])
    if not records:
        return ImportResult("No records found in the CSV file", 0)

    rows, errors = validate_records(data_type, records)
    if not rows:
        return ImportResult("All records have validation errors", 0, errors, rejected=True)
    if dry_run:
        return ImportResult("Validation completed successfully", len(rows), errors)

    if data_type == "player_stats":
        errors.extend(_write_assignments(db, rows, fail_fast))
        rows = [{k: v for k, v in row.items() if k != "team_id"} for row in rows]

    imported, batch_errors = _write_batches(
        db,
        data_type,
        TABLES[data_type],
        conflict_groups(data_type, rows),
        skip_duplicates,
        fail_fast,
        progress,
    )
    errors.extend(batch_errors)
    logger.info(
        "import_completed data_type=%s imported=%s errors=%s", data_type, imported, len(errors)
    )
    log_action(
        db,
        category="import",
        action=data_type,
        details={"imported": imported, "errors": len(errors), "skip_duplicates": skip_duplicates},
    )
    return ImportResult(f"Import completed with {imported} records imported", imported, errors)


def import_csv(
    db: Session,
    data_type: str,
    data: str,
    dry_run: bool = True,
    skip_duplicates: bool = True,
    **kwargs: Any,
) -> ImportResult:
    return import_records(
        db,
        data_type,
        parse_csv(data),
        dry_run=dry_run,
        skip_duplicates=skip_duplicates,
        **kwargs,
    )


def import_players_by_team_name(
    db: Session,
    records: Sequence[Dict[str, Any]],
    dry_run: bool = True,
    skip_duplicates: bool = True,
    fail_fast: bool = False,
    progress: Optional[Progress] = None,
) -> ImportResult:
    """Import players whose team is given by name instead of id."""
    if not records:
        return ImportResult("No records found in the CSV file", 0)
    teams = db.execute(select(Team.id, Team.name)).all()
    if not teams:
        raise ValidationError(["no_teams_in_database"])
    team_ids = {name.strip().lower(): team_id for team_id, name in teams}

    resolved: List[Dict[str, Any]] = []
    errors: List[str] = []
    for index, record in enumerate(records):
        name = str(record.get("name") or "").strip()
        team_name = str(record.get("team_name") or "").strip()
        if not name:
            errors.append(f"Record {index + 1}: Missing required field 'name'")
            continue
        if not team_name:
            errors.append(f'Player "{name}" skipped - missing team name')
            continue
        team_id = team_ids.get(team_name.lower())
        if team_id is None:
            errors.append(f'Player "{name}" skipped - team "{team_name}" not found in database')
            continue
        resolved.append(dict(record, team_id=team_id))

    if not resolved:
        return ImportResult("All records have validation errors", 0, errors, rejected=True)
    rows = coerce_records("players", resolved)
    if dry_run:
        return ImportResult("Validation completed successfully", len(rows), errors)

    imported, batch_errors = _write_batches(
        db,
        "players_by_team_name",
        Player.__table__,
        [(rows, ["name", "team_id"])],
        skip_duplicates,
        fail_fast,
        progress,
    )
    errors.extend(batch_errors)
    log_action(
        db,
        category="import",
        action="players_by_team_name",
        details={"imported": imported, "errors": len(errors)},
    )
    return ImportResult(f"Import completed with {imported} records imported", imported, errors)


def import_teams_simplified(
    db: Session,
    records: Sequence[Dict[str, Any]],
    dry_run: bool = True,
    skip_duplicates: bool = True,
    fail_fast: bool = False,
    progress: Optional[Progress] = None,
) -> ImportResult:
    """Import teams described by colour name; any bad record rejects the file."""
    if not records:
        return ImportResult("No records found in the CSV file", 0)

    prepared: List[Dict[str, Any]] = []
    errors: List[str] = []
    for index, record in enumerate(records):
        name = str(record.get("name") or "").strip()
        team_type = str(record.get("team_type") or "").strip().lower()
        if not name:
            errors.append(f"Record {index + 1}: Missing required field 'name'")
            continue
        if team_type not in TEAM_TYPES:
            errors.append(f'Team "{name}" has invalid team_type "{team_type}"')
            continue
        color_name = str(record.get("color_name") or "").strip()
        prepared.append(
            {
                "name": name,
                "team_type": team_type,
                "primary_shirt_color": TEAM_COLOR_MAP.get(color_name, DEFAULT_TEAM_COLOR),
                "founded_year": record.get("founded_year"),
                "description": record.get("description"),
            }
        )

    if errors:
        return ImportResult("Validation errors found", 0, errors, rejected=True)
    rows = coerce_records("teams", prepared)
    if dry_run:
        return ImportResult("Validation completed successfully", len(rows), errors)

    imported, batch_errors = _write_batches(
        db,
        "teams_simplified",
        Team.__table__,
        [(rows, ["name"])],
        skip_duplicates,
        fail_fast,
        progress,
    )
    errors.extend(batch_errors)
    log_action(
        db,
        category="import",
        action="teams_simplified",
        details={"imported": imported, "errors": len(errors)},
    )
    return ImportResult(f"Import completed with {imported} records imported", imported, errors)
