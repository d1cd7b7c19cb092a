from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.models import Match
from app.services.teams import ensure_club_team, get_or_create_team
from app.services.validation import MATCH_TYPES, ValidationError, is_blank, validate_match_teams

logger = logging.getLogger(__name__)

MATCH_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
)

UPDATABLE_FIELDS = (
    "home_score",
    "away_score",
    "venue",
    "attendance",
    "weather_conditions",
    "referee",
    "notes",
)


def parse_match_date(value: Optional[str | datetime | date]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    for fmt in MATCH_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(["match_date_invalid"])


def _score_errors(home_score: Optional[int], away_score: Optional[int]) -> list[str]:
    errors = []
    for score in (home_score, away_score):
        if score is not None and score < 0:
            errors.append("score_invalid")
            break
    return errors


def create_match(
    db: Session,
    *,
    match_date: Optional[str | datetime],
    match_type: str,
    venue: Optional[str],
    home_team_id: Optional[int] = None,
    away_team_id: Optional[int] = None,
    home_team_name: Optional[str] = None,
    away_team_name: Optional[str] = None,
    home_score: Optional[int] = None,
    away_score: Optional[int] = None,
    **extra: Any,
) -> Match:
    """Create a match, resolving teams by id or by name.

    Internal friendlies pit two internal squads against each other. External
    games always have the club team at home; the away side is an existing
    team, an external team created by name, or nobody at all.
    """
    errors: list[str] = []
    if match_type not in MATCH_TYPES:
        errors.append("match_type_invalid")
    if is_blank(venue):
        errors.append("venue_required")
    kickoff = parse_match_date(match_date)
    if kickoff is None:
        errors.append("match_date_required")
    errors.extend(_score_errors(home_score, away_score))
    if match_type == "internal_friendly":
        if home_team_id is None and is_blank(home_team_name):
            errors.append("home_team_required")
        if away_team_id is None and is_blank(away_team_name):
            errors.append("away_team_required")
        if (
            home_team_id is None
            and away_team_id is None
            and not is_blank(home_team_name)
            and not is_blank(away_team_name)
            and home_team_name.strip().lower() == away_team_name.strip().lower()
        ):
            errors.append("teams_must_differ")
    if errors:
        raise ValidationError(errors)

    if match_type == "internal_friendly":
        if home_team_id is None:
            home_team_id = get_or_create_team(db, home_team_name, "internal").id
        if away_team_id is None:
            away_team_id = get_or_create_team(db, away_team_name, "internal").id
    else:
        if home_team_id is None:
            home_team_id = ensure_club_team(db).id
        if away_team_id is None and not is_blank(away_team_name):
            away_team_id = get_or_create_team(db, away_team_name, "external").id

    errors = validate_match_teams(db, home_team_id, away_team_id)
    if errors:
        raise ValidationError(errors)

    match = Match(
        match_date=kickoff,
        match_type=match_type,
        venue=venue.strip(),
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        home_score=home_score,
        away_score=away_score,
        attendance=extra.get("attendance"),
        weather_conditions=extra.get("weather_conditions"),
        referee=extra.get("referee"),
        notes=extra.get("notes"),
    )
    db.add(match)
    db.flush()
    logger.info(
        "match_created id=%s match_type=%s home=%s away=%s",
        match.id,
        match_type,
        home_team_id,
        away_team_id,
    )
    return match


def update_match(db: Session, match: Match, values: dict[str, Any]) -> Match:
    errors: list[str] = []
    kickoff = match.match_date
    if "match_date" in values:
        kickoff = parse_match_date(values["match_date"])
        if kickoff is None:
            errors.append("match_date_required")
    if "venue" in values and is_blank(values["venue"]):
        errors.append("venue_required")
    errors.extend(_score_errors(values.get("home_score"), values.get("away_score")))
    home_team_id = values.get("home_team_id", match.home_team_id)
    away_team_id = values.get("away_team_id", match.away_team_id)
    if "home_team_id" in values or "away_team_id" in values:
        errors.extend(validate_match_teams(db, home_team_id, away_team_id))
    if errors:
        raise ValidationError(errors)

    match.match_date = kickoff
    match.home_team_id = home_team_id
    match.away_team_id = away_team_id
    for field in UPDATABLE_FIELDS:
        if field in values:
            setattr(match, field, values[field])
    if match.venue:
        match.venue = match.venue.strip()
    db.flush()
    return match
