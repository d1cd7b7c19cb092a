from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Player, Team

POSITIONS = {"Goalkeeper", "Defender", "Midfielder", "Forward"}
TEAM_TYPES = {"club", "internal", "external"}
MATCH_TYPES = {"internal_friendly", "external_game"}


class ValidationError(Exception):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors) or "validation failed")
        self.errors = errors


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_required_fields(record: Mapping[str, Any], fields: Iterable[str]) -> List[str]:
    return [field for field in fields if is_blank(record.get(field))]


def validate_team(
    name: Optional[str],
    primary_shirt_color: Optional[str],
    team_type: Optional[str],
) -> List[str]:
    errors: List[str] = []
    if is_blank(name):
        errors.append("team_name_required")
    if is_blank(primary_shirt_color):
        errors.append("primary_shirt_color_required")
    if team_type is not None and team_type not in TEAM_TYPES:
        errors.append("team_type_invalid")
    return errors


def validate_player(
    db: Session,
    name: Optional[str],
    position: Optional[str],
    team_id: Optional[int],
) -> List[str]:
    errors: List[str] = []
    if is_blank(name):
        errors.append("player_name_required")
    if position is not None and position not in POSITIONS:
        errors.append("position_invalid")
    if team_id is not None and db.get(Team, team_id) is None:
        errors.append("team_not_found")
    return errors


def validate_match_teams(
    db: Session,
    home_team_id: Optional[int],
    away_team_id: Optional[int],
) -> List[str]:
    errors: List[str] = []
    if home_team_id is not None and away_team_id is not None and home_team_id == away_team_id:
        errors.append("teams_must_differ")
        return errors
    team_ids = [team_id for team_id in (home_team_id, away_team_id) if team_id is not None]
    if not team_ids:
        return errors
    existing = set(db.execute(select(Team.id).where(Team.id.in_(team_ids))).scalars().all())
    missing = sorted(set(team_ids) - existing)
    if missing:
        errors.append("teams_not_found: " + ",".join(str(team_id) for team_id in missing))
    return errors


def validate_players_exist(db: Session, player_ids: Iterable[int]) -> List[str]:
    ids = set(player_ids)
    if not ids:
        return []
    found = set(db.execute(select(Player.id).where(Player.id.in_(sorted(ids)))).scalars().all())
    missing = sorted(ids - found)
    if missing:
        return ["players_not_found: " + ",".join(str(pid) for pid in missing)]
    return []
