from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Match, Player, Team
from app.schemas.catalog import MatchOut, PlayerOut


def team_name_map(db: Session, team_ids: Optional[Iterable[Optional[int]]] = None) -> Dict[int, str]:
    query = select(Team.id, Team.name)
    if team_ids is not None:
        ids = {team_id for team_id in team_ids if team_id is not None}
        if not ids:
            return {}
        query = query.where(Team.id.in_(sorted(ids)))
    return {team_id: name for team_id, name in db.execute(query).all()}


def match_out(match: Match, names: Dict[int, str]) -> MatchOut:
    return MatchOut(
        id=match.id,
        match_date=match.match_date,
        match_type=match.match_type,
        home_team_id=match.home_team_id,
        home_team_name=names.get(match.home_team_id),
        away_team_id=match.away_team_id,
        away_team_name=names.get(match.away_team_id),
        home_score=match.home_score,
        away_score=match.away_score,
        venue=match.venue,
        attendance=match.attendance,
        weather_conditions=match.weather_conditions,
        referee=match.referee,
        notes=match.notes,
    )


def matches_out(db: Session, matches: List[Match]) -> List[MatchOut]:
    names = team_name_map(
        db,
        [team_id for match in matches for team_id in (match.home_team_id, match.away_team_id)],
    )
    return [match_out(match, names) for match in matches]


def player_out(player: Player, names: Dict[int, str]) -> PlayerOut:
    out = PlayerOut.model_validate(player)
    out.team_name = names.get(player.team_id)
    return out


def get_or_404(db: Session, model, row_id: int, detail: str):
    row = db.get(model, row_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return row
