from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.common import get_or_404, match_out, matches_out, player_out, team_name_map
from app.db.session import get_db
from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team
from app.schemas.analytics import LeaderboardsOut
from app.schemas.catalog import (
    MatchDetailOut,
    MatchOut,
    MatchPlayerStatOut,
    PlayerDetailOut,
    PlayerMatchLogOut,
    PlayerOut,
    TeamDetailOut,
    TeamOut,
    TeamStatisticsOut,
)
from app.services.statistics import (
    player_statistics,
    result_for,
    simplified_leaderboards,
    team_statistics,
    top_scorers,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])

TEAM_TYPE_SCOPES = {"internal": "internal", "club": "club"}


@router.get("/home")
def home(db: Session = Depends(get_db)) -> dict:
    recent = db.execute(
        select(Match).order_by(Match.match_date.desc(), Match.id.desc()).limit(5)
    ).scalars().all()
    return {
        "leaderboards": LeaderboardsOut(**simplified_leaderboards(db)),
        "internal_teams": [TeamStatisticsOut(**row) for row in team_statistics(db, "internal")],
        "recent_matches": matches_out(db, recent),
    }


@router.get("/teams", response_model=List[TeamOut])
def list_teams(
    team_type: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[TeamOut]:
    query = select(Team).where(Team.is_active.is_(True)).order_by(Team.name)
    if team_type:
        query = query.where(Team.team_type == team_type)
    return [TeamOut.model_validate(team) for team in db.execute(query).scalars().all()]


@router.get("/teams/{team_id}", response_model=TeamDetailOut)
def team_detail(team_id: int, db: Session = Depends(get_db)) -> TeamDetailOut:
    team = get_or_404(db, Team, team_id, "team_not_found")
    scope = TEAM_TYPE_SCOPES.get(team.team_type, "all")
    statistics = next((row for row in team_statistics(db, scope) if row["id"] == team_id), None)
    players = db.execute(
        select(Player).where(Player.team_id == team_id).order_by(Player.name)
    ).scalars().all()
    recent = db.execute(
        select(Match)
        .where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        .order_by(Match.match_date.desc(), Match.id.desc())
        .limit(5)
    ).scalars().all()
    names = {team.id: team.name}
    return TeamDetailOut(
        team=TeamOut.model_validate(team),
        statistics=statistics,
        players=[player_out(player, names) for player in players],
        top_scorers=top_scorers(db, "all", limit=5, team_id=team_id),
        recent_matches=matches_out(db, recent),
    )


@router.get("/players", response_model=List[PlayerOut])
def list_players(
    team_id: Optional[int] = None,
    position: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> List[PlayerOut]:
    query = select(Player).where(Player.is_active.is_(True))
    if team_id is not None:
        query = query.where(Player.team_id == team_id)
    if position:
        query = query.where(Player.position == position)
    if q:
        query = query.where(Player.name.ilike(f"%{q.strip()}%"))
    players = db.execute(query.order_by(Player.name).offset(offset).limit(limit)).scalars().all()
    names = team_name_map(db, [player.team_id for player in players])
    return [player_out(player, names) for player in players]


@router.get("/players/{player_id}", response_model=PlayerDetailOut)
def player_detail(player_id: int, db: Session = Depends(get_db)) -> PlayerDetailOut:
    player = get_or_404(db, Player, player_id, "player_not_found")
    assignments = {
        row.match_id: row.team_id
        for row in db.execute(
            select(PlayerMatchAssignment).where(PlayerMatchAssignment.player_id == player_id)
        ).scalars()
    }
    stats = {
        stat.match_id: stat
        for stat in db.execute(
            select(PlayerMatchStat).where(PlayerMatchStat.player_id == player_id)
        ).scalars()
    }
    match_ids = set(assignments) | set(stats)
    matches = []
    if match_ids:
        matches = db.execute(
            select(Match).where(Match.id.in_(sorted(match_ids))).order_by(Match.match_date.desc())
        ).scalars().all()
    names = team_name_map(
        db,
        [player.team_id]
        + list(assignments.values())
        + [team_id for match in matches for team_id in (match.home_team_id, match.away_team_id)],
    )

    log = []
    for match in matches:
        team_id = assignments.get(match.id, player.team_id)
        if team_id == match.home_team_id:
            opponent_id = match.away_team_id
        elif team_id == match.away_team_id:
            opponent_id = match.home_team_id
        else:
            opponent_id = None
        stat = stats.get(match.id)
        log.append(
            PlayerMatchLogOut(
                match_id=match.id,
                match_date=match.match_date,
                match_type=match.match_type,
                opponent_name=names.get(opponent_id),
                team_id=team_id,
                team_name=names.get(team_id),
                result=result_for(match, team_id),
                goals=stat.goals if stat else 0,
                assists=stat.assists if stat else 0,
                own_goals=stat.own_goals if stat else 0,
            )
        )

    return PlayerDetailOut(
        player=player_out(player, names),
        internal=player_statistics(db, player_id, "internal"),
        club=player_statistics(db, player_id, "club"),
        overall=player_statistics(db, player_id, "all"),
        matches=log,
    )


@router.get("/matches", response_model=List[MatchOut])
def list_matches(
    match_type: Optional[str] = None,
    team_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
) -> List[MatchOut]:
    query = select(Match).order_by(Match.match_date.desc(), Match.id.desc())
    if match_type:
        query = query.where(Match.match_type == match_type)
    if team_id is not None:
        query = query.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
    return matches_out(db, db.execute(query.limit(limit)).scalars().all())


@router.get("/matches/{match_id}", response_model=MatchDetailOut)
def match_detail(match_id: int, db: Session = Depends(get_db)) -> MatchDetailOut:
    match = get_or_404(db, Match, match_id, "match_not_found")
    assignments = {
        row.player_id: row.team_id
        for row in db.execute(
            select(PlayerMatchAssignment).where(PlayerMatchAssignment.match_id == match_id)
        ).scalars()
    }
    rows = db.execute(
        select(PlayerMatchStat, Player)
        .join(Player, Player.id == PlayerMatchStat.player_id)
        .where(PlayerMatchStat.match_id == match_id)
        .order_by(PlayerMatchStat.goals.desc(), Player.name)
    ).all()

    sides: dict[str, list[MatchPlayerStatOut]] = {"home": [], "away": [], "other": []}
    for stat, player in rows:
        team_id = assignments.get(player.id)
        entry = MatchPlayerStatOut(
            player_id=player.id,
            player_name=player.name,
            position=player.position,
            team_id=team_id,
            goals=stat.goals,
            assists=stat.assists,
            own_goals=stat.own_goals,
            minutes_played=stat.minutes_played,
            yellow_cards=stat.yellow_cards,
            red_cards=stat.red_cards,
            clean_sheet=stat.clean_sheet,
        )
        if team_id is not None and team_id == match.home_team_id:
            sides["home"].append(entry)
        elif team_id is not None and team_id == match.away_team_id:
            sides["away"].append(entry)
        else:
            sides["other"].append(entry)

    names = team_name_map(db, [match.home_team_id, match.away_team_id])
    return MatchDetailOut(
        match=match_out(match, names),
        home_players=sides["home"],
        away_players=sides["away"],
        other_players=sides["other"],
    )
