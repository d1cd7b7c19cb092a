"""Team and player aggregates.

Everything here is computed from the raw tables: matches, assignment rows
and per-match stat rows. A player's team in a match is the assignment row;
the player's default team is only used when a stat row has no assignment.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team

SCOPE_MATCH_TYPES: Dict[str, Optional[str]] = {
    "internal": "internal_friendly",
    "club": "external_game",
    "all": None,
}
SCOPE_TEAM_TYPES: Dict[str, Optional[str]] = {
    "internal": "internal",
    "club": "club",
    "all": None,
}


def pct(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 1)


def avg(total: float, count: float) -> float:
    if not count:
        return 0.0
    return round(total / count, 2)


def is_played(match: Match) -> bool:
    return match.home_score is not None and match.away_score is not None


def team_score(match: Match, team_id: Optional[int]) -> Optional[tuple[int, int]]:
    """Return (scored, conceded) for a side of a played match."""
    if team_id is None or not is_played(match):
        return None
    if team_id == match.home_team_id:
        return match.home_score, match.away_score
    if team_id == match.away_team_id:
        return match.away_score, match.home_score
    return None


def result_for(match: Match, team_id: Optional[int]) -> Optional[str]:
    score = team_score(match, team_id)
    if score is None:
        return None
    scored, conceded = score
    if scored > conceded:
        return "W"
    if scored < conceded:
        return "L"
    return "D"


def match_weight(match: Match) -> int:
    if match.match_type == "external_game":
        return get_settings().EXTERNAL_GAME_WEIGHT
    return 1


def _check_scope(scope: str) -> None:
    if scope not in SCOPE_MATCH_TYPES:
        raise ValueError(f"unknown scope: {scope}")


def load_matches(db: Session, scope: str = "all") -> Dict[int, Match]:
    _check_scope(scope)
    query = select(Match)
    match_type = SCOPE_MATCH_TYPES[scope]
    if match_type:
        query = query.where(Match.match_type == match_type)
    return {match.id: match for match in db.execute(query).scalars().all()}


def team_statistics(db: Session, scope: str = "all") -> List[dict]:
    _check_scope(scope)
    team_query = select(Team).order_by(Team.name)
    team_type = SCOPE_TEAM_TYPES[scope]
    if team_type:
        team_query = team_query.where(Team.team_type == team_type)
    teams = db.execute(team_query).scalars().all()
    rows = {
        team.id: {
            "id": team.id,
            "name": team.name,
            "matches_played": 0,
            "wins": 0,
            "draws": 0,
            "losses": 0,
            "goals_for": 0,
            "goals_against": 0,
        }
        for team in teams
    }

    for match in load_matches(db, scope).values():
        if not is_played(match):
            continue
        for team_id in (match.home_team_id, match.away_team_id):
            row = rows.get(team_id)
            if row is None:
                continue
            scored, conceded = team_score(match, team_id)
            row["matches_played"] += 1
            row["goals_for"] += scored
            row["goals_against"] += conceded
            outcome = result_for(match, team_id)
            if outcome == "W":
                row["wins"] += 1
            elif outcome == "D":
                row["draws"] += 1
            else:
                row["losses"] += 1

    return sorted(
        rows.values(),
        key=lambda r: (-r["wins"], -(r["goals_for"] - r["goals_against"]), -r["goals_for"], r["name"]),
    )


def _empty_totals() -> dict:
    return {
        "matches_played": 0,
        "goals": 0,
        "assists": 0,
        "own_goals": 0,
        "clean_sheets": 0,
        "weighted_goals": 0,
        "weighted_assists": 0,
    }


def player_totals(
    db: Session,
    scope: str = "all",
    team_id: Optional[int] = None,
    player_ids: Optional[set[int]] = None,
) -> tuple[Dict[int, dict], Dict[int, Player]]:
    """Aggregate per-player totals for the matches in ``scope``.

    A player's appearances are the union of their assignment rows and their
    stat rows. When ``team_id`` is given only appearances for that team count.
    """
    matches = load_matches(db, scope)
    player_query = select(Player)
    if player_ids is not None:
        player_query = player_query.where(Player.id.in_(sorted(player_ids)))
    players = {player.id: player for player in db.execute(player_query).scalars().all()}
    totals: Dict[int, dict] = {}
    if not matches or not players:
        return totals, players

    match_ids = list(matches)
    appearances: Dict[int, Dict[int, Optional[int]]] = defaultdict(dict)
    assignment_query = select(PlayerMatchAssignment).where(
        PlayerMatchAssignment.match_id.in_(match_ids)
    )
    for row in db.execute(assignment_query).scalars().all():
        appearances[row.player_id][row.match_id] = row.team_id

    stats: Dict[tuple[int, int], PlayerMatchStat] = {}
    stats_query = select(PlayerMatchStat).where(PlayerMatchStat.match_id.in_(match_ids))
    for stat in db.execute(stats_query).scalars().all():
        appearances[stat.player_id].setdefault(stat.match_id, None)
        stats[(stat.player_id, stat.match_id)] = stat

    for player_id, by_match in appearances.items():
        player = players.get(player_id)
        if player is None:
            continue
        row = _empty_totals()
        for match_id, assigned_team_id in by_match.items():
            effective_team_id = assigned_team_id if assigned_team_id is not None else player.team_id
            if team_id is not None and effective_team_id != team_id:
                continue
            match = matches[match_id]
            weight = match_weight(match)
            row["matches_played"] += 1
            stat = stats.get((player_id, match_id))
            if stat is not None:
                row["goals"] += stat.goals or 0
                row["assists"] += stat.assists or 0
                row["own_goals"] += stat.own_goals or 0
                row["weighted_goals"] += (stat.goals or 0) * weight
                row["weighted_assists"] += (stat.assists or 0) * weight
            score = team_score(match, effective_team_id)
            if (stat is not None and stat.clean_sheet) or (score is not None and score[1] == 0):
                row["clean_sheets"] += 1
        if row["matches_played"]:
            totals[player_id] = row
    return totals, players


def player_statistics(db: Session, player_id: int, scope: str = "all") -> dict:
    totals, _ = player_totals(db, scope, player_ids={player_id})
    return totals.get(player_id, _empty_totals())


def all_player_statistics(db: Session, scope: str = "all") -> List[dict]:
    totals, players = player_totals(db, scope)
    rows = [
        {
            "player_id": player_id,
            "player_name": players[player_id].name,
            "goals": row["goals"],
            "assists": row["assists"],
        }
        for player_id, row in totals.items()
    ]
    return sorted(rows, key=lambda r: r["player_name"])


def top_scorers(
    db: Session,
    scope: str = "all",
    limit: int = 10,
    team_id: Optional[int] = None,
) -> List[dict]:
    totals, players = player_totals(db, scope, team_id=team_id)
    rows = [
        {
            "player_id": player_id,
            "player_name": players[player_id].name,
            "team_id": team_id if team_id is not None else players[player_id].team_id,
            "goals": row["goals"],
            "assists": row["assists"],
            "matches_played": row["matches_played"],
        }
        for player_id, row in totals.items()
        if row["goals"] > 0
    ]
    rows.sort(key=lambda r: (-r["goals"], -r["assists"], r["player_name"]))
    return rows[:limit]


def simplified_leaderboards(db: Session, limit: int = 10) -> dict:
    totals, players = player_totals(db, "all")

    scorers = [
        {
            "player_id": player_id,
            "player_name": players[player_id].name,
            "matches_played": row["matches_played"],
            "goals": row["goals"],
            "weighted_goals": row["weighted_goals"],
        }
        for player_id, row in totals.items()
        if row["goals"] > 0
    ]
    scorers.sort(key=lambda r: (-r["weighted_goals"], -r["goals"], r["player_name"]))

    assisters = [
        {
            "player_id": player_id,
            "player_name": players[player_id].name,
            "matches_played": row["matches_played"],
            "assists": row["assists"],
            "weighted_assists": row["weighted_assists"],
        }
        for player_id, row in totals.items()
        if row["assists"] > 0
    ]
    assisters.sort(key=lambda r: (-r["weighted_assists"], -r["assists"], r["player_name"]))

    goalkeepers = [
        {
            "player_id": player_id,
            "player_name": players[player_id].name,
            "matches_played": row["matches_played"],
            "clean_sheets": row["clean_sheets"],
            "clean_sheet_percentage": pct(row["clean_sheets"], row["matches_played"]),
        }
        for player_id, row in totals.items()
        if players[player_id].position == "Goalkeeper"
    ]
    goalkeepers.sort(
        key=lambda r: (-r["clean_sheet_percentage"], -r["clean_sheets"], r["player_name"])
    )

    return {
        "top_scorers": scorers[:limit],
        "top_assists": assisters[:limit],
        "top_goalkeepers": goalkeepers[:limit],
    }
