"""Per-match admin workflow: who played for which side, then their numbers.

Step one saves assignments as a full replace. Step two upserts goals,
assists and own goals, but only for players that have an assignment.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team
from app.services.action_log import log_action
from app.services.validation import ValidationError, validate_players_exist

logger = logging.getLogger(__name__)

STAT_FIELDS = ("goals", "assists", "own_goals")


class MatchNotFound(Exception):
    pass


class WorkflowWriteError(Exception):
    pass


def get_match(db: Session, match_id: int) -> Match:
    match = db.get(Match, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


def match_teams(db: Session, match: Match) -> List[Team]:
    team_ids = [team_id for team_id in (match.home_team_id, match.away_team_id) if team_id is not None]
    if not team_ids:
        return []
    teams = {team.id: team for team in db.execute(select(Team).where(Team.id.in_(team_ids))).scalars()}
    return [teams[team_id] for team_id in team_ids if team_id in teams]


def assignment_map(db: Session, match_id: int) -> Dict[int, int]:
    rows = db.execute(
        select(PlayerMatchAssignment.player_id, PlayerMatchAssignment.team_id).where(
            PlayerMatchAssignment.match_id == match_id
        )
    ).all()
    return {player_id: team_id for player_id, team_id in rows}


def _all_players(db: Session) -> List[Player]:
    return db.execute(select(Player).order_by(Player.name)).scalars().all()


def load_assignment_sheet(db: Session, match_id: int) -> dict:
    match = get_match(db, match_id)
    teams = match_teams(db, match)
    assigned = assignment_map(db, match_id)
    players = [
        {
            "player_id": player.id,
            "name": player.name,
            "position": player.position,
            "default_team_id": player.team_id,
            "participated": player.id in assigned,
            "team_id": assigned.get(player.id),
        }
        for player in _all_players(db)
    ]
    return {
        "match": match,
        "teams": teams,
        "complete": len(teams) == 2,
        "players": players,
    }


def save_assignments(db: Session, match_id: int, entries: Iterable[Any]) -> List[dict]:
    """Replace every assignment row of the match with ``entries``.

    Entries need ``player_id``, ``participated`` and ``team_id``; only those
    that participated with a team are kept.
    """
    match = get_match(db, match_id)
    allowed = {team_id for team_id in (match.home_team_id, match.away_team_id) if team_id is not None}

    kept: Dict[int, int] = {}
    for entry in entries:
        if not entry.participated or entry.team_id is None:
            continue
        kept[entry.player_id] = entry.team_id

    errors = validate_players_exist(db, kept.keys())
    bad_teams = sorted({team_id for team_id in kept.values() if team_id not in allowed})
    if bad_teams:
        errors.append("team_not_in_match: " + ",".join(str(team_id) for team_id in bad_teams))
    if errors:
        raise ValidationError(errors)

    rows = [
        {"match_id": match_id, "player_id": player_id, "team_id": team_id}
        for player_id, team_id in kept.items()
    ]
    try:
        db.execute(delete(PlayerMatchAssignment).where(PlayerMatchAssignment.match_id == match_id))
        if rows:
            db.add_all(PlayerMatchAssignment(**row) for row in rows)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("assignments_save_failed match_id=%s detail=%s", match_id, str(exc))
        raise WorkflowWriteError(f"db_error: {exc}") from exc

    log_action(
        db,
        category="assignments",
        action="replace",
        details={"match_id": match_id, "count": len(rows)},
    )
    return rows


def list_assignment_rows(db: Session, match_id: int) -> List[dict]:
    get_match(db, match_id)
    rows = db.execute(
        select(PlayerMatchAssignment, Player, Team)
        .join(Player, Player.id == PlayerMatchAssignment.player_id)
        .join(Team, Team.id == PlayerMatchAssignment.team_id)
        .where(PlayerMatchAssignment.match_id == match_id)
        .order_by(Team.name, Player.name)
    ).all()
    return [
        {
            "player_id": player.id,
            "player_name": player.name,
            "team_id": team.id,
            "team_name": team.name,
        }
        for _, player, team in rows
    ]


def update_assignment(db: Session, match_id: int, player_id: int, team_id: int) -> PlayerMatchAssignment:
    match = get_match(db, match_id)
    if team_id not in (match.home_team_id, match.away_team_id):
        raise ValidationError([f"team_not_in_match: {team_id}"])
    row = db.execute(
        select(PlayerMatchAssignment).where(
            PlayerMatchAssignment.match_id == match_id,
            PlayerMatchAssignment.player_id == player_id,
        )
    ).scalar_one_or_none()
    if row is None:
        raise ValidationError(["assignment_not_found"])
    row.team_id = team_id
    db.commit()
    log_action(
        db,
        category="assignments",
        action="update",
        details={"match_id": match_id, "player_id": player_id, "team_id": team_id},
    )
    return row


def load_stats_sheet(db: Session, match_id: int) -> dict:
    match = get_match(db, match_id)
    assigned = assignment_map(db, match_id)
    stats = {
        stat.player_id: stat
        for stat in db.execute(
            select(PlayerMatchStat).where(PlayerMatchStat.match_id == match_id)
        ).scalars()
    }

    buckets: Dict[str, List[dict]] = {"home": [], "away": [], "other": []}
    for player in _all_players(db):
        team_id = assigned.get(player.id)
        stat = stats.get(player.id)
        entry = {
            "player_id": player.id,
            "name": player.name,
            "position": player.position,
            "team_id": team_id,
            "has_stats": stat is not None,
            "goals": stat.goals if stat else 0,
            "assists": stat.assists if stat else 0,
            "own_goals": stat.own_goals if stat else 0,
        }
        if team_id is not None and team_id == match.home_team_id:
            buckets["home"].append(entry)
        elif team_id is not None and team_id == match.away_team_id:
            buckets["away"].append(entry)
        else:
            buckets["other"].append(entry)
    return {"match": match, **buckets}


def parse_stat_value(value: Optional[Any]) -> int:
    """Blank input counts as 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(["invalid_stat_value"])
    if isinstance(value, int):
        number = value
    else:
        raw = str(value).strip()
        if not raw:
            return 0
        try:
            number = int(raw)
        except ValueError:
            raise ValidationError([f"invalid_stat_value: {raw}"])
    if number < 0:
        raise ValidationError([f"invalid_stat_value: {number}"])
    return number


def save_stats(db: Session, match_id: int, entries: Iterable[Any]) -> dict:
    get_match(db, match_id)
    assigned = assignment_map(db, match_id)

    rows = []
    skipped: List[int] = []
    for entry in entries:
        values = {name: parse_stat_value(getattr(entry, name, None)) for name in STAT_FIELDS}
        if entry.player_id not in assigned:
            if any(values.values()):
                skipped.append(entry.player_id)
            continue
        rows.append({"player_id": entry.player_id, "match_id": match_id, "minutes_played": 0, **values})

    if rows:
        try:
            db.execute(
                text(
                    """
                    INSERT INTO player_match_stats (
                        player_id, match_id, goals, assists, own_goals, minutes_played,
                        yellow_cards, red_cards, clean_sheet, updated_at
                    )
                    VALUES (
                        :player_id, :match_id, :goals, :assists, :own_goals, :minutes_played,
                        0, 0, false, CURRENT_TIMESTAMP
                    )
                    ON CONFLICT (player_id, match_id)
                    DO UPDATE SET
                        goals = EXCLUDED.goals,
                        assists = EXCLUDED.assists,
                        own_goals = EXCLUDED.own_goals,
                        minutes_played = EXCLUDED.minutes_played,
                        updated_at = CURRENT_TIMESTAMP
                    """
                ),
                rows,
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("stats_save_failed match_id=%s detail=%s", match_id, str(exc))
            raise WorkflowWriteError(f"db_error: {exc}") from exc

    if skipped:
        logger.info("stats_skipped_unassigned match_id=%s players=%s", match_id, skipped)
    log_action(
        db,
        category="stats",
        action="upsert",
        details={"match_id": match_id, "count": len(rows), "skipped": skipped},
    )
    return {"ok": True, "count": len(rows), "skipped_unassigned": skipped}
