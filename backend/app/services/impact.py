from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team
from app.services.statistics import avg, is_played, pct, result_for, team_score

Lineups = Dict[int, Dict[int, set]]


def _played_matches(db: Session) -> Dict[int, Match]:
    rows = db.execute(
        select(Match).where(Match.home_score.is_not(None), Match.away_score.is_not(None))
    ).scalars().all()
    return {match.id: match for match in rows}


def _lineups(db: Session, match_ids: Iterable[int]) -> Lineups:
    """match_id -> team_id -> player ids assigned to that side."""
    lineups: Lineups = defaultdict(lambda: defaultdict(set))
    ids = list(match_ids)
    if not ids:
        return lineups
    rows = db.execute(
        select(PlayerMatchAssignment).where(PlayerMatchAssignment.match_id.in_(ids))
    ).scalars().all()
    for row in rows:
        lineups[row.match_id][row.team_id].add(row.player_id)
    return lineups


def _names(db: Session, model, ids: Iterable[int]) -> Dict[int, str]:
    ids = set(ids)
    if not ids:
        return {}
    rows = db.execute(select(model.id, model.name).where(model.id.in_(sorted(ids)))).all()
    return {row_id: name for row_id, name in rows}


def _record(matches: Iterable[Match], team_id: int) -> dict:
    summary = {"matches_played": 0, "wins": 0, "draws": 0, "losses": 0, "scored": 0, "conceded": 0}
    for match in matches:
        score = team_score(match, team_id)
        if score is None:
            continue
        summary["matches_played"] += 1
        summary["scored"] += score[0]
        summary["conceded"] += score[1]
        outcome = result_for(match, team_id)
        if outcome == "W":
            summary["wins"] += 1
        elif outcome == "D":
            summary["draws"] += 1
        else:
            summary["losses"] += 1
    summary["win_rate"] = pct(summary["wins"], summary["matches_played"])
    return summary


def _team_matches(matches: Dict[int, Match], team_id: int) -> List[Match]:
    return [
        match
        for match in matches.values()
        if team_id in (match.home_team_id, match.away_team_id) and is_played(match)
    ]


def team_performance_with_player(db: Session, player_id: int, team_id: int) -> List[dict]:
    matches = _played_matches(db)
    team_matches = _team_matches(matches, team_id)
    lineups = _lineups(db, [match.id for match in team_matches])
    with_player = [m for m in team_matches if player_id in lineups[m.id][team_id]]
    without_player = [m for m in team_matches if player_id not in lineups[m.id][team_id]]

    rows = []
    for scenario, subset in (("With Player", with_player), ("Without Player", without_player)):
        summary = _record(subset, team_id)
        rows.append(
            {
                "scenario": scenario,
                "matches_played": summary["matches_played"],
                "wins": summary["wins"],
                "draws": summary["draws"],
                "losses": summary["losses"],
                "win_rate": summary["win_rate"],
                "goals_scored_avg": avg(summary["scored"], summary["matches_played"]),
                "goals_conceded_avg": avg(summary["conceded"], summary["matches_played"]),
            }
        )
    return rows


def player_all_teams_impact(db: Session, player_id: int) -> List[dict]:
    settings = get_settings()
    matches = _played_matches(db)
    lineups = _lineups(db, matches)
    team_ids = {
        team_id
        for by_team in lineups.values()
        for team_id, player_ids in by_team.items()
        if player_id in player_ids
    }
    if not team_ids:
        return []

    stats = {
        stat.match_id: stat
        for stat in db.execute(
            select(PlayerMatchStat).where(PlayerMatchStat.player_id == player_id)
        ).scalars().all()
    }
    team_names = _names(db, Team, team_ids)

    rows = []
    for team_id in team_ids:
        team_matches = _team_matches(matches, team_id)
        with_player = [m for m in team_matches if player_id in lineups[m.id][team_id]]
        without_player = [m for m in team_matches if player_id not in lineups[m.id][team_id]]
        with_summary = _record(with_player, team_id)
        without_summary = _record(without_player, team_id)
        goals = sum((stats[m.id].goals or 0) for m in with_player if m.id in stats)
        assists = sum((stats[m.id].assists or 0) for m in with_player if m.id in stats)
        played = with_summary["matches_played"]
        rows.append(
            {
                "team_id": team_id,
                "team_name": team_names.get(team_id, ""),
                "matches_played": played,
                "wins": with_summary["wins"],
                "draws": with_summary["draws"],
                "losses": with_summary["losses"],
                "win_rate": with_summary["win_rate"],
                "goals_per_game": avg(goals, played),
                "assists_per_game": avg(assists, played),
                "team_win_rate_with_player": with_summary["win_rate"],
                "team_win_rate_without_player": without_summary["win_rate"],
                "impact_score": round(with_summary["win_rate"] - without_summary["win_rate"], 1),
                "statistical_significance": (
                    played >= settings.MIN_SIGNIFICANT_MATCHES
                    and without_summary["matches_played"] >= settings.MIN_SIGNIFICANT_MATCHES
                ),
            }
        )
    rows.sort(key=lambda r: (-r["matches_played"], r["team_name"]))
    return rows


def player_team_combinations(
    db: Session,
    player_id: int,
    team_id: Optional[int] = None,
) -> List[dict]:
    """How the player's sides fared with and without each teammate."""
    settings = get_settings()
    matches = _played_matches(db)
    lineups = _lineups(db, matches)

    player_matches: Dict[int, List[Match]] = defaultdict(list)
    together: Dict[tuple[int, int], List[Match]] = defaultdict(list)
    for match_id, by_team in lineups.items():
        match = matches[match_id]
        for side_team_id, player_ids in by_team.items():
            if player_id not in player_ids:
                continue
            if team_id is not None and side_team_id != team_id:
                continue
            player_matches[side_team_id].append(match)
            for teammate_id in player_ids - {player_id}:
                together[(teammate_id, side_team_id)].append(match)

    if not together:
        return []

    player_names = _names(db, Player, {teammate_id for teammate_id, _ in together})
    team_names = _names(db, Team, {side_team_id for _, side_team_id in together})

    rows = []
    for (teammate_id, side_team_id), shared in together.items():
        shared_ids = {match.id for match in shared}
        apart = [m for m in player_matches[side_team_id] if m.id not in shared_ids]
        with_summary = _record(shared, side_team_id)
        without_summary = _record(apart, side_team_id)
        goals_together = avg(with_summary["scored"], with_summary["matches_played"])
        goals_without = avg(without_summary["scored"], without_summary["matches_played"])
        rows.append(
            {
                "teammate_id": teammate_id,
                "teammate_name": player_names.get(teammate_id, ""),
                "team_id": side_team_id,
                "team_name": team_names.get(side_team_id, ""),
                "matches_together": with_summary["matches_played"],
                "win_rate_together": with_summary["win_rate"],
                "win_rate_without": without_summary["win_rate"],
                "win_impact": round(with_summary["win_rate"] - without_summary["win_rate"], 1),
                "goals_per_match_together": goals_together,
                "goals_per_match_without": goals_without,
                "goal_impact": round(goals_together - goals_without, 2),
                "statistical_significance": (
                    with_summary["matches_played"] >= settings.MIN_SIGNIFICANT_MATCHES
                ),
            }
        )
    rows.sort(
        key=lambda r: (not r["statistical_significance"], -r["win_impact"], r["teammate_name"])
    )
    return rows


def player_combinations(db: Session, min_matches: int = 3, as_opponents: bool = False) -> List[dict]:
    """Pair records for every two players who shared a side or faced each other.

    Pairs qualify on matches played together, or on matches played against
    each other when `as_opponents` is set.
    """
    matches = _played_matches(db)
    lineups = _lineups(db, matches)

    pairs: Dict[tuple[int, int], dict] = defaultdict(
        lambda: {"total": 0, "wins": 0, "draws": 0, "losses": 0, "opposed": 0, "opposed_wins": 0}
    )
    for match_id, by_team in lineups.items():
        match = matches[match_id]
        for side_team_id, player_ids in by_team.items():
            outcome = result_for(match, side_team_id)
            if outcome is None:
                continue
            for first, second in combinations(sorted(player_ids), 2):
                pair = pairs[(first, second)]
                pair["total"] += 1
                if outcome == "W":
                    pair["wins"] += 1
                elif outcome == "D":
                    pair["draws"] += 1
                else:
                    pair["losses"] += 1

        home = by_team.get(match.home_team_id, set())
        away = by_team.get(match.away_team_id, set())
        for home_player in home:
            for away_player in away:
                first, second = sorted((home_player, away_player))
                first_team = match.home_team_id if first == home_player else match.away_team_id
                pair = pairs[(first, second)]
                pair["opposed"] += 1
                if result_for(match, first_team) == "W":
                    pair["opposed_wins"] += 1

    sample = "opposed" if as_opponents else "total"
    qualified = {key: value for key, value in pairs.items() if value[sample] >= min_matches}
    names = _names(db, Player, {pid for key in qualified for pid in key})

    rows = [
        {
            "player1_id": first,
            "player1_name": names.get(first, ""),
            "player2_id": second,
            "player2_name": names.get(second, ""),
            "total_matches": pair["total"],
            "win_matches": pair["wins"],
            "draw_matches": pair["draws"],
            "loss_matches": pair["losses"],
            "win_rate": pct(pair["wins"], pair["total"]),
            "matches_as_opponents": pair["opposed"],
            "win_rate_as_opponents": (
                pct(pair["opposed_wins"], pair["opposed"]) if pair["opposed"] else None
            ),
        }
        for (first, second), pair in qualified.items()
    ]
    rows.sort(key=lambda r: (-r["win_rate"], -r["total_matches"], r["player1_name"]))
    return rows


def player_diagnostic(db: Session, player: Player) -> dict:
    assignments = db.execute(
        select(PlayerMatchAssignment, Match, Team)
        .join(Match, Match.id == PlayerMatchAssignment.match_id)
        .join(Team, Team.id == PlayerMatchAssignment.team_id)
        .where(PlayerMatchAssignment.player_id == player.id)
        .order_by(Match.match_date.desc())
    ).all()
    stats = db.execute(
        select(PlayerMatchStat)
        .where(PlayerMatchStat.player_id == player.id)
        .order_by(PlayerMatchStat.match_id)
    ).scalars().all()

    team_ids = sorted({team.id for _, _, team in assignments})
    team_names = {team.id: team.name for _, _, team in assignments}
    return {
        "assignments": [
            {
                "match_id": match.id,
                "match_date": match.match_date,
                "match_type": match.match_type,
                "team_id": team.id,
                "team_name": team.name,
            }
            for _, match, team in assignments
        ],
        "stats": [
            {
                "match_id": stat.match_id,
                "goals": stat.goals,
                "assists": stat.assists,
                "own_goals": stat.own_goals,
                "minutes_played": stat.minutes_played,
            }
            for stat in stats
        ],
        "team_performance": [
            {
                "team_id": team_id,
                "team_name": team_names[team_id],
                "rows": team_performance_with_player(db, player.id, team_id),
            }
            for team_id in team_ids
        ],
    }
