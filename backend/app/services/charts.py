"""Reshape analytics rows into chart input: labels, datasets and tooltips.

These functions are pure. Rendering happens in the client.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from app.services.teams import color_for_team

IMPACT_STRONG_POSITIVE = "rgba(46, 184, 92, 0.8)"
IMPACT_POSITIVE = "rgba(54, 162, 235, 0.8)"
IMPACT_SLIGHT_NEGATIVE = "rgba(255, 159, 64, 0.8)"
IMPACT_NEGATIVE = "rgba(255, 99, 132, 0.8)"

MAX_WIN_RATE = 100.0
MAX_GOALS_PER_GAME = 3.0
MAX_ASSISTS_PER_GAME = 1.5

Row = Dict[str, Any]


def _chart(
    labels: List[str],
    datasets: List[dict],
    tooltips: Optional[List[str]] = None,
    x_max: Optional[float] = None,
) -> dict:
    return {"labels": labels, "datasets": datasets, "tooltips": tooltips or [], "x_max": x_max}


def _dataset(label: str, data: List[float], colors: Optional[List[str]] = None) -> dict:
    return {"label": label, "data": data, "colors": colors}


def _signed(value: float, suffix: str = "") -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}{suffix}"


def impact_color(delta: float) -> str:
    if delta > 10:
        return IMPACT_STRONG_POSITIVE
    if delta > 0:
        return IMPACT_POSITIVE
    if delta > -10:
        return IMPACT_SLIGHT_NEGATIVE
    return IMPACT_NEGATIVE


def _contribution_chart(rows: Sequence[Row], field: str, noun: str, limit: int) -> dict:
    weighted_field = f"weighted_{field}"
    weighted = any(row.get(weighted_field) is not None for row in rows)
    key = weighted_field if weighted else field
    top = sorted(rows, key=lambda r: r.get(key) or 0, reverse=True)[:limit]
    data = [top_row.get(key) or 0 for top_row in top]
    if weighted:
        tooltips = [
            f"{r.get(weighted_field) or 0} weighted {noun} ({r.get(field) or 0} actual {noun})"
            for r in top
        ]
        label = f"Weighted {noun.title()}"
    else:
        tooltips = [f"{r.get(field) or 0} {noun}" for r in top]
        label = noun.title()
    return _chart(
        [r["player_name"] for r in top],
        [_dataset(label, data)],
        tooltips,
        x_max=(max(data) if data else 0) + 10,
    )


def top_scorers_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    return _contribution_chart(rows, "goals", "goals", limit)


def top_assists_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    return _contribution_chart(rows, "assists", "assists", limit)


def goalkeeper_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    top = sorted(rows, key=lambda r: r["clean_sheets"], reverse=True)[:limit]
    data = [r["clean_sheets"] for r in top]
    return _chart(
        [r["player_name"] for r in top],
        [_dataset("Clean Sheets", data)],
        [
            f"{r['clean_sheets']} clean sheets in {r['matches_played']} matches "
            f"({r['clean_sheet_percentage']}%)"
            for r in top
        ],
        x_max=(max(data) if data else 0) + 1,
    )


def team_goals_chart(rows: Sequence[Row]) -> dict:
    ordered = sorted(rows, key=lambda r: r["goals_for"], reverse=True)
    tooltips = []
    for row in ordered:
        played = row["matches_played"]
        per_match = f"{row['goals_for'] / played:.2f}" if played else "0.00"
        tooltips.append(f"Goals Scored: {row['goals_for']} ({per_match} per match)")
    return _chart(
        [r["name"] for r in ordered],
        [
            _dataset("Goals Scored", [r["goals_for"] for r in ordered]),
            _dataset("Goals Conceded", [r["goals_against"] for r in ordered]),
        ],
        tooltips,
    )


def team_points_chart(rows: Sequence[Row], limit: int = 8) -> dict:
    with_points = [dict(row, points=row["wins"] * 3 + row["draws"]) for row in rows]
    top = sorted(with_points, key=lambda r: r["points"], reverse=True)[:limit]
    return _chart(
        [r["name"] for r in top],
        [
            _dataset(
                "Points",
                [r["points"] for r in top],
                [color_for_team(r["name"]) for r in top],
            )
        ],
        [f"{r['points']} pts ({r['wins']}W {r['draws']}D {r['losses']}L)" for r in top],
    )


def team_performance_radar(rows: Sequence[Row], max_teams: int = 4) -> dict:
    """Radar over win rate, points per game, goals per game and goal difference."""
    metrics = []
    for row in rows:
        played = row["matches_played"]
        points = row["wins"] * 3 + row["draws"]
        metrics.append(
            {
                "name": row["name"],
                "points": points,
                "values": [
                    round(row["wins"] * 100.0 / played, 1) if played else 0.0,
                    round(points / played, 2) if played else 0.0,
                    round(row["goals_for"] / played, 2) if played else 0.0,
                    row["goals_for"] - row["goals_against"],
                ],
            }
        )
    top = sorted(metrics, key=lambda m: m["points"], reverse=True)[:max_teams]
    return _chart(
        ["Win Rate (%)", "Points Per Game", "Goals Per Game", "Goal Difference"],
        [_dataset(m["name"], m["values"], [color_for_team(m["name"])]) for m in top],
    )


def multi_team_impact_chart(rows: Sequence[Row]) -> dict:
    return _chart(
        [r["team_name"] for r in rows],
        [
            _dataset(
                "Win Rate With Player",
                [min(r["team_win_rate_with_player"], MAX_WIN_RATE) for r in rows],
            ),
            _dataset(
                "Win Rate Without Player",
                [min(r["team_win_rate_without_player"], MAX_WIN_RATE) for r in rows],
            ),
            _dataset(
                "Goals per Game",
                [min(r["goals_per_game"], MAX_GOALS_PER_GAME) for r in rows],
            ),
            _dataset(
                "Assists per Game",
                [min(r["assists_per_game"], MAX_ASSISTS_PER_GAME) for r in rows],
            ),
        ],
        [
            f"Impact: {_signed(r['impact_score'], '%')} over {r['matches_played']} matches"
            + ("" if r["statistical_significance"] else " (small sample)")
            for r in rows
        ],
    )


def win_impact_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    top = sorted(rows, key=lambda r: r["impact_score"], reverse=True)[:limit]
    data = [r["impact_score"] for r in top]
    return _chart(
        [r["team_name"] for r in top],
        [_dataset("Win Rate Delta", data, [impact_color(value) for value in data])],
        [
            f"With: {r['team_win_rate_with_player']}% / Without: "
            f"{r['team_win_rate_without_player']}%"
            for r in top
        ],
    )


def player_combinations_chart(
    rows: Sequence[Row],
    min_matches: int = 3,
    limit: int = 10,
) -> dict:
    eligible = [r for r in rows if r["total_matches"] >= min_matches]
    top = sorted(eligible, key=lambda r: r["win_rate"], reverse=True)[:limit]
    return _chart(
        [f"{r['player1_name']} & {r['player2_name']}" for r in top],
        [_dataset("Win Rate Together", [r["win_rate"] for r in top])],
        [
            f"{r['win_matches']}W {r['draw_matches']}D {r['loss_matches']}L "
            f"in {r['total_matches']} matches"
            for r in top
        ],
        x_max=MAX_WIN_RATE,
    )


def player_rivals_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    rivals = [r for r in rows if r.get("win_rate_as_opponents") is not None]
    top = sorted(rivals, key=lambda r: r["win_rate_as_opponents"], reverse=True)[:limit]
    return _chart(
        [f"{r['player1_name']} vs {r['player2_name']}" for r in top],
        [_dataset("Win Rate As Opponents", [r["win_rate_as_opponents"] for r in top])],
        [f"{r['player1_name']} wins {r['win_rate_as_opponents']}% of meetings" for r in top],
        x_max=MAX_WIN_RATE,
    )


def team_combinations_chart(rows: Sequence[Row], limit: int = 10) -> dict:
    top = sorted(
        rows,
        key=lambda r: (not r["statistical_significance"], -r["win_impact"]),
    )[:limit]
    return _chart(
        [r["teammate_name"] for r in top],
        [
            _dataset("Win Rate Together", [r["win_rate_together"] for r in top]),
            _dataset("Win Rate Without", [r["win_rate_without"] for r in top]),
        ],
        [
            f"{r['matches_together']} matches together, impact {_signed(r['win_impact'], '%')}"
            + ("" if r["statistical_significance"] else " (small sample)")
            for r in top
        ],
        x_max=MAX_WIN_RATE,
    )


def team_performance_chart(rows: Sequence[Row]) -> dict:
    """With/without comparison from ``team_performance_with_player`` rows."""
    labels = ["Win Rate (%)", "Goals Scored Avg", "Goals Conceded Avg"]
    return _chart(
        labels,
        [
            _dataset(
                r["scenario"],
                [r["win_rate"], r["goals_scored_avg"], r["goals_conceded_avg"]],
            )
            for r in rows
        ],
        [f"{r['scenario']}: {r['matches_played']} matches" for r in rows],
    )
