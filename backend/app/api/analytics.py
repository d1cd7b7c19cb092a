from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.common import get_or_404, player_out, team_name_map
from app.db.session import get_db
from app.models import Player, Team
from app.schemas.analytics import (
    ChartOut,
    LeaderboardsOut,
    PlayerCombinationOut,
    PlayerDiagnosticOut,
    PlayerGoalsAssistsOut,
    PlayerStatisticsOut,
    TeamCombinationOut,
    TeamImpactOut,
    TeamPerformanceOut,
)
from app.schemas.catalog import TeamStatisticsOut, TopScorerOut
from app.services import charts
from app.services.impact import (
    player_all_teams_impact,
    player_combinations,
    player_diagnostic,
    player_team_combinations,
    team_performance_with_player,
)
from app.services.statistics import (
    all_player_statistics,
    player_statistics,
    simplified_leaderboards,
    team_statistics,
    top_scorers,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])

Scope = Literal["internal", "club", "all"]


@router.get("/team-statistics", response_model=List[TeamStatisticsOut])
def get_team_statistics(scope: Scope = "all", db: Session = Depends(get_db)) -> List[dict]:
    return team_statistics(db, scope)


@router.get("/player-statistics", response_model=List[PlayerGoalsAssistsOut])
def get_all_player_statistics(scope: Scope = "all", db: Session = Depends(get_db)) -> List[dict]:
    return all_player_statistics(db, scope)


@router.get("/players/{player_id}/statistics", response_model=PlayerStatisticsOut)
def get_player_statistics(
    player_id: int,
    scope: Scope = "all",
    db: Session = Depends(get_db),
) -> dict:
    get_or_404(db, Player, player_id, "player_not_found")
    return player_statistics(db, player_id, scope)


@router.get("/top-scorers", response_model=List[TopScorerOut])
def get_top_scorers(
    scope: Scope = "all",
    team_id: Optional[int] = None,
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> List[dict]:
    return top_scorers(db, scope, limit=limit, team_id=team_id)


@router.get("/leaderboards", response_model=LeaderboardsOut)
def get_leaderboards(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> dict:
    return simplified_leaderboards(db, limit=limit)


@router.get("/players/{player_id}/team-impact", response_model=List[TeamImpactOut])
def get_player_team_impact(player_id: int, db: Session = Depends(get_db)) -> List[dict]:
    get_or_404(db, Player, player_id, "player_not_found")
    return player_all_teams_impact(db, player_id)


@router.get("/players/{player_id}/team-combinations", response_model=List[TeamCombinationOut])
def get_player_team_combinations(
    player_id: int,
    team_id: Optional[int] = None,
    db: Session = Depends(get_db),
) -> List[dict]:
    get_or_404(db, Player, player_id, "player_not_found")
    return player_team_combinations(db, player_id, team_id)


@router.get("/players/{player_id}/team-performance", response_model=List[TeamPerformanceOut])
def get_team_performance_with_player(
    player_id: int,
    team_id: int,
    db: Session = Depends(get_db),
) -> List[dict]:
    get_or_404(db, Player, player_id, "player_not_found")
    get_or_404(db, Team, team_id, "team_not_found")
    return team_performance_with_player(db, player_id, team_id)


@router.get("/player-combinations", response_model=List[PlayerCombinationOut])
def get_player_combinations(
    min_matches: int = Query(default=3, ge=1),
    as_opponents: bool = False,
    db: Session = Depends(get_db),
) -> List[dict]:
    return player_combinations(db, min_matches, as_opponents=as_opponents)


@router.get("/players/{player_id}/diagnostic", response_model=PlayerDiagnosticOut)
def get_player_diagnostic(player_id: int, db: Session = Depends(get_db)) -> PlayerDiagnosticOut:
    player = get_or_404(db, Player, player_id, "player_not_found")
    report = player_diagnostic(db, player)
    return PlayerDiagnosticOut(
        player=player_out(player, team_name_map(db, [player.team_id])),
        **report,
    )


@router.get("/charts/leaderboards")
def get_leaderboard_charts(db: Session = Depends(get_db)) -> dict:
    boards = simplified_leaderboards(db)
    return {
        "top_scorers": ChartOut(**charts.top_scorers_chart(boards["top_scorers"])),
        "top_assists": ChartOut(**charts.top_assists_chart(boards["top_assists"])),
        "goalkeepers": ChartOut(**charts.goalkeeper_chart(boards["top_goalkeepers"])),
    }


@router.get("/charts/teams")
def get_team_charts(scope: Scope = "internal", db: Session = Depends(get_db)) -> dict:
    rows = team_statistics(db, scope)
    return {
        "points": ChartOut(**charts.team_points_chart(rows)),
        "goals": ChartOut(**charts.team_goals_chart(rows)),
        "radar": ChartOut(**charts.team_performance_radar(rows)),
    }


@router.get("/charts/players/{player_id}")
def get_player_charts(
    player_id: int,
    team_id: Optional[int] = None,
    db: Session = Depends(get_db),
) -> dict:
    get_or_404(db, Player, player_id, "player_not_found")
    impact = player_all_teams_impact(db, player_id)
    result = {
        "team_impact": ChartOut(**charts.multi_team_impact_chart(impact)),
        "win_impact": ChartOut(**charts.win_impact_chart(impact)),
        "teammates": ChartOut(
            **charts.team_combinations_chart(player_team_combinations(db, player_id, team_id))
        ),
    }
    if team_id is not None:
        result["team_performance"] = ChartOut(
            **charts.team_performance_chart(team_performance_with_player(db, player_id, team_id))
        )
    return result


@router.get("/charts/player-combinations")
def get_player_combination_charts(
    min_matches: int = Query(default=3, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
) -> dict:
    rows = player_combinations(db, min_matches)
    rivals = player_combinations(db, min_matches, as_opponents=True)
    return {
        "together": ChartOut(**charts.player_combinations_chart(rows, min_matches, limit)),
        "rivals": ChartOut(**charts.player_rivals_chart(rivals, limit)),
    }
