from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.catalog import PlayerOut


class PlayerStatisticsOut(BaseModel):
    matches_played: int
    goals: int
    assists: int
    own_goals: int
    clean_sheets: int
    weighted_goals: int
    weighted_assists: int


class PlayerGoalsAssistsOut(BaseModel):
    player_id: int
    player_name: str
    goals: int
    assists: int


class LeaderboardScorerOut(BaseModel):
    player_id: int
    player_name: str
    matches_played: int
    goals: int
    weighted_goals: int


class LeaderboardAssistOut(BaseModel):
    player_id: int
    player_name: str
    matches_played: int
    assists: int
    weighted_assists: int


class LeaderboardGoalkeeperOut(BaseModel):
    player_id: int
    player_name: str
    matches_played: int
    clean_sheets: int
    clean_sheet_percentage: float


class LeaderboardsOut(BaseModel):
    top_scorers: List[LeaderboardScorerOut]
    top_assists: List[LeaderboardAssistOut]
    top_goalkeepers: List[LeaderboardGoalkeeperOut]


class TeamPerformanceOut(BaseModel):
    scenario: str
    matches_played: int
    wins: int
    draws: int
    losses: int
    win_rate: float
    goals_scored_avg: float
    goals_conceded_avg: float


class TeamImpactOut(BaseModel):
    team_id: int
    team_name: str
    matches_played: int
    wins: int
    draws: int
    losses: int
    win_rate: float
    goals_per_game: float
    assists_per_game: float
    team_win_rate_with_player: float
    team_win_rate_without_player: float
    impact_score: float
    statistical_significance: bool


class TeamCombinationOut(BaseModel):
    teammate_id: int
    teammate_name: str
    team_id: int
    team_name: str
    matches_together: int
    win_rate_together: float
    win_rate_without: float
    win_impact: float
    goals_per_match_together: float
    goals_per_match_without: float
    goal_impact: float
    statistical_significance: bool


class PlayerCombinationOut(BaseModel):
    player1_id: int
    player1_name: str
    player2_id: int
    player2_name: str
    total_matches: int
    win_matches: int
    draw_matches: int
    loss_matches: int
    win_rate: float
    matches_as_opponents: int = 0
    win_rate_as_opponents: Optional[float] = None


class ChartDatasetOut(BaseModel):
    label: str
    data: List[float]
    colors: Optional[List[str]] = None


class ChartOut(BaseModel):
    labels: List[str]
    datasets: List[ChartDatasetOut]
    tooltips: List[str] = []
    x_max: Optional[float] = None


class DiagnosticAssignmentOut(BaseModel):
    match_id: int
    match_date: datetime
    match_type: str
    team_id: int
    team_name: str


class DiagnosticStatOut(BaseModel):
    match_id: int
    goals: int
    assists: int
    own_goals: int
    minutes_played: int


class DiagnosticTeamPerformanceOut(BaseModel):
    team_id: int
    team_name: str
    rows: List[TeamPerformanceOut]


class PlayerDiagnosticOut(BaseModel):
    player: PlayerOut
    assignments: List[DiagnosticAssignmentOut]
    stats: List[DiagnosticStatOut]
    team_performance: List[DiagnosticTeamPerformanceOut]
