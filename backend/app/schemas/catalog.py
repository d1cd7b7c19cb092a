from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    primary_shirt_color: Optional[str] = None
    secondary_shirt_color: Optional[str] = None
    team_type: str
    founded_year: Optional[int] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool = True


class PlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    position: Optional[str] = None
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    jersey_number: Optional[int] = None
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None
    dominant_foot: Optional[str] = None
    birth_date: Optional[date] = None
    is_active: bool = True


class MatchOut(BaseModel):
    id: int
    match_date: datetime
    match_type: str
    home_team_id: Optional[int] = None
    home_team_name: Optional[str] = None
    away_team_id: Optional[int] = None
    away_team_name: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    venue: Optional[str] = None
    attendance: Optional[int] = None
    weather_conditions: Optional[str] = None
    referee: Optional[str] = None
    notes: Optional[str] = None


class MatchPlayerStatOut(BaseModel):
    player_id: int
    player_name: str
    position: Optional[str] = None
    team_id: Optional[int] = None
    goals: int
    assists: int
    own_goals: int
    minutes_played: int
    yellow_cards: int
    red_cards: int
    clean_sheet: bool


class MatchDetailOut(BaseModel):
    match: MatchOut
    home_players: List[MatchPlayerStatOut]
    away_players: List[MatchPlayerStatOut]
    other_players: List[MatchPlayerStatOut]


class PlayerMatchLogOut(BaseModel):
    match_id: int
    match_date: datetime
    match_type: str
    opponent_name: Optional[str] = None
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    result: Optional[str] = None
    goals: int = 0
    assists: int = 0
    own_goals: int = 0


class PlayerScopeStatsOut(BaseModel):
    matches_played: int
    goals: int
    assists: int
    own_goals: int
    clean_sheets: int
    weighted_goals: int
    weighted_assists: int


class PlayerDetailOut(BaseModel):
    player: PlayerOut
    internal: PlayerScopeStatsOut
    club: PlayerScopeStatsOut
    overall: PlayerScopeStatsOut
    matches: List[PlayerMatchLogOut]


class TeamStatisticsOut(BaseModel):
    id: int
    name: str
    matches_played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int


class TopScorerOut(BaseModel):
    player_id: int
    player_name: str
    team_id: Optional[int] = None
    goals: int
    assists: int
    matches_played: int


class TeamDetailOut(BaseModel):
    team: TeamOut
    statistics: Optional[TeamStatisticsOut] = None
    players: List[PlayerOut]
    top_scorers: List[TopScorerOut]
    recent_matches: List[MatchOut]
