from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from app.schemas.catalog import MatchOut, TeamOut

TeamType = Literal["club", "internal", "external"]
MatchType = Literal["internal_friendly", "external_game"]
Position = Literal["Goalkeeper", "Defender", "Midfielder", "Forward"]
StatValue = Union[int, str, None]


class AdminDashboardOut(BaseModel):
    players: int
    teams: int
    matches: int
    total_goals: int


class AdminTeamCreate(BaseModel):
    name: str
    primary_shirt_color: str
    secondary_shirt_color: Optional[str] = None
    team_type: TeamType = "club"
    founded_year: Optional[int] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool = True


class AdminTeamUpdate(BaseModel):
    name: Optional[str] = None
    primary_shirt_color: Optional[str] = None
    secondary_shirt_color: Optional[str] = None
    team_type: Optional[TeamType] = None
    founded_year: Optional[int] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None


class AdminPlayerCreate(BaseModel):
    name: str
    position: Optional[Position] = None
    team_id: Optional[int] = None
    jersey_number: Optional[int] = None
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None
    dominant_foot: Optional[str] = None
    birth_date: Optional[date] = None
    is_active: bool = True


class AdminPlayerUpdate(BaseModel):
    name: Optional[str] = None
    position: Optional[Position] = None
    team_id: Optional[int] = None
    jersey_number: Optional[int] = None
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None
    dominant_foot: Optional[str] = None
    birth_date: Optional[date] = None
    is_active: Optional[bool] = None


class AdminPlayerStatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_id: int
    goals: int
    assists: int
    own_goals: int
    minutes_played: int
    yellow_cards: int
    red_cards: int
    clean_sheet: bool


class AdminMatchCreate(BaseModel):
    match_date: Union[datetime, str]
    match_type: MatchType = "internal_friendly"
    venue: Optional[str] = None
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_team_name: Optional[str] = None
    away_team_name: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    attendance: Optional[int] = None
    weather_conditions: Optional[str] = None
    referee: Optional[str] = None
    notes: Optional[str] = None


class AdminMatchUpdate(BaseModel):
    match_date: Optional[Union[datetime, str]] = None
    venue: Optional[str] = None
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    attendance: Optional[int] = None
    weather_conditions: Optional[str] = None
    referee: Optional[str] = None
    notes: Optional[str] = None


class AssignmentPlayerOut(BaseModel):
    player_id: int
    name: str
    position: Optional[str] = None
    default_team_id: Optional[int] = None
    participated: bool
    team_id: Optional[int] = None


class AssignmentSheetOut(BaseModel):
    match: MatchOut
    teams: List[TeamOut]
    complete: bool
    players: List[AssignmentPlayerOut]


class AssignmentEntryIn(BaseModel):
    player_id: int
    participated: bool = True
    team_id: Optional[int] = None


class AssignmentSaveIn(BaseModel):
    entries: List[AssignmentEntryIn]


class AssignmentRowOut(BaseModel):
    player_id: int
    player_name: str
    team_id: int
    team_name: str


class AssignmentPatchIn(BaseModel):
    team_id: int


class StatsSheetEntryOut(BaseModel):
    player_id: int
    name: str
    position: Optional[str] = None
    team_id: Optional[int] = None
    has_stats: bool
    goals: int
    assists: int
    own_goals: int


class StatsSheetOut(BaseModel):
    match: MatchOut
    home: List[StatsSheetEntryOut]
    away: List[StatsSheetEntryOut]
    other: List[StatsSheetEntryOut]


class StatsEntryIn(BaseModel):
    player_id: int
    goals: StatValue = None
    assists: StatValue = None
    own_goals: StatValue = None


class StatsSaveIn(BaseModel):
    entries: List[StatsEntryIn]


class StatsSaveOut(BaseModel):
    ok: bool
    count: int
    skipped_unassigned: List[int] = []


class AdminActionLogOut(BaseModel):
    id: int
    category: str
    action: str
    created_at: datetime
    details: Optional[str] = None
