from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)

from app.db.base import Base


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False, unique=True)
    primary_shirt_color = Column(String(20), nullable=True)
    secondary_shirt_color = Column(String(20), nullable=True)
    team_type = Column(String(20), nullable=False, server_default="club")
    founded_year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    logo_url = Column(String(255), nullable=True)
    external_id = Column(String(80), nullable=True, unique=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Player(Base):
    __tablename__ = "players"
    __table_args__ = (UniqueConstraint("name", "team_id", name="uq_players_name_team"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    position = Column(String(20), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True, index=True)
    jersey_number = Column(Integer, nullable=True)
    height_cm = Column(Integer, nullable=True)
    weight_kg = Column(Integer, nullable=True)
    dominant_foot = Column(String(10), nullable=True)
    birth_date = Column(Date, nullable=True)
    external_id = Column(String(80), nullable=True, unique=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True)
    match_date = Column(DateTime(timezone=True), nullable=False, index=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    venue = Column(String(120), nullable=True)
    match_type = Column(String(30), nullable=False, server_default="internal_friendly")
    attendance = Column(Integer, nullable=True)
    weather_conditions = Column(String(120), nullable=True)
    referee = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)
    external_id = Column(String(80), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PlayerMatchStat(Base):
    __tablename__ = "player_match_stats"
    __table_args__ = (UniqueConstraint("player_id", "match_id", name="uq_stats_player_match"),)

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    goals = Column(Integer, nullable=False, default=0, server_default="0")
    assists = Column(Integer, nullable=False, default=0, server_default="0")
    own_goals = Column(Integer, nullable=False, default=0, server_default="0")
    minutes_played = Column(Integer, nullable=False, default=0, server_default="0")
    shots_total = Column(Integer, nullable=True)
    shots_on_target = Column(Integer, nullable=True)
    passes = Column(Integer, nullable=True)
    key_passes = Column(Integer, nullable=True)
    yellow_cards = Column(Integer, nullable=False, default=0, server_default="0")
    red_cards = Column(Integer, nullable=False, default=0, server_default="0")
    xg = Column(Numeric(5, 2), nullable=True)
    tackles = Column(Integer, nullable=True)
    interceptions = Column(Integer, nullable=True)
    clean_sheet = Column(Boolean, nullable=False, default=False, server_default=false())
    external_id = Column(String(80), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PlayerMatchAssignment(Base):
    __tablename__ = "player_match_assignments"
    __table_args__ = (
        UniqueConstraint("player_id", "match_id", name="uq_assignments_player_match"),
    )

    id = Column(Integer, primary_key=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ActionLog(Base):
    __tablename__ = "action_logs"

    id = Column(Integer, primary_key=True)
    category = Column(String(30), nullable=False)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
