from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import Team

logger = logging.getLogger(__name__)

TEAM_COLOR_MAP = {
    "Light Blue": "#79DBFB",
    "Red": "#FF6188",
    "Black": "#000000",
    "FCB United": "#5050f0",
}
DEFAULT_TEAM_COLOR = "#808080"


def color_for_team(name: Optional[str]) -> str:
    if not name:
        return DEFAULT_TEAM_COLOR
    return TEAM_COLOR_MAP.get(name.strip(), DEFAULT_TEAM_COLOR)


def get_or_create_team(
    db: Session,
    name: str,
    team_type: str,
    primary_shirt_color: Optional[str] = None,
) -> Team:
    """Look a team up by name, creating it with `team_type` on first use.

    Team names are unique, so an existing row is reused whatever its type.
    Flushes but does not commit so the caller can keep the match insert in
    the same transaction.
    """
    clean_name = name.strip()
    team = db.execute(select(Team).where(Team.name == clean_name)).scalar_one_or_none()
    if team:
        return team
    team = Team(
        name=clean_name,
        team_type=team_type,
        primary_shirt_color=primary_shirt_color or color_for_team(clean_name),
        is_active=True,
    )
    db.add(team)
    db.flush()
    logger.info("team_created name=%s team_type=%s id=%s", clean_name, team_type, team.id)
    return team


def ensure_club_team(db: Session) -> Team:
    settings = get_settings()
    return get_or_create_team(db, settings.CLUB_TEAM_NAME, "club")
