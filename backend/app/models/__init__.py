from app.models.tables import (
    ActionLog,
    Match,
    Player,
    PlayerMatchAssignment,
    PlayerMatchStat,
    Team,
)

__all__ = [
    "ActionLog",
    "Match",
    "Player",
    "PlayerMatchAssignment",
    "PlayerMatchStat",
    "Team",
]
