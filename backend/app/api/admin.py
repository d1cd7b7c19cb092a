from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.common import get_or_404, match_out, matches_out, player_out, team_name_map
from app.api.deps import require_admin
from app.db.session import get_db
from app.models import ActionLog, Match, Player, PlayerMatchStat, Team
from app.schemas.admin import (
    AdminActionLogOut,
    AdminDashboardOut,
    AdminMatchCreate,
    AdminMatchUpdate,
    AdminPlayerCreate,
    AdminPlayerStatOut,
    AdminPlayerUpdate,
    AdminTeamCreate,
    AdminTeamUpdate,
    AssignmentPatchIn,
    AssignmentRowOut,
    AssignmentSaveIn,
    AssignmentSheetOut,
    StatsSaveIn,
    StatsSaveOut,
    StatsSheetOut,
)
from app.schemas.catalog import MatchOut, PlayerOut, TeamOut
from app.services import match_workflow
from app.services.action_log import log_action
from app.services.matches import create_match, update_match
from app.services.validation import ValidationError, validate_player, validate_team

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        detail = "db_integrity_error"
        if exc.orig:
            detail = f"db_integrity_error: {exc.orig}"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"db_error: {exc}")


@router.get("/dashboard", response_model=AdminDashboardOut)
def dashboard(db: Session = Depends(get_db)) -> AdminDashboardOut:
    return AdminDashboardOut(
        players=db.execute(select(func.count()).select_from(Player)).scalar() or 0,
        teams=db.execute(select(func.count()).select_from(Team)).scalar() or 0,
        matches=db.execute(select(func.count()).select_from(Match)).scalar() or 0,
        total_goals=db.execute(select(func.coalesce(func.sum(PlayerMatchStat.goals), 0))).scalar()
        or 0,
    )


@router.get("/teams", response_model=List[TeamOut])
def list_teams(
    team_type: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[TeamOut]:
    query = select(Team).order_by(Team.name)
    if team_type:
        query = query.where(Team.team_type == team_type)
    return [TeamOut.model_validate(team) for team in db.execute(query).scalars().all()]


@router.post("/teams", response_model=TeamOut)
def create_team(payload: AdminTeamCreate, db: Session = Depends(get_db)) -> TeamOut:
    errors = validate_team(payload.name, payload.primary_shirt_color, payload.team_type)
    if errors:
        raise ValidationError(errors)
    values = payload.model_dump()
    values["name"] = payload.name.strip()
    team = Team(**values)
    db.add(team)
    _commit(db)
    log_action(db, category="teams", action="create", details={"team_id": team.id, "name": team.name})
    return TeamOut.model_validate(team)


@router.get("/teams/{team_id}", response_model=TeamOut)
def get_team(team_id: int, db: Session = Depends(get_db)) -> TeamOut:
    return TeamOut.model_validate(get_or_404(db, Team, team_id, "team_not_found"))


@router.put("/teams/{team_id}", response_model=TeamOut)
def update_team(team_id: int, payload: AdminTeamUpdate, db: Session = Depends(get_db)) -> TeamOut:
    team = get_or_404(db, Team, team_id, "team_not_found")
    values = payload.model_dump(exclude_unset=True)
    errors = validate_team(
        values.get("name", team.name),
        values.get("primary_shirt_color", team.primary_shirt_color),
        values.get("team_type", team.team_type),
    )
    if errors:
        raise ValidationError(errors)
    for key, value in values.items():
        setattr(team, key, value.strip() if key == "name" else value)
    _commit(db)
    log_action(db, category="teams", action="update", details={"team_id": team_id, **values})
    return TeamOut.model_validate(team)


@router.get("/players", response_model=List[PlayerOut])
def list_players(
    team_id: Optional[int] = Query(default=None),
    q: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[PlayerOut]:
    query = select(Player).order_by(Player.name)
    if team_id is not None:
        query = query.where(Player.team_id == team_id)
    if q:
        query = query.where(Player.name.ilike(f"%{q.strip()}%"))
    players = db.execute(query).scalars().all()
    names = team_name_map(db, [player.team_id for player in players])
    return [player_out(player, names) for player in players]


@router.post("/players", response_model=PlayerOut)
def create_player(payload: AdminPlayerCreate, db: Session = Depends(get_db)) -> PlayerOut:
    errors = validate_player(db, payload.name, payload.position, payload.team_id)
    if errors:
        raise ValidationError(errors)
    values = payload.model_dump()
    values["name"] = payload.name.strip()
    player = Player(**values)
    db.add(player)
    _commit(db)
    log_action(
        db, category="players", action="create", details={"player_id": player.id, "name": player.name}
    )
    return player_out(player, team_name_map(db, [player.team_id]))


@router.get("/players/{player_id}")
def get_player(player_id: int, db: Session = Depends(get_db)) -> dict:
    player = get_or_404(db, Player, player_id, "player_not_found")
    stats = db.execute(
        select(PlayerMatchStat)
        .where(PlayerMatchStat.player_id == player_id)
        .order_by(PlayerMatchStat.match_id)
    ).scalars().all()
    return {
        "player": player_out(player, team_name_map(db, [player.team_id])),
        "stats": [AdminPlayerStatOut.model_validate(stat) for stat in stats],
    }


@router.put("/players/{player_id}", response_model=PlayerOut)
def update_player(
    player_id: int,
    payload: AdminPlayerUpdate,
    db: Session = Depends(get_db),
) -> PlayerOut:
    player = get_or_404(db, Player, player_id, "player_not_found")
    values = payload.model_dump(exclude_unset=True)
    errors = validate_player(
        db,
        values.get("name", player.name),
        values.get("position", player.position),
        values.get("team_id", player.team_id),
    )
    if errors:
        raise ValidationError(errors)
    for key, value in values.items():
        setattr(player, key, value.strip() if key == "name" else value)
    _commit(db)
    log_action(db, category="players", action="update", details={"player_id": player_id, **values})
    return player_out(player, team_name_map(db, [player.team_id]))


@router.get("/matches", response_model=List[MatchOut])
def list_matches(
    match_type: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> List[MatchOut]:
    query = select(Match).order_by(Match.match_date.desc(), Match.id.desc()).limit(limit)
    if match_type:
        query = query.where(Match.match_type == match_type)
    return matches_out(db, db.execute(query).scalars().all())


@router.get("/matches/venues", response_model=List[str])
def list_venues(db: Session = Depends(get_db)) -> List[str]:
    rows = db.execute(
        select(Match.venue).where(Match.venue.is_not(None)).distinct().order_by(Match.venue)
    ).scalars().all()
    return [venue for venue in rows if venue.strip()]


@router.post("/matches", response_model=MatchOut)
def add_match(payload: AdminMatchCreate, db: Session = Depends(get_db)) -> MatchOut:
    values = payload.model_dump()
    match = create_match(db, **values)
    _commit(db)
    log_action(
        db,
        category="matches",
        action="create",
        details={"match_id": match.id, "match_type": match.match_type},
    )
    return match_out(match, team_name_map(db, [match.home_team_id, match.away_team_id]))


@router.get("/matches/{match_id}", response_model=MatchOut)
def get_match(match_id: int, db: Session = Depends(get_db)) -> MatchOut:
    match = get_or_404(db, Match, match_id, "match_not_found")
    return match_out(match, team_name_map(db, [match.home_team_id, match.away_team_id]))


@router.put("/matches/{match_id}", response_model=MatchOut)
def edit_match(match_id: int, payload: AdminMatchUpdate, db: Session = Depends(get_db)) -> MatchOut:
    match = get_or_404(db, Match, match_id, "match_not_found")
    values = payload.model_dump(exclude_unset=True)
    update_match(db, match, values)
    _commit(db)
    log_action(db, category="matches", action="update", details={"match_id": match_id, **values})
    return match_out(match, team_name_map(db, [match.home_team_id, match.away_team_id]))


@router.get("/matches/{match_id}/assignments", response_model=AssignmentSheetOut)
def get_assignment_sheet(match_id: int, db: Session = Depends(get_db)) -> AssignmentSheetOut:
    get_or_404(db, Match, match_id, "match_not_found")
    sheet = match_workflow.load_assignment_sheet(db, match_id)
    match = sheet["match"]
    return AssignmentSheetOut(
        match=match_out(match, {team.id: team.name for team in sheet["teams"]}),
        teams=[TeamOut.model_validate(team) for team in sheet["teams"]],
        complete=sheet["complete"],
        players=sheet["players"],
    )


@router.put("/matches/{match_id}/assignments", response_model=List[AssignmentRowOut])
def replace_assignments(
    match_id: int,
    payload: AssignmentSaveIn,
    db: Session = Depends(get_db),
) -> List[AssignmentRowOut]:
    get_or_404(db, Match, match_id, "match_not_found")
    try:
        match_workflow.save_assignments(db, match_id, payload.entries)
    except match_workflow.WorkflowWriteError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return match_workflow.list_assignment_rows(db, match_id)


@router.get("/matches/{match_id}/assignment-rows", response_model=List[AssignmentRowOut])
def list_assignment_rows(match_id: int, db: Session = Depends(get_db)) -> List[AssignmentRowOut]:
    get_or_404(db, Match, match_id, "match_not_found")
    return match_workflow.list_assignment_rows(db, match_id)


@router.patch("/matches/{match_id}/assignments/{player_id}", response_model=AssignmentRowOut)
def patch_assignment(
    match_id: int,
    player_id: int,
    payload: AssignmentPatchIn,
    db: Session = Depends(get_db),
) -> AssignmentRowOut:
    get_or_404(db, Match, match_id, "match_not_found")
    match_workflow.update_assignment(db, match_id, player_id, payload.team_id)
    rows = match_workflow.list_assignment_rows(db, match_id)
    return next(row for row in rows if row["player_id"] == player_id)


@router.get("/matches/{match_id}/stats", response_model=StatsSheetOut)
def get_stats_sheet(match_id: int, db: Session = Depends(get_db)) -> StatsSheetOut:
    match = get_or_404(db, Match, match_id, "match_not_found")
    sheet = match_workflow.load_stats_sheet(db, match_id)
    return StatsSheetOut(
        match=match_out(match, team_name_map(db, [match.home_team_id, match.away_team_id])),
        home=sheet["home"],
        away=sheet["away"],
        other=sheet["other"],
    )


@router.put("/matches/{match_id}/stats", response_model=StatsSaveOut)
def save_stats(match_id: int, payload: StatsSaveIn, db: Session = Depends(get_db)) -> StatsSaveOut:
    get_or_404(db, Match, match_id, "match_not_found")
    try:
        result = match_workflow.save_stats(db, match_id, payload.entries)
    except match_workflow.WorkflowWriteError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return StatsSaveOut(**result)


@router.get("/logs", response_model=List[AdminActionLogOut])
def list_logs(
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> List[AdminActionLogOut]:
    query = select(ActionLog).order_by(ActionLog.created_at.desc(), ActionLog.id.desc()).limit(limit)
    if category:
        query = query.where(ActionLog.category == category)
    return [
        AdminActionLogOut(
            id=log.id,
            category=log.category,
            action=log.action,
            created_at=log.created_at,
            details=log.details,
        )
        for log in db.execute(query).scalars().all()
    ]
