from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_db
from app.schemas.imports import ImportRequest, ImportResultOut
from app.services import importer
from app.services.validation import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["import"], dependencies=[Depends(require_admin)])


def _bad_request(detail: str, errors: list[str] | None = None) -> JSONResponse:
    content: dict = {"detail": detail}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


def _server_error(exc: Exception, route: str) -> JSONResponse:
    logger.exception("import_failed route=%s", route)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc) or "server_error"},
    )


def _respond(result: importer.ImportResult):
    if result.rejected:
        return _bad_request(result.message, result.errors)
    return ImportResultOut(**result.as_dict())


@router.post("/import-data", response_model=ImportResultOut)
def import_data(payload: ImportRequest, db: Session = Depends(get_db)):
    if not payload.data_type or not payload.data:
        return _bad_request("Missing required fields: dataType and data")
    if payload.data_type not in importer.DATA_TYPES:
        return _bad_request(f"Invalid dataType: {payload.data_type}")
    try:
        result = importer.import_csv(
            db,
            payload.data_type,
            payload.data,
            dry_run=payload.dry_run,
            skip_duplicates=payload.skip_duplicates,
        )
    except ValidationError as exc:
        return _bad_request("validation_failed", exc.errors)
    except Exception as exc:
        return _server_error(exc, "import-data")
    return _respond(result)


@router.post("/import-players-by-team-name", response_model=ImportResultOut)
def import_players_by_team_name(payload: ImportRequest, db: Session = Depends(get_db)):
    if not payload.data:
        return _bad_request("Missing required field: data")
    try:
        result = importer.import_players_by_team_name(
            db,
            importer.parse_csv(payload.data),
            dry_run=payload.dry_run,
            skip_duplicates=payload.skip_duplicates,
        )
    except ValidationError as exc:
        return _bad_request("validation_failed", exc.errors)
    except Exception as exc:
        return _server_error(exc, "import-players-by-team-name")
    return _respond(result)


@router.post("/import-teams-simplified", response_model=ImportResultOut)
def import_teams_simplified(payload: ImportRequest, db: Session = Depends(get_db)):
    if not payload.data:
        return _bad_request("Missing required field: data")
    try:
        result = importer.import_teams_simplified(
            db,
            importer.parse_csv(payload.data, comments=True),
            dry_run=payload.dry_run,
            skip_duplicates=payload.skip_duplicates,
        )
    except ValidationError as exc:
        return _bad_request("validation_failed", exc.errors)
    except Exception as exc:
        return _server_error(exc, "import-teams-simplified")
    return _respond(result)
