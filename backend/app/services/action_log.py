from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.models import ActionLog


def log_action(
    db: Session,
    *,
    category: str,
    action: str,
    details: Optional[dict[str, Any]] = None,
) -> None:
    payload = json.dumps(details, ensure_ascii=False, default=str) if details else None
    db.add(ActionLog(category=category, action=action, details=payload))
    db.commit()
