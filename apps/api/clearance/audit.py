from __future__ import annotations

import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.models import AuditEvent

logger = logging.getLogger(__name__)


async def write_audit(
  db: AsyncSession,
  *,
  event_type: str,
  entity_type: str,
  entity_id: str | None,
  project_id: str | None = None,
  task_id: str | None = None,
  actor_id: str | None = None,
  payload: dict[str, Any] | None = None,
) -> AuditEvent:
  """
  Stage an audit row in the caller's transaction.

  Nothing is written unless the caller commits, so a rolled back project
  cascade leaves no trail.
  """
  ev = AuditEvent(
    event_type=event_type,
    entity_type=entity_type,
    entity_id=entity_id,
    project_id=project_id,
    task_id=task_id,
    actor_id=actor_id,
    # Payloads carry datetimes and dataclass fields; keep them JSON-safe.
    payload=jsonable_encoder(payload or {}),
  )
  db.add(ev)
  logger.debug("audit %s %s:%s project=%s", event_type, entity_type, entity_id, project_id)
  return ev
