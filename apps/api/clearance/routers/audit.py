from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.deps import get_current_user, get_db, require_role
from clearance.models import AuditEvent, User
from clearance.schemas import AuditEventOut

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditEventOut])
async def list_audit(
  projectId: str | None = None,
  taskId: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[AuditEventOut]:
  require_role(user, "ADMIN", "MANAGER")
  q = select(AuditEvent).order_by(AuditEvent.created_at.desc()).limit(200)
  if projectId:
    q = q.where(AuditEvent.project_id == projectId)
  if taskId:
    q = q.where(AuditEvent.task_id == taskId)
  res = await db.execute(q)
  return [
    AuditEventOut(
      id=ev.id,
      projectId=ev.project_id,
      taskId=ev.task_id,
      actorId=ev.actor_id,
      eventType=ev.event_type,
      entityType=ev.entity_type,
      entityId=ev.entity_id,
      payload=ev.payload,
      createdAt=ev.created_at,
    )
    for ev in res.scalars().all()
  ]
