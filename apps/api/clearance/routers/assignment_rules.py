from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.deps import get_current_user, get_db, require_role
from clearance.models import TaskAssignmentRule, User
from clearance.schemas import AssignmentStatsOut, RuleIn, RuleOut
from clearance.serializers import rule_out
from clearance.services.assignment import get_assignment_stats, upsert_assignment_rule

router = APIRouter(tags=["assignment"])


@router.get("/assignment-rules", response_model=list[RuleOut])
async def list_rules(
  category: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[RuleOut]:
  q = select(TaskAssignmentRule).order_by(TaskAssignmentRule.category.asc(), TaskAssignmentRule.priority.asc())
  if category:
    q = q.where(TaskAssignmentRule.category == category.strip().upper())
  res = await db.execute(q)
  return [rule_out(r) for r in res.scalars().all()]


@router.post("/assignment-rules", response_model=RuleOut)
async def put_rule(payload: RuleIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> RuleOut:
  require_role(user, "ADMIN", "MANAGER")
  if payload.userId and not await db.get(User, payload.userId):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown userId")
  r = await upsert_assignment_rule(
    db,
    category=payload.category,
    role_target=payload.roleTarget,
    user_id=payload.userId,
    priority=payload.priority,
    description=payload.description,
    is_active=payload.isActive,
  )
  await write_audit(
    db,
    event_type="rule.upserted",
    entity_type="TaskAssignmentRule",
    entity_id=r.id,
    actor_id=user.id,
    payload=payload.model_dump(exclude_none=True),
  )
  await db.commit()
  return rule_out(r)


@router.delete("/assignment-rules/{rule_id}")
async def delete_rule(rule_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  require_role(user, "ADMIN", "MANAGER")
  r = await db.get(TaskAssignmentRule, rule_id)
  if not r:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
  await write_audit(db, event_type="rule.deleted", entity_type="TaskAssignmentRule", entity_id=r.id, actor_id=user.id, payload={"category": r.category})
  await db.delete(r)
  await db.commit()
  return {"ok": True}


@router.get("/assignment/stats", response_model=AssignmentStatsOut)
async def assignment_stats(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> AssignmentStatsOut:
  return AssignmentStatsOut(**await get_assignment_stats(db))
