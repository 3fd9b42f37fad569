from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.config import settings
from clearance.domain import ACTIVE_TASK_STATUSES
from clearance.errors import RuleTargetInvalid
from clearance.models import Task, TaskAssignmentRule, User

logger = logging.getLogger(__name__)

# Tried in order when no rule produced a candidate.
DEFAULT_CATEGORY_ROLES: dict[str, tuple[str, ...]] = {
  "DOCUMENTATION": ("CLERK", "MANAGER"),
  "CUSTOMS_DECLARATION": ("MANAGER", "ADMIN"),
  "PAYMENT": ("MANAGER", "ADMIN"),
  "INSPECTION": ("CLERK", "MANAGER"),
  "RELEASE": ("CLERK", "MANAGER"),
  "DELIVERY": ("CLERK", "MANAGER"),
  "GENERAL": ("CLERK", "MANAGER", "ADMIN"),
}


@dataclass(frozen=True)
class Candidate:
  id: str
  name: str


@dataclass(frozen=True)
class Assignee:
  user_id: str
  user_name: str | None
  reason: str


@dataclass
class AssignmentResult:
  task_id: str
  assigned_user_id: str | None
  assigned_user_name: str | None
  reason: str


async def active_task_loads(db: AsyncSession, user_ids: set[str] | None = None) -> Counter[str]:
  """
  Number of PENDING/IN_PROGRESS tasks listing each user id in assigned_to.

  With user_ids, only those users are counted.
  """
  res = await db.execute(select(Task.assigned_to).where(Task.status.in_(ACTIVE_TASK_STATUSES)))
  loads: Counter[str] = Counter()
  for (assigned,) in res.all():
    for uid in set(assigned or []):
      if user_ids is None or uid in user_ids:
        loads[uid] += 1
  return loads


async def _users_with_role(db: AsyncSession, role: str) -> list[Candidate]:
  res = await db.execute(
    select(User.id, User.name)
    .where(User.role == role, User.active.is_(True))
    .order_by(User.created_at.asc(), User.id.asc())
  )
  return [Candidate(id=r.id, name=r.name) for r in res.all()]


def _pick_least_loaded(users: list[Candidate], loads: Counter[str]) -> Candidate | None:
  if not users:
    return None
  # min() keeps the first of equal loads, so creation order breaks ties.
  return min(users, key=lambda u: loads.get(u.id, 0))


class LoadBalancer(Protocol):
  async def least_loaded(self, role: str) -> Candidate | None: ...

  def record(self, user_id: str) -> None: ...


class LiveLoadBalancer:
  """
  Re-reads task loads from the database on every lookup.

  Each lookup scans assigned_to of every active task, so a batch of n tasks
  costs n such scans. Use CountingLoadBalancer ("cached") for large batches.
  """

  def __init__(self, db: AsyncSession):
    self.db = db

  async def least_loaded(self, role: str) -> Candidate | None:
    users = await _users_with_role(self.db, role)
    if not users:
      return None
    return _pick_least_loaded(users, await active_task_loads(self.db, {u.id for u in users}))

  def record(self, user_id: str) -> None:
    # Nothing to do: the next lookup sees the flushed assignment.
    return None


class CountingLoadBalancer:
  """
  Seeds the load map once and keeps it current in memory.

  Only assignments made through ``record`` are reflected; writes by other
  sessions after seeding are not seen.
  """

  def __init__(self, db: AsyncSession):
    self.db = db
    self._loads: Counter[str] | None = None
    self._roles: dict[str, list[Candidate]] = {}

  async def least_loaded(self, role: str) -> Candidate | None:
    if self._loads is None:
      self._loads = await active_task_loads(self.db)
    if role not in self._roles:
      self._roles[role] = await _users_with_role(self.db, role)
    return _pick_least_loaded(self._roles[role], self._loads)

  def record(self, user_id: str) -> None:
    if self._loads is not None:
      self._loads[user_id] += 1


def balancer_for(db: AsyncSession, strategy: str | None = None) -> LoadBalancer:
  s = (strategy or settings.assignment_load_strategy).lower()
  if s == "cached":
    return CountingLoadBalancer(db)
  return LiveLoadBalancer(db)


async def get_assignment_rules(db: AsyncSession, category: str) -> list[TaskAssignmentRule]:
  res = await db.execute(
    select(TaskAssignmentRule)
    .where(TaskAssignmentRule.category == category, TaskAssignmentRule.is_active.is_(True))
    .order_by(TaskAssignmentRule.priority.asc(), TaskAssignmentRule.created_at.asc())
  )
  return list(res.scalars().all())


async def find_best_assignee(
  db: AsyncSession,
  category: str,
  project_team: list[str] | None = None,
  balancer: LoadBalancer | None = None,
) -> Assignee | None:
  """
  Resolve one assignee for a task category.

  Tiers, first hit wins: active rules by ascending priority (direct user if
  still active, then least-loaded user of the rule's role), the default role
  mapping for the category, then any existing member of the project team.
  """
  lb = balancer or LiveLoadBalancer(db)

  for rule in await get_assignment_rules(db, category):
    if rule.user_id:
      u = await db.get(User, rule.user_id)
      if u and u.active:
        return Assignee(u.id, u.name, f"Assigned by rule: {rule.description or category}")
    if rule.role_target:
      c = await lb.least_loaded(rule.role_target)
      if c:
        return Assignee(c.id, c.name, f"Auto-assigned to {rule.role_target} role (least loaded)")

  for role in DEFAULT_CATEGORY_ROLES.get(category, DEFAULT_CATEGORY_ROLES["GENERAL"]):
    c = await lb.least_loaded(role)
    if c:
      return Assignee(c.id, c.name, f"Auto-assigned to {role} (default mapping)")

  team = [t for t in (project_team or []) if t]
  if team:
    res = await db.execute(
      select(User.id, User.name).where(User.id.in_(team)).order_by(User.created_at.asc(), User.id.asc()).limit(1)
    )
    row = res.first()
    if row:
      return Assignee(row.id, row.name, "Assigned to project team member")

  return None


async def auto_assign_task(
  db: AsyncSession,
  task: Task,
  project_team: list[str] | None = None,
  balancer: LoadBalancer | None = None,
) -> AssignmentResult:
  if task.assigned_to:
    return AssignmentResult(task.id, task.assigned_to[0], None, "Already assigned")

  lb = balancer or LiveLoadBalancer(db)
  a = await find_best_assignee(db, task.category, project_team, lb)
  if not a:
    logger.debug("task %s (%s): no assignee", task.id, task.category)
    return AssignmentResult(task.id, None, None, "No suitable assignee found")

  task.assigned_to = [a.user_id]
  # Flushed per task so the next lookup in the batch counts this assignment.
  await db.flush()
  lb.record(a.user_id)
  logger.debug("task %s (%s) -> %s: %s", task.id, task.category, a.user_id, a.reason)
  return AssignmentResult(task.id, a.user_id, a.user_name, a.reason)


async def auto_assign_tasks(
  db: AsyncSession,
  tasks: list[Task],
  project_team: list[str] | None = None,
  balancer: LoadBalancer | None = None,
) -> list[AssignmentResult]:
  lb = balancer or balancer_for(db)
  out: list[AssignmentResult] = []
  for t in tasks:
    out.append(await auto_assign_task(db, t, project_team, lb))
  return out


async def get_assignment_stats(db: AsyncSession) -> dict:
  loads = await active_task_loads(db)
  res = await db.execute(select(User).order_by(User.created_at.asc(), User.id.asc()))
  user_loads = [
    {"userId": u.id, "userName": u.name, "role": u.role, "activeTasks": loads.get(u.id, 0)}
    for u in res.scalars().all()
  ]

  res = await db.execute(
    select(Task.category, func.count(Task.id))
    .where(Task.status.in_(ACTIVE_TASK_STATUSES))
    .group_by(Task.category)
    .order_by(Task.category.asc())
  )
  breakdown = [{"category": cat, "count": int(n)} for cat, n in res.all()]
  return {"userLoads": user_loads, "categoryBreakdown": breakdown}


async def upsert_assignment_rule(
  db: AsyncSession,
  *,
  category: str,
  role_target: str | None = None,
  user_id: str | None = None,
  priority: int | None = None,
  description: str | None = None,
  is_active: bool | None = None,
) -> TaskAssignmentRule:
  """
  Create or update the catch-all rule (no shipment type) for a category.

  Fields left as None keep their stored value on update.
  """
  res = await db.execute(
    select(TaskAssignmentRule)
    .where(TaskAssignmentRule.category == category, TaskAssignmentRule.shipment_type.is_(None))
    .order_by(TaskAssignmentRule.created_at.asc())
    .limit(1)
  )
  r = res.scalar_one_or_none()

  if r is None:
    if not user_id and not role_target:
      raise RuleTargetInvalid(category)
    r = TaskAssignmentRule(
      category=category,
      role_target=role_target,
      user_id=user_id,
      priority=priority if priority is not None else 100,
      description=description,
      is_active=is_active if is_active is not None else True,
    )
    db.add(r)
  else:
    if role_target is not None:
      r.role_target = role_target
    if user_id is not None:
      r.user_id = user_id
    if priority is not None:
      r.priority = priority
    if description is not None:
      r.description = description
    if is_active is not None:
      r.is_active = is_active
    if not r.user_id and not r.role_target:
      raise RuleTargetInvalid(category)

  await db.flush()
  return r
