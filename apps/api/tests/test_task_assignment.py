from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from clearance.errors import RuleTargetInvalid
from clearance.models import Task, TaskAssignmentRule
from clearance.services.assignment import (
  CountingLoadBalancer,
  LiveLoadBalancer,
  active_task_loads,
  auto_assign_task,
  auto_assign_tasks,
  balancer_for,
  find_best_assignee,
  get_assignment_stats,
  upsert_assignment_rule,
)

from conftest import create_user


async def _add_tasks(db, owner: str, n: int, *, category: str = "DOCUMENTATION", assigned_to=None, status: str = "PENDING"):
  tasks = [
    Task(title=f"t{i}", category=category, status=status, assigned_to=list(assigned_to or []), user_id=owner)
    for i in range(n)
  ]
  db.add_all(tasks)
  await db.flush()
  return tasks


def test_balancer_strategy_selection() -> None:
  assert isinstance(balancer_for(None, "cached"), CountingLoadBalancer)
  assert isinstance(balancer_for(None, "LIVE"), LiveLoadBalancer)
  assert isinstance(balancer_for(None, "anything"), LiveLoadBalancer)


@pytest.mark.anyio
async def test_rules_apply_in_priority_order(db) -> None:
  first = await create_user("first@example.com", "CLERK")
  second = await create_user("second@example.com", "CLERK")
  db.add_all(
    [
      TaskAssignmentRule(category="PAYMENT", user_id=second, priority=20, description="backup payer"),
      TaskAssignmentRule(category="PAYMENT", user_id=first, priority=10, description="primary payer"),
    ]
  )
  await db.flush()

  a = await find_best_assignee(db, "PAYMENT")
  assert a.user_id == first
  assert a.reason == "Assigned by rule: primary payer"


@pytest.mark.anyio
async def test_inactive_rules_are_ignored(db) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  other = await create_user("other@example.com", "CLERK")
  db.add(TaskAssignmentRule(category="RELEASE", user_id=other, priority=1, is_active=False))
  await db.flush()

  a = await find_best_assignee(db, "RELEASE")
  assert a.user_id == clerk
  assert a.reason == "Auto-assigned to CLERK (default mapping)"


@pytest.mark.anyio
async def test_rule_for_disabled_user_falls_through(db) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  gone = await create_user("gone@example.com", "CLERK", active=False)
  db.add(TaskAssignmentRule(category="DOCUMENTATION", user_id=gone, priority=1))
  await db.flush()

  a = await find_best_assignee(db, "DOCUMENTATION")
  assert a.user_id == clerk
  assert a.reason == "Auto-assigned to CLERK (default mapping)"


@pytest.mark.anyio
async def test_role_rule_picks_least_loaded_member(db) -> None:
  busy = await create_user("busy@example.com", "MANAGER")
  idle = await create_user("idle@example.com", "MANAGER")
  await _add_tasks(db, busy, 2, assigned_to=[busy])
  # Finished work does not count towards load.
  await _add_tasks(db, idle, 3, assigned_to=[idle], status="DONE")
  db.add(TaskAssignmentRule(category="INSPECTION", role_target="MANAGER", priority=5))
  await db.flush()

  a = await find_best_assignee(db, "INSPECTION")
  assert a.user_id == idle
  assert a.reason == "Auto-assigned to MANAGER role (least loaded)"


@pytest.mark.anyio
async def test_role_rule_without_users_falls_through(db) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  db.add(TaskAssignmentRule(category="DELIVERY", role_target="ADMIN", priority=1))
  await db.flush()

  a = await find_best_assignee(db, "DELIVERY")
  assert a.user_id == clerk
  assert a.reason == "Auto-assigned to CLERK (default mapping)"


@pytest.mark.anyio
async def test_default_mapping_tries_roles_in_order(db) -> None:
  admin = await create_user("admin@example.com", "ADMIN")
  # CUSTOMS_DECLARATION prefers MANAGER; there is none, so ADMIN is next.
  a = await find_best_assignee(db, "CUSTOMS_DECLARATION")
  assert a.user_id == admin
  assert a.reason == "Auto-assigned to ADMIN (default mapping)"

  # No CLERK or MANAGER for DOCUMENTATION and ADMIN is not in its mapping.
  assert await find_best_assignee(db, "DOCUMENTATION") is None


@pytest.mark.anyio
async def test_unknown_category_uses_general_mapping(db) -> None:
  manager = await create_user("manager@example.com", "MANAGER")
  a = await find_best_assignee(db, "SOMETHING_NEW")
  assert a.user_id == manager
  assert a.reason == "Auto-assigned to MANAGER (default mapping)"


@pytest.mark.anyio
async def test_team_member_is_last_resort(db) -> None:
  viewer = await create_user("viewer@example.com", "VIEWER")
  retired = await create_user("retired@example.com", "CLERK", active=False)

  a = await find_best_assignee(db, "DOCUMENTATION", project_team=["", retired, viewer])
  assert a.user_id == viewer
  assert a.reason == "Assigned to project team member"

  assert await find_best_assignee(db, "DOCUMENTATION", project_team=[str(uuid.uuid4())]) is None


@pytest.mark.anyio
async def test_auto_assign_reports_no_assignee(db) -> None:
  owner = await create_user("viewer@example.com", "VIEWER")
  (t,) = await _add_tasks(db, owner, 1)
  r = await auto_assign_task(db, t)
  assert r.assigned_user_id is None
  assert r.reason == "No suitable assignee found"
  assert t.assigned_to == []


@pytest.mark.anyio
async def test_auto_assign_leaves_assigned_tasks_alone(db) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  other = await create_user("other@example.com", "VIEWER")
  (t,) = await _add_tasks(db, clerk, 1, assigned_to=[other])
  r = await auto_assign_task(db, t)
  assert r.assigned_user_id == other
  assert r.reason == "Already assigned"
  assert t.assigned_to == [other]


@pytest.mark.anyio
@pytest.mark.parametrize("strategy", ["live", "cached"])
async def test_batch_spreads_work_between_equal_users(db, strategy) -> None:
  c1 = await create_user("c1@example.com", "CLERK")
  c2 = await create_user("c2@example.com", "CLERK")
  tasks = await _add_tasks(db, c1, 4)

  results = await auto_assign_tasks(db, tasks, balancer=balancer_for(db, strategy))
  assert [r.assigned_user_id for r in results] == [c1, c2, c1, c2]
  assert all(r.reason == "Auto-assigned to CLERK (default mapping)" for r in results)
  assert [t.assigned_to for t in tasks] == [[c1], [c2], [c1], [c2]]


@pytest.mark.anyio
async def test_batch_accounts_for_existing_load(db) -> None:
  c1 = await create_user("c1@example.com", "CLERK")
  c2 = await create_user("c2@example.com", "CLERK")
  await _add_tasks(db, c1, 2, assigned_to=[c1])
  tasks = await _add_tasks(db, c1, 3)

  results = await auto_assign_tasks(db, tasks, balancer=balancer_for(db, "cached"))
  assert [r.assigned_user_id for r in results] == [c2, c2, c1]


@pytest.mark.anyio
async def test_upsert_rule_updates_in_place(db) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")

  r1 = await upsert_assignment_rule(db, category="PAYMENT", role_target="MANAGER")
  assert r1.priority == 100
  assert r1.is_active is True

  r2 = await upsert_assignment_rule(db, category="PAYMENT", user_id=clerk, priority=5, description="cashier")
  assert r2.id == r1.id
  assert r2.role_target == "MANAGER"
  assert r2.user_id == clerk
  assert r2.priority == 5

  res = await db.execute(select(TaskAssignmentRule).where(TaskAssignmentRule.category == "PAYMENT"))
  assert len(res.scalars().all()) == 1


@pytest.mark.anyio
async def test_upsert_rule_needs_a_target(db) -> None:
  with pytest.raises(RuleTargetInvalid) as ei:
    await upsert_assignment_rule(db, category="RELEASE", priority=1)
  assert ei.value.category == "RELEASE"
  assert ei.value.message == "Rule needs a userId or roleTarget"


@pytest.mark.anyio
async def test_assignment_stats(db) -> None:
  c1 = await create_user("c1@example.com", "CLERK", name="Amal")
  c2 = await create_user("c2@example.com", "MANAGER", name="Badr")
  await _add_tasks(db, c1, 2, category="PAYMENT", assigned_to=[c1])
  await _add_tasks(db, c1, 1, category="DOCUMENTATION", assigned_to=[c1, c2], status="IN_PROGRESS")
  await _add_tasks(db, c1, 4, category="RELEASE", assigned_to=[c2], status="DONE")

  stats = await get_assignment_stats(db)
  assert stats["userLoads"] == [
    {"userId": c1, "userName": "Amal", "role": "CLERK", "activeTasks": 3},
    {"userId": c2, "userName": "Badr", "role": "MANAGER", "activeTasks": 1},
  ]
  assert stats["categoryBreakdown"] == [
    {"category": "DOCUMENTATION", "count": 1},
    {"category": "PAYMENT", "count": 2},
  ]


@pytest.mark.anyio
async def test_active_loads_can_be_limited_to_candidates(db) -> None:
  c1 = await create_user("c1@example.com", "CLERK")
  c2 = await create_user("c2@example.com", "CLERK")
  await _add_tasks(db, c1, 2, assigned_to=[c1, c2])
  await _add_tasks(db, c1, 1, assigned_to=[c2])

  assert await active_task_loads(db) == {c1: 2, c2: 3}
  assert await active_task_loads(db, {c2}) == {c2: 3}
