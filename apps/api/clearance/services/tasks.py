from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.errors import ProjectNotFound
from clearance.models import Project, Task
from clearance.services.activities import group_activities, normalize_activities
from clearance.services.templates import DEFAULT_TASKS, map_stage_to_category, map_stage_to_tracking_stage

logger = logging.getLogger(__name__)


@dataclass
class TaskSyncResult:
  project_id: str
  name: str
  success: bool
  message: str
  count: int = 0


@dataclass
class SyncSummary:
  message: str
  total_tasks: int
  results: list[TaskSyncResult] = field(default_factory=list)


def activity_task_rows(project: Project, user_id: str) -> list[dict[str, Any]]:
  """One task row per shipmentType-stage-substage group of the project's activities."""
  rows: list[dict[str, Any]] = []
  for g in group_activities(normalize_activities(project.activities)):
    rows.append(
      {
        "title": g.title,
        "project": project.customer,
        "project_id": project.id,
        "status": "PENDING",
        "priority": "MEDIUM",
        "category": map_stage_to_category(g.stage),
        "tracking_stage_type": map_stage_to_tracking_stage(g.stage),
        "description": f"{g.title} - {g.stage} for {project.customer}",
        "label": g.stage,
        "duration": "4h",
        "assigned_to": list(project.team or []),
        "linked_activity": g.linked_activity(project.id),
        "user_id": user_id,
      }
    )
  return rows


def default_task_rows(project: Project, user_id: str) -> list[dict[str, Any]]:
  rows: list[dict[str, Any]] = []
  for idx, t in enumerate(DEFAULT_TASKS):
    rows.append(
      {
        "title": t.title,
        "project": project.customer,
        "project_id": project.id,
        "status": "PENDING",
        "priority": "MEDIUM",
        "category": t.category,
        "tracking_stage_type": t.stage,
        "description": f"{t.title} for {project.customer}",
        "label": t.category,
        "duration": "2h",
        "assigned_to": list(project.team or []),
        "date": project.start_date + timedelta(days=idx) if project.start_date else None,
        "user_id": user_id,
      }
    )
  return rows


async def _insert_tasks(db: AsyncSession, rows: list[dict[str, Any]]) -> int:
  if not rows:
    return 0
  await db.execute(insert(Task), rows)
  return len(rows)


async def generate_tasks_with_categories(db: AsyncSession, project: Project, user_id: str) -> int:
  """
  Materialize the project's tasks inside the caller's transaction.

  Projects without activities get the default clearance template instead.
  Returns the number of tasks created; zero is a valid outcome.
  """
  if not normalize_activities(project.activities):
    count = await _insert_tasks(db, default_task_rows(project, user_id))
    logger.info("project %s: %d default tasks created", project.id, count)
    return count
  count = await _insert_tasks(db, activity_task_rows(project, user_id))
  logger.info("project %s: %d tasks created from activities", project.id, count)
  return count


async def delete_generated_tasks(db: AsyncSession, project_id: str) -> int:
  res = await db.execute(
    delete(Task)
    .where(Task.linked_activity["projectId"].as_string() == project_id)
    .execution_options(synchronize_session="fetch")
  )
  return int(res.rowcount or 0)


async def regenerate_project_tasks(db: AsyncSession, project_id: str, actor_id: str) -> TaskSyncResult:
  """
  Rebuild a project's activity-generated tasks.

  Previously generated tasks (matched on linked_activity.projectId) are deleted
  first, so repeated runs converge on the same task set. Does not commit.
  """
  res = await db.execute(select(Project).where(Project.id == project_id))
  project = res.scalar_one_or_none()
  if not project:
    raise ProjectNotFound(project_id)

  if not normalize_activities(project.activities):
    return TaskSyncResult(project_id=project.id, name=project.customer, success=True, message="No activities to generate tasks from")

  deleted = await delete_generated_tasks(db, project.id)
  rows = activity_task_rows(project, actor_id)
  if not rows:
    return TaskSyncResult(project_id=project.id, name=project.customer, success=True, message="No tasks to create after grouping")

  count = await _insert_tasks(db, rows)
  logger.info("project %s: regenerated %d tasks (%d removed)", project.id, count, deleted)
  return TaskSyncResult(
    project_id=project.id,
    name=project.customer,
    success=True,
    message=f"Created {count} tasks from {project.customer}",
    count=count,
  )


async def sync_all_projects(db: AsyncSession, actor_id: str) -> SyncSummary:
  res = await db.execute(select(Project).order_by(Project.created_at.asc()))
  projects = res.scalars().all()
  if not projects:
    return SyncSummary(message="No projects to sync", total_tasks=0)

  results: list[TaskSyncResult] = []
  for p in projects:
    try:
      async with db.begin_nested():
        results.append(await regenerate_project_tasks(db, p.id, actor_id))
    except Exception as exc:
      logger.warning("task sync failed for project %s: %s", p.id, exc)
      results.append(TaskSyncResult(project_id=p.id, name=p.customer, success=False, message=str(exc) or "Unknown error"))

  total = sum(r.count for r in results)
  ok = sum(1 for r in results if r.success)
  return SyncSummary(
    message=f"Synced {ok}/{len(projects)} projects, created {total} tasks",
    total_tasks=total,
    results=results,
  )
