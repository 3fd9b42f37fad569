from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.deps import get_current_user, get_db, require_role
from clearance.domain import map_priority, map_task_status
from clearance.models import Project, Task, User
from clearance.schemas import AssignmentOut, TaskCreateIn, TaskOut, TaskUpdateIn
from clearance.serializers import assignment_out, task_out
from clearance.services.assignment import auto_assign_task, balancer_for

router = APIRouter(tags=["tasks"])

EDITOR_ROLES = ("ADMIN", "MANAGER", "CLERK")
TASK_LIST_LIMIT = 500


async def _task_or_404(db: AsyncSession, task_id: str) -> Task:
  t = await db.get(Task, task_id)
  if not t:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
  return t


async def _project_team(db: AsyncSession, project_id: str | None) -> list[str]:
  if not project_id:
    return []
  p = await db.get(Project, project_id)
  return list(p.team or []) if p else []


@router.get("/tasks", response_model=list[TaskOut])
async def list_tasks(
  projectId: str | None = None,
  status_: str | None = Query(default=None, alias="status"),
  category: str | None = None,
  assignedTo: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[TaskOut]:
  q = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
  if projectId:
    q = q.where(Task.project_id == projectId)
  if status_:
    q = q.where(Task.status == map_task_status(status_))
  if category:
    q = q.where(Task.category == category.strip().upper())
  if not assignedTo:
    res = await db.execute(q.limit(TASK_LIST_LIMIT))
    return [task_out(t) for t in res.scalars().all()]

  # assigned_to is a JSON list, so membership is checked in Python page by page.
  found: list[Task] = []
  offset = 0
  while len(found) < TASK_LIST_LIMIT:
    res = await db.execute(q.offset(offset).limit(TASK_LIST_LIMIT))
    page = res.scalars().all()
    found.extend(t for t in page if assignedTo in (t.assigned_to or []))
    if len(page) < TASK_LIST_LIMIT:
      break
    offset += TASK_LIST_LIMIT
  return [task_out(t) for t in found[:TASK_LIST_LIMIT]]


@router.get("/projects/{project_id}/tasks", response_model=list[TaskOut])
async def list_project_tasks(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[TaskOut]:
  if not await db.get(Project, project_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
  res = await db.execute(select(Task).where(Task.project_id == project_id).order_by(Task.created_at.asc()))
  return [task_out(t) for t in res.scalars().all()]


@router.post("/tasks", response_model=TaskOut)
async def create_task(payload: TaskCreateIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> TaskOut:
  require_role(user, *EDITOR_ROLES)
  project_label = ""
  if payload.projectId:
    p = await db.get(Project, payload.projectId)
    if not p:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown projectId")
    project_label = p.customer

  t = Task(
    title=payload.title.strip(),
    project=project_label,
    project_id=payload.projectId,
    status=map_task_status(payload.status),
    priority=map_priority(payload.priority),
    category=payload.category,
    tracking_stage_type=payload.trackingStageType,
    description=payload.description,
    label=payload.label,
    duration=payload.duration,
    assigned_to=list(payload.assignedTo),
    date=payload.date,
    hours=payload.hours,
    user_id=user.id,
  )
  db.add(t)
  await db.flush()

  if payload.autoAssign:
    a = await auto_assign_task(db, t, await _project_team(db, t.project_id), balancer_for(db))
    if a.assigned_user_id and a.reason != "Already assigned":
      await write_audit(
        db,
        event_type="task.assigned",
        entity_type="Task",
        entity_id=t.id,
        project_id=t.project_id,
        task_id=t.id,
        actor_id=user.id,
        payload={"userId": a.assigned_user_id, "reason": a.reason},
      )

  await write_audit(db, event_type="task.created", entity_type="Task", entity_id=t.id, project_id=t.project_id, task_id=t.id, actor_id=user.id, payload={"title": t.title, "category": t.category})
  await db.commit()
  await db.refresh(t)
  return task_out(t)


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> TaskOut:
  return task_out(await _task_or_404(db, task_id))


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
  task_id: str,
  payload: TaskUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  require_role(user, *EDITOR_ROLES)
  t = await _task_or_404(db, task_id)

  fields = payload.model_fields_set
  changed: dict = {}
  if "title" in fields and payload.title is not None:
    t.title = payload.title.strip()
    changed["title"] = t.title
  if "status" in fields:
    t.status = map_task_status(payload.status)
    changed["status"] = t.status
  if "priority" in fields:
    t.priority = map_priority(payload.priority)
    changed["priority"] = t.priority
  if "category" in fields and payload.category is not None:
    t.category = payload.category
    changed["category"] = t.category
  if "trackingStageType" in fields:
    t.tracking_stage_type = payload.trackingStageType
  if "description" in fields:
    t.description = payload.description
  if "label" in fields:
    t.label = payload.label
  if "duration" in fields:
    t.duration = payload.duration
  if "assignedTo" in fields and payload.assignedTo is not None:
    t.assigned_to = list(payload.assignedTo)
    changed["assignedTo"] = t.assigned_to
  if "date" in fields:
    t.date = payload.date
  if "hours" in fields:
    t.hours = payload.hours

  await write_audit(db, event_type="task.updated", entity_type="Task", entity_id=t.id, project_id=t.project_id, task_id=t.id, actor_id=user.id, payload=changed)
  await db.commit()
  await db.refresh(t)
  return task_out(t)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  require_role(user, *EDITOR_ROLES)
  t = await _task_or_404(db, task_id)
  await write_audit(db, event_type="task.deleted", entity_type="Task", entity_id=t.id, project_id=t.project_id, task_id=t.id, actor_id=user.id, payload={"title": t.title})
  await db.delete(t)
  await db.commit()
  return {"ok": True}


@router.post("/tasks/{task_id}/auto-assign", response_model=AssignmentOut)
async def auto_assign_one(task_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> AssignmentOut:
  require_role(user, "ADMIN", "MANAGER")
  t = await _task_or_404(db, task_id)
  a = await auto_assign_task(db, t, await _project_team(db, t.project_id), balancer_for(db))
  if a.assigned_user_id and a.reason != "Already assigned":
    await write_audit(
      db,
      event_type="task.assigned",
      entity_type="Task",
      entity_id=t.id,
      project_id=t.project_id,
      task_id=t.id,
      actor_id=user.id,
      payload={"userId": a.assigned_user_id, "reason": a.reason},
    )
    await db.commit()
  return assignment_out(a)
