from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.deps import get_current_user, get_db, require_role
from clearance.domain import map_priority, map_project_status
from clearance.models import Project, Shipment, Task, TrackingStage, User
from clearance.schemas import (
  AutoAssignOut,
  ProjectCreateIn,
  ProjectCreateOut,
  ProjectDetailOut,
  ProjectOut,
  ProjectUpdateIn,
  SyncOut,
  SyncProjectOut,
)
from clearance.serializers import assignment_out, cascade_out, project_out, shipment_detail_out, task_out
from clearance.services.assignment import auto_assign_tasks, balancer_for
from clearance.services.cascade import create_project_with_cascade
from clearance.services.tasks import TaskSyncResult, regenerate_project_tasks, sync_all_projects

router = APIRouter(prefix="/projects", tags=["projects"])

EDITOR_ROLES = ("ADMIN", "MANAGER", "CLERK")


async def _project_or_404(db: AsyncSession, project_id: str) -> Project:
  p = await db.get(Project, project_id)
  if not p:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
  return p


def _sync_out(r: TaskSyncResult) -> SyncProjectOut:
  return SyncProjectOut(projectId=r.project_id, name=r.name, success=r.success, message=r.message, count=r.count)


@router.post("", response_model=ProjectCreateOut)
async def create_project(
  payload: ProjectCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ProjectCreateOut | JSONResponse:
  require_role(user, *EDITOR_ROLES)
  r = await create_project_with_cascade(db, payload, user.id)
  if not r.success:
    out = ProjectCreateOut(success=False, error=r.error)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=out.model_dump(mode="json"))
  return ProjectCreateOut(
    success=True,
    project=project_out(r.project),
    cascade=cascade_out(r.cascade) if r.cascade else None,
  )


@router.get("", response_model=list[ProjectOut])
async def list_projects(
  status_: str | None = Query(default=None, alias="status"),
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ProjectOut]:
  q = select(Project).order_by(Project.created_at.desc())
  if status_:
    q = q.where(Project.status == map_project_status(status_))
  res = await db.execute(q)
  return [project_out(p) for p in res.scalars().all()]


@router.post("/tasks/sync", response_model=SyncOut)
async def sync_all(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> SyncOut:
  require_role(user, "ADMIN", "MANAGER")
  summary = await sync_all_projects(db, user.id)
  await write_audit(
    db,
    event_type="tasks.synced",
    entity_type="Project",
    entity_id=None,
    actor_id=user.id,
    payload={"projects": len(summary.results), "totalTasks": summary.total_tasks},
  )
  await db.commit()
  return SyncOut(message=summary.message, totalTasks=summary.total_tasks, results=[_sync_out(r) for r in summary.results])


@router.get("/{project_id}", response_model=ProjectDetailOut)
async def get_project(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ProjectDetailOut:
  p = await _project_or_404(db, project_id)

  sres = await db.execute(select(Shipment).where(Shipment.project_id == p.id).order_by(Shipment.created_at.asc()).limit(1))
  sh = sres.scalar_one_or_none()
  shipment = None
  if sh:
    stres = await db.execute(select(TrackingStage).where(TrackingStage.shipment_id == sh.id))
    shipment = shipment_detail_out(sh, list(stres.scalars().all()))

  tres = await db.execute(select(Task).where(Task.project_id == p.id).order_by(Task.created_at.asc()))
  return ProjectDetailOut(
    **project_out(p).model_dump(),
    shipment=shipment,
    tasks=[task_out(t) for t in tres.scalars().all()],
  )


@router.patch("/{project_id}", response_model=ProjectOut)
async def update_project(
  project_id: str,
  payload: ProjectUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ProjectOut:
  require_role(user, *EDITOR_ROLES)
  p = await _project_or_404(db, project_id)

  fields = payload.model_fields_set
  changed: dict = {}
  if "customer" in fields and payload.customer is not None:
    p.customer = payload.customer
    changed["customer"] = p.customer
  if "blAwbNumber" in fields:
    p.bl_awb_number = payload.blAwbNumber or None
    changed["blAwbNumber"] = p.bl_awb_number
  if "description" in fields:
    p.description = payload.description or ""
    changed["description"] = True
  if "status" in fields:
    p.status = map_project_status(payload.status)
    changed["status"] = p.status
  if "priority" in fields:
    p.priority = map_priority(payload.priority)
    changed["priority"] = p.priority
  if "systems" in fields and payload.systems is not None:
    p.systems = list(payload.systems)
    changed["systems"] = p.systems
  if "activities" in fields and payload.activities is not None:
    p.activities = [a.model_dump() for a in payload.activities]
    changed["activities"] = len(p.activities)
  if "customerId" in fields:
    p.customer_id = payload.customerId or None
  if "portOfOrigin" in fields:
    p.port_of_origin = payload.portOfOrigin or None
  if "portOfDestination" in fields:
    p.port_of_destination = payload.portOfDestination or None
  if "teamLead" in fields:
    p.team_lead = payload.teamLead or None
  if "team" in fields and payload.team is not None:
    p.team = list(payload.team)
    changed["team"] = p.team
  if "startDate" in fields:
    p.start_date = payload.startDate
    changed["startDate"] = p.start_date
  if "endDate" in fields:
    p.end_date = payload.endDate
    changed["endDate"] = p.end_date

  await write_audit(db, event_type="project.updated", entity_type="Project", entity_id=p.id, project_id=p.id, actor_id=user.id, payload=changed)
  await db.commit()
  await db.refresh(p)
  return project_out(p)


@router.delete("/{project_id}")
async def delete_project(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  require_role(user, "ADMIN", "MANAGER")
  p = await _project_or_404(db, project_id)
  # Generated shipment and tasks stay; they keep the project id.
  await write_audit(db, event_type="project.deleted", entity_type="Project", entity_id=p.id, project_id=p.id, actor_id=user.id, payload={"customer": p.customer})
  await db.delete(p)
  await db.commit()
  return {"ok": True}


@router.post("/{project_id}/tasks/sync", response_model=SyncOut)
async def sync_project_tasks(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> SyncOut:
  require_role(user, *EDITOR_ROLES)
  r = await regenerate_project_tasks(db, project_id, user.id)
  await write_audit(
    db,
    event_type="tasks.synced",
    entity_type="Project",
    entity_id=project_id,
    project_id=project_id,
    actor_id=user.id,
    payload={"count": r.count},
  )
  await db.commit()
  return SyncOut(message=r.message, totalTasks=r.count, results=[_sync_out(r)])


@router.post("/{project_id}/tasks/auto-assign", response_model=AutoAssignOut)
async def auto_assign_project_tasks(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> AutoAssignOut:
  require_role(user, "ADMIN", "MANAGER")
  p = await _project_or_404(db, project_id)
  res = await db.execute(select(Task).where(Task.project_id == p.id).order_by(Task.created_at.asc()))
  results = await auto_assign_tasks(db, list(res.scalars().all()), list(p.team or []), balancer_for(db))
  assigned = [a for a in results if a.assigned_user_id is not None and a.reason != "Already assigned"]
  for a in assigned:
    await write_audit(
      db,
      event_type="task.assigned",
      entity_type="Task",
      entity_id=a.task_id,
      project_id=p.id,
      task_id=a.task_id,
      actor_id=user.id,
      payload={"userId": a.assigned_user_id, "reason": a.reason},
    )
  await db.commit()
  return AutoAssignOut(assigned=len(assigned), assignments=[assignment_out(a) for a in results])
