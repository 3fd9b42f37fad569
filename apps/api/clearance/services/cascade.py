"""
Project creation cascade.

Creating a project also creates its shipment with the eleven tracking stages,
materializes its tasks and auto-assigns them. All of it shares one transaction:
either every row exists afterwards or none does.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.domain import map_priority, map_project_status
from clearance.models import Project, Task
from clearance.schemas import ProjectCreateIn
from clearance.services.assignment import AssignmentResult, auto_assign_tasks, balancer_for
from clearance.services.shipments import ShipmentResult, create_shipment_with_stages
from clearance.services.tasks import generate_tasks_with_categories

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
  shipment: ShipmentResult
  stages_created: int
  tasks_created: int
  tasks_assigned: int
  assignments: list[AssignmentResult] = field(default_factory=list)


@dataclass
class ProjectCreateResult:
  success: bool
  error: str | None = None
  project: Project | None = None
  cascade: CascadeResult | None = None


async def execute_project_cascade(db: AsyncSession, project: Project, user_id: str) -> CascadeResult:
  shipment = await create_shipment_with_stages(db, project, user_id)
  logger.info("cascade %s: shipment %s with %d stages", project.id, shipment.shipment_number, shipment.stages_created)

  tasks_created = await generate_tasks_with_categories(db, project, user_id)
  logger.info("cascade %s: %d tasks created", project.id, tasks_created)

  assignments: list[AssignmentResult] = []
  tasks_assigned = 0
  if tasks_created > 0:
    res = await db.execute(select(Task).where(Task.project_id == project.id).order_by(Task.created_at.asc()))
    tasks = list(res.scalars().all())
    assignments = await auto_assign_tasks(db, tasks, list(project.team or []), balancer_for(db))
    # Tasks seeded from the team count as assigned too.
    tasks_assigned = sum(1 for a in assignments if a.assigned_user_id is not None)
    logger.info("cascade %s: %d/%d tasks assigned", project.id, tasks_assigned, len(assignments))

  return CascadeResult(
    shipment=shipment,
    stages_created=shipment.stages_created,
    tasks_created=tasks_created,
    tasks_assigned=tasks_assigned,
    assignments=assignments,
  )


def _project_from_payload(payload: ProjectCreateIn, user_id: str) -> Project:
  return Project(
    customer=payload.customer or "",
    bl_awb_number=payload.blAwbNumber or None,
    description=payload.description or "",
    status=map_project_status(payload.status),
    priority=map_priority(payload.priority),
    systems=list(payload.systems),
    activities=[a.model_dump() for a in payload.activities],
    customer_id=payload.customerId or None,
    port_of_origin=payload.portOfOrigin or None,
    port_of_destination=payload.portOfDestination or None,
    team_lead=payload.teamLead or None,
    team=list(payload.team),
    start_date=payload.startDate,
    end_date=payload.endDate,
    user_id=user_id,
  )


async def create_project_with_cascade(db: AsyncSession, payload: ProjectCreateIn, user_id: str) -> ProjectCreateResult:
  """
  Create a project and, unless ``skipCascade`` is set, run the cascade.

  Commits on success. Any failure rolls back everything, the project row
  included, and is reported as ``success=False`` with the error message.
  """
  try:
    p = _project_from_payload(payload, user_id)
    db.add(p)
    await db.flush()
    logger.info("project %s created for %r", p.id, p.customer)

    cascade = None
    if not payload.skipCascade:
      cascade = await execute_project_cascade(db, p, user_id)

    await write_audit(
      db,
      event_type="project.created",
      entity_type="Project",
      entity_id=p.id,
      project_id=p.id,
      actor_id=user_id,
      payload={
        "customer": p.customer,
        "skipCascade": payload.skipCascade,
        "shipmentNumber": cascade.shipment.shipment_number if cascade else None,
        "tasksCreated": cascade.tasks_created if cascade else 0,
        "tasksAssigned": cascade.tasks_assigned if cascade else 0,
      },
    )
    await db.commit()
  except Exception as exc:
    await db.rollback()
    logger.error("project creation rolled back: %s", exc, exc_info=True)
    return ProjectCreateResult(success=False, error=str(exc) or "Failed to create project")

  return ProjectCreateResult(success=True, project=p, cascade=cascade)
