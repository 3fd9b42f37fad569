from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from clearance.errors import ProjectNotFound
from clearance.models import Task
from clearance.services import tasks as task_service
from clearance.services.cascade import create_project_with_cascade
from clearance.services.tasks import regenerate_project_tasks, sync_all_projects

from conftest import SessionLocal, create_user, project_payload

ACTIVITIES = [
  {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Bill of Lading Collection"},
  {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Certificate of Origin"},
  {"shipmentType": "IMPORT_SEA_FCL", "stage": "Payment", "substage": "Duty", "task": "Duty Payment"},
]


async def _task_titles(project_id: str) -> list[str]:
  async with SessionLocal() as s:
    res = await s.execute(select(Task.title).where(Task.project_id == project_id).order_by(Task.title.asc()))
    return list(res.scalars().all())


@pytest.mark.anyio
async def test_regenerate_is_idempotent(db) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  r = await create_project_with_cascade(db, project_payload(activities=ACTIVITIES), uid)
  assert r.success, r.error
  assert await _task_titles(r.project.id) == ["Documentation", "Duty"]

  for _ in range(2):
    out = await regenerate_project_tasks(db, r.project.id, uid)
    await db.commit()
    assert out.success
    assert out.count == 2
    assert out.message == "Created 2 tasks from Nile Traders"
    assert await _task_titles(r.project.id) == ["Documentation", "Duty"]


@pytest.mark.anyio
async def test_regenerate_leaves_manual_tasks(db) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  r = await create_project_with_cascade(db, project_payload(activities=ACTIVITIES), uid)
  db.add(Task(title="Call the broker", project_id=r.project.id, project="Nile Traders", user_id=uid))
  await db.commit()

  await regenerate_project_tasks(db, r.project.id, uid)
  await db.commit()
  assert await _task_titles(r.project.id) == ["Call the broker", "Documentation", "Duty"]


@pytest.mark.anyio
async def test_regenerate_without_activities_keeps_default_tasks(db) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  r = await create_project_with_cascade(db, project_payload(), uid)
  assert r.success, r.error

  out = await regenerate_project_tasks(db, r.project.id, uid)
  await db.commit()
  assert out.success
  assert out.count == 0
  assert out.message == "No activities to generate tasks from"
  assert len(await _task_titles(r.project.id)) == 12


@pytest.mark.anyio
async def test_regenerate_unknown_project(db) -> None:
  with pytest.raises(ProjectNotFound):
    await regenerate_project_tasks(db, str(uuid.uuid4()), str(uuid.uuid4()))


@pytest.mark.anyio
async def test_sync_all_with_no_projects(db) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  out = await sync_all_projects(db, uid)
  assert out.message == "No projects to sync"
  assert out.total_tasks == 0
  assert out.results == []


@pytest.mark.anyio
async def test_sync_all_reports_per_project(db) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  with_acts = await create_project_with_cascade(db, project_payload(activities=ACTIVITIES, skipCascade=True), uid)
  without = await create_project_with_cascade(db, project_payload(customer="Red Sea Imports"), uid)

  out = await sync_all_projects(db, uid)
  await db.commit()
  assert out.message == "Synced 2/2 projects, created 2 tasks"
  assert out.total_tasks == 2
  by_id = {r.project_id: r for r in out.results}
  assert by_id[with_acts.project.id].message == "Created 2 tasks from Nile Traders"
  assert by_id[without.project.id].message == "No activities to generate tasks from"

  async with SessionLocal() as s:
    n = (await s.execute(select(func.count()).select_from(Task))).scalar_one()
  assert n == 2 + 12


@pytest.mark.anyio
async def test_sync_all_isolates_failing_project(db, monkeypatch) -> None:
  uid = await create_user("clerk@example.com", "CLERK")
  broken = await create_project_with_cascade(db, project_payload(customer="Alpha Freight", activities=ACTIVITIES, skipCascade=True), uid)
  healthy = await create_project_with_cascade(db, project_payload(activities=ACTIVITIES[:2], skipCascade=True), uid)
  await regenerate_project_tasks(db, broken.project.id, uid)
  await db.commit()

  real_rows = task_service.activity_task_rows

  def _rows(project, user_id):
    if project.id == broken.project.id:
      raise RuntimeError("catalog offline")
    return real_rows(project, user_id)

  monkeypatch.setattr(task_service, "activity_task_rows", _rows)
  out = await sync_all_projects(db, uid)
  await db.commit()

  assert out.message == "Synced 1/2 projects, created 1 tasks"
  assert [(r.name, r.success, r.count) for r in out.results] == [("Alpha Freight", False, 0), ("Nile Traders", True, 1)]
  assert out.results[0].message == "catalog offline"
  # The failed project's delete was rolled back with its savepoint.
  assert await _task_titles(broken.project.id) == ["Documentation", "Duty"]
  assert await _task_titles(healthy.project.id) == ["Documentation"]
