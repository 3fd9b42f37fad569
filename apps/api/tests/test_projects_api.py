from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clearance.db import SessionLocal
from clearance.models import Task
from clearance.routers import tasks as tasks_router
from clearance.services import cascade

from conftest import create_user, load_project, login

ACTIVITIES = [
  {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Bill of Lading Collection"},
  {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Certificate of Origin"},
]


def _project_body(**overrides) -> dict:
  body = {
    "customer": "Nile Traders",
    "systems": ["IMPORT_SEA_FCL"],
    "activities": ACTIVITIES,
    "portOfOrigin": "Jebel Ali",
    "startDate": "2026-03-01T08:00:00Z",
  }
  body.update(overrides)
  return body


@pytest.mark.anyio
async def test_endpoints_require_auth(client) -> None:
  res = await client.get("/projects")
  assert res.status_code == 401
  assert res.json()["detail"] == "Unauthorized"


@pytest.mark.anyio
async def test_viewer_cannot_create_projects(client) -> None:
  await create_user("viewer@example.com", "VIEWER")
  await login(client, "viewer@example.com")
  res = await client.post("/projects", json=_project_body())
  assert res.status_code == 403
  assert res.json()["detail"] == "Insufficient role"


@pytest.mark.anyio
async def test_create_project_runs_cascade(client) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")

  res = await client.post("/projects", json=_project_body())
  assert res.status_code == 200, res.text
  out = res.json()
  assert out["success"] is True
  assert out["error"] is None
  assert out["project"]["customer"] == "Nile Traders"
  assert out["project"]["status"] == "PENDING"
  assert out["cascade"]["stagesCreated"] == 11
  assert out["cascade"]["tasksCreated"] == 1
  assert out["cascade"]["tasksAssigned"] == 1
  assert out["cascade"]["shipment"]["trackingNumber"].startswith("TRK-")
  (a,) = out["cascade"]["assignments"]
  assert a["assignedUserId"] == clerk
  assert a["reason"] == "Auto-assigned to CLERK (default mapping)"

  pid = out["project"]["id"]
  detail = (await client.get(f"/projects/{pid}")).json()
  assert detail["shipment"]["progress"] == 0
  assert [s["order"] for s in detail["shipment"]["stages"]] == list(range(1, 12))
  assert detail["shipment"]["stages"][0]["status"] == "IN_PROGRESS"
  (t,) = detail["tasks"]
  assert t["title"] == "Documentation"
  assert t["category"] == "DOCUMENTATION"
  assert t["assignedTo"] == [clerk]
  assert t["linkedActivity"]["task"] == "Bill of Lading Collection, Certificate of Origin"

  listed = (await client.get(f"/projects/{pid}/tasks")).json()
  assert [x["id"] for x in listed] == [t["id"]]


@pytest.mark.anyio
async def test_legacy_activity_keys_are_accepted(client) -> None:
  await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")
  legacy = [{"system": "IMPORT_AIR", "category": "Payment", "subcategory": "Duty", "activity": "Pay duty"}]
  res = await client.post("/projects", json=_project_body(activities=legacy))
  assert res.status_code == 200, res.text
  assert res.json()["project"]["activities"] == [
    {"shipmentType": "IMPORT_AIR", "stage": "Payment", "substage": "Duty", "task": "Pay duty"}
  ]
  pid = res.json()["project"]["id"]
  (t,) = (await client.get(f"/projects/{pid}")).json()["tasks"]
  assert t["category"] == "PAYMENT"


@pytest.mark.anyio
async def test_status_and_priority_fall_back(client) -> None:
  await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")

  res = await client.post("/projects", json=_project_body(status="weird", priority="whenever", skipCascade=True))
  assert res.status_code == 200, res.text
  assert res.json()["project"]["status"] == "PENDING"
  assert res.json()["project"]["priority"] == "MEDIUM"
  assert res.json()["cascade"] is None

  res = await client.post("/projects", json=_project_body(status="in progress", skipCascade=True))
  pid = res.json()["project"]["id"]
  assert res.json()["project"]["status"] == "IN_PROGRESS"

  listed = (await client.get("/projects", params={"status": "In Progress"})).json()
  assert [p["id"] for p in listed] == [pid]

  res = await client.patch(f"/projects/{pid}", json={"status": "delivered", "customer": "Nile Traders Ltd"})
  assert res.status_code == 200, res.text
  assert res.json()["status"] == "DELIVERED"
  assert res.json()["customer"] == "Nile Traders Ltd"


@pytest.mark.anyio
async def test_invalid_dates_are_rejected(client) -> None:
  await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")
  res = await client.post("/projects", json=_project_body(startDate="not a date"))
  assert res.status_code == 422


@pytest.mark.anyio
async def test_cascade_failure_returns_400_and_rolls_back(client, monkeypatch) -> None:
  await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")

  async def _boom(*args, **kwargs):
    raise RuntimeError("shipment service down")

  monkeypatch.setattr(cascade, "create_shipment_with_stages", _boom)
  res = await client.post("/projects", json=_project_body())
  assert res.status_code == 400
  assert res.json()["success"] is False
  assert res.json()["error"] == "shipment service down"
  assert (await client.get("/projects")).json() == []


@pytest.mark.anyio
async def test_public_tracking_and_stage_completion(client) -> None:
  await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")
  out = (await client.post("/projects", json=_project_body())).json()
  sh = out["cascade"]["shipment"]

  res = await client.post(f"/shipments/{sh['id']}/stages/pre_arrival_docs/complete")
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["status"] == "IN_TRANSIT"
  assert body["progress"] == 9
  assert body["stages"][0]["status"] == "COMPLETED"
  assert body["stages"][1]["status"] == "IN_PROGRESS"

  res = await client.post(f"/shipments/{sh['id']}/stages/NOPE/complete")
  assert res.status_code == 400

  # Earlier stages must be completed first.
  res = await client.post(f"/shipments/{sh['id']}/stages/INSPECTION/complete")
  assert res.status_code == 409
  assert res.json()["detail"] == "Cannot complete INSPECTION before VESSEL_ARRIVAL, CUSTOMS_DECLARATION, CUSTOMS_PAYMENT"
  stages = (await client.get(f"/shipments/{sh['id']}")).json()["stages"]
  assert [s["stageType"] for s in stages if s["status"] == "IN_PROGRESS"] == ["VESSEL_ARRIVAL"]

  client.cookies.clear()
  res = await client.get(f"/track/{sh['trackingNumber'].lower()}")
  assert res.status_code == 200, res.text
  track = res.json()
  assert track["shipmentNumber"] == sh["shipmentNumber"]
  assert track["currentStage"] == "VESSEL_ARRIVAL"
  assert track["progress"] == 9
  assert len(track["stages"]) == 11

  res = await client.get(f"/track/{sh['trackingSlug'].upper()}")
  assert res.status_code == 200
  assert (await client.get("/track/TRK-NOPE00")).status_code == 404


@pytest.mark.anyio
async def test_project_sync_and_auto_assign(client) -> None:
  manager = await create_user("manager@example.com", "MANAGER")
  await login(client, "manager@example.com")
  out = (await client.post("/projects", json=_project_body())).json()
  pid = out["project"]["id"]

  res = await client.post(f"/projects/{pid}/tasks/sync")
  assert res.status_code == 200, res.text
  assert res.json()["message"] == "Created 1 tasks from Nile Traders"
  assert res.json()["totalTasks"] == 1

  # Regenerated tasks start unassigned.
  res = await client.post(f"/projects/{pid}/tasks/auto-assign")
  assert res.status_code == 200, res.text
  assert res.json()["assigned"] == 1
  assert res.json()["assignments"][0]["assignedUserId"] == manager

  res = await client.post(f"/projects/{pid}/tasks/auto-assign")
  assert res.json()["assigned"] == 0
  assert res.json()["assignments"][0]["reason"] == "Already assigned"

  res = await client.post("/projects/tasks/sync")
  assert res.status_code == 200, res.text
  assert res.json()["message"] == "Synced 1/1 projects, created 1 tasks"

  assert (await client.post("/projects/nope/tasks/sync")).status_code == 404


@pytest.mark.anyio
async def test_delete_project_keeps_shipment(client) -> None:
  await create_user("manager@example.com", "MANAGER")
  await login(client, "manager@example.com")
  out = (await client.post("/projects", json=_project_body())).json()
  pid = out["project"]["id"]

  res = await client.delete(f"/projects/{pid}")
  assert res.status_code == 200
  assert await load_project(pid) is None
  assert (await client.get(f"/shipments/{out['cascade']['shipment']['id']}")).status_code == 200


@pytest.mark.anyio
async def test_task_crud_with_auto_assign(client) -> None:
  await create_user("manager@example.com", "MANAGER")
  clerk = await create_user("clerk@example.com", "CLERK")
  await login(client, "manager@example.com")

  res = await client.post("/tasks", json={"title": "Unknown project", "projectId": "nope"})
  assert res.status_code == 400

  res = await client.post("/tasks", json={"title": "Chase invoice", "category": "RELEASE", "autoAssign": True})
  assert res.status_code == 200, res.text
  t = res.json()
  assert t["assignedTo"] == [clerk]
  assert t["status"] == "PENDING"

  mine = (await client.get("/tasks", params={"assignedTo": clerk})).json()
  assert [x["id"] for x in mine] == [t["id"]]

  res = await client.patch(f"/tasks/{t['id']}", json={"status": "done"})
  assert res.json()["status"] == "DONE"

  res = await client.post(f"/tasks/{t['id']}/auto-assign")
  assert res.json()["reason"] == "Already assigned"

  assert (await client.delete(f"/tasks/{t['id']}")).status_code == 200
  assert (await client.get(f"/tasks/{t['id']}")).status_code == 404


@pytest.mark.anyio
async def test_assignment_rules_api(client) -> None:
  await create_user("admin@example.com", "ADMIN")
  clerk = await create_user("clerk@example.com", "CLERK")
  await login(client, "admin@example.com")

  res = await client.post("/assignment-rules", json={"category": "PAYMENT"})
  assert res.status_code == 400
  assert res.json()["detail"] == "Rule needs a userId or roleTarget"

  res = await client.post("/assignment-rules", json={"category": "PAYMENT", "userId": "nope"})
  assert res.status_code == 400

  res = await client.post("/assignment-rules", json={"category": "PAYMENT", "userId": clerk, "description": "cashier"})
  assert res.status_code == 200, res.text
  rule = res.json()
  assert rule["priority"] == 100
  assert rule["isActive"] is True

  res = await client.post("/assignment-rules", json={"category": "PAYMENT", "priority": 1})
  assert res.json()["id"] == rule["id"]
  assert res.json()["priority"] == 1
  assert res.json()["userId"] == clerk

  res = await client.post("/tasks", json={"title": "Pay duty", "category": "PAYMENT", "autoAssign": True})
  assert res.json()["assignedTo"] == [clerk]

  stats = (await client.get("/assignment/stats")).json()
  loads = {u["userId"]: u["activeTasks"] for u in stats["userLoads"]}
  assert loads[clerk] == 1
  assert stats["categoryBreakdown"] == [{"category": "PAYMENT", "count": 1}]

  assert len((await client.get("/assignment-rules")).json()) == 1
  assert (await client.delete(f"/assignment-rules/{rule['id']}")).status_code == 200
  assert (await client.get("/assignment-rules")).json() == []


@pytest.mark.anyio
async def test_catalog_is_public(client) -> None:
  res = await client.get("/catalog/stages")
  assert res.status_code == 200
  body = res.json()
  assert "IMPORT_SEA_FCL" in body["shipmentTypes"]
  assert len(body["trackingStages"]) == 11
  assert "DOCUMENTATION" in body["categories"]

  res = await client.get("/catalog/activities", params={"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation"})
  assert res.status_code == 200
  assert res.json()[0]["task"] == "Bill of Lading Collection"

  assert (await client.get("/catalog/activities", params={"shipmentType": "NOPE"})).status_code == 404
  assert (await client.get("/catalog/activities", params={"shipmentType": "IMPORT_AIR", "stage": "Nope"})).status_code == 404


@pytest.mark.anyio
async def test_health(client) -> None:
  res = await client.get("/health")
  assert res.status_code == 200
  assert res.json() == {"ok": True, "db": "ok"}


@pytest.mark.anyio
async def test_assignee_filter_looks_past_newer_tasks(client, monkeypatch) -> None:
  clerk = await create_user("clerk@example.com", "CLERK")
  await login(client, "clerk@example.com")
  monkeypatch.setattr(tasks_router, "TASK_LIST_LIMIT", 3)

  base = datetime(2026, 3, 1, tzinfo=timezone.utc)
  async with SessionLocal() as s:
    s.add(Task(title="Mine", assigned_to=[clerk], user_id=clerk, created_at=base))
    s.add_all(
      Task(title=f"Other {i}", assigned_to=[], user_id=clerk, created_at=base + timedelta(minutes=i + 1))
      for i in range(7)
    )
    await s.commit()

  mine = (await client.get("/tasks", params={"assignedTo": clerk})).json()
  assert [t["title"] for t in mine] == ["Mine"]

  latest = (await client.get("/tasks")).json()
  assert [t["title"] for t in latest] == ["Other 6", "Other 5", "Other 4"]
