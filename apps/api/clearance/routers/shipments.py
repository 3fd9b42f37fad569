from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.audit import write_audit
from clearance.deps import get_current_user, get_db, require_role
from clearance.errors import StageOutOfOrder
from clearance.models import Shipment, TrackingStage, User
from clearance.schemas import ShipmentDetailOut, ShipmentOut, TrackOut
from clearance.serializers import shipment_detail_out, shipment_out, sorted_stages, stage_out, stage_progress
from clearance.tracking import TRACKING_STAGES, next_stage

router = APIRouter(tags=["shipments"])


async def _stages(db: AsyncSession, shipment_id: str) -> list[TrackingStage]:
  res = await db.execute(select(TrackingStage).where(TrackingStage.shipment_id == shipment_id))
  return sorted_stages(list(res.scalars().all()))


def _current_stage(stages: list[TrackingStage]) -> str | None:
  for wanted in ("IN_PROGRESS", "PENDING"):
    for s in stages:
      if s.status == wanted:
        return s.stage_type
  return stages[-1].stage_type if stages else None


@router.get("/shipments", response_model=list[ShipmentOut])
async def list_shipments(
  projectId: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ShipmentOut]:
  q = select(Shipment).order_by(Shipment.created_at.desc()).limit(500)
  if projectId:
    q = q.where(Shipment.project_id == projectId)
  res = await db.execute(q)
  return [shipment_out(s) for s in res.scalars().all()]


@router.get("/shipments/{shipment_id}", response_model=ShipmentDetailOut)
async def get_shipment(shipment_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ShipmentDetailOut:
  s = await db.get(Shipment, shipment_id)
  if not s:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment not found")
  return shipment_detail_out(s, await _stages(db, s.id))


@router.post("/shipments/{shipment_id}/stages/{stage_type}/complete", response_model=ShipmentDetailOut)
async def complete_stage(
  shipment_id: str,
  stage_type: str,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ShipmentDetailOut:
  require_role(user, "ADMIN", "MANAGER", "CLERK")
  s = await db.get(Shipment, shipment_id)
  if not s:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment not found")
  stage_type = stage_type.strip().upper()
  if stage_type not in TRACKING_STAGES:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown stage")

  stages = await _stages(db, s.id)
  by_type = {x.stage_type: x for x in stages}
  cur = by_type.get(stage_type)
  if not cur:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stage not found")

  now = datetime.now(timezone.utc)
  if cur.status != "COMPLETED":
    earlier = stages[: stages.index(cur)]
    pending = [x.stage_type for x in earlier if x.status not in ("COMPLETED", "SKIPPED")]
    if pending:
      raise StageOutOfOrder(stage_type, pending)
    cur.status = "COMPLETED"
    cur.completed_at = now
    if cur.started_at is None:
      cur.started_at = now
    nxt = by_type.get(next_stage(stage_type) or "")
    if nxt and nxt.status == "PENDING":
      nxt.status = "IN_PROGRESS"
      nxt.started_at = now
    if stage_type == TRACKING_STAGES[-1]:
      s.status = "DELIVERED"
    elif s.status == "PENDING":
      s.status = "IN_TRANSIT"
    await write_audit(
      db,
      event_type="shipment.stage.completed",
      entity_type="Shipment",
      entity_id=s.id,
      project_id=s.project_id,
      actor_id=user.id,
      payload={"stage": stage_type},
    )
    await db.commit()

  return shipment_detail_out(s, stages)


@router.get("/track/{code}", response_model=TrackOut)
async def track(code: str, db: AsyncSession = Depends(get_db)) -> TrackOut:
  """Public lookup by tracking number or slug; no session needed."""
  c = code.strip()
  res = await db.execute(
    select(Shipment).where(
      or_(Shipment.tracking_number == c.upper(), Shipment.tracking_slug == c.lower()),
      Shipment.public_tracking_enabled.is_(True),
    )
  )
  s = res.scalar_one_or_none()
  if not s:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment not found")
  stages = await _stages(db, s.id)
  return TrackOut(
    trackingNumber=s.tracking_number,
    shipmentNumber=s.shipment_number,
    type=s.type,
    status=s.status,
    consignee=s.consignee,
    arrivalDate=s.arrival_date,
    progress=stage_progress(stages),
    currentStage=_current_stage(stages),
    stages=[stage_out(x) for x in stages],
  )
