from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clearance.models import Project, Shipment, TrackingStage
from clearance.tracking import (
  TRACKING_STAGES,
  calculate_stage_etas,
  generate_shipment_number,
  generate_tracking_number,
  generate_tracking_slug,
)

logger = logging.getLogger(__name__)


@dataclass
class ShipmentResult:
  id: str
  tracking_number: str
  tracking_slug: str
  shipment_number: str
  stages_created: int


def shipment_type_for(systems: list[str] | None) -> str:
  if any("export" in (s or "").lower() for s in (systems or [])):
    return "EXPORT"
  return "IMPORT"


async def create_shipment_with_stages(db: AsyncSession, project: Project, user_id: str) -> ShipmentResult:
  """
  Create the project's shipment and its eleven tracking stages.

  Runs inside the caller's transaction; nothing is committed here. Identifier
  uniqueness is left to the unique constraints on the shipments table.
  """
  tracking_number = generate_tracking_number()
  tracking_slug = generate_tracking_slug()
  shipment_number = generate_shipment_number()
  etas = calculate_stage_etas(project.start_date)

  shipment = Shipment(
    shipment_number=shipment_number,
    tracking_number=tracking_number,
    tracking_slug=tracking_slug,
    type=shipment_type_for(project.systems),
    status="PENDING",
    description=f"Clearance for {project.customer}",
    consignor=project.port_of_origin or "TBD",
    consignee=project.customer,
    vessel_name=None,
    container_number=None,
    arrival_date=project.start_date,
    public_tracking_enabled=True,
    user_id=user_id,
    project_id=project.id,
    client_id=project.customer_id,
  )
  db.add(shipment)
  await db.flush()

  now = datetime.now(timezone.utc)
  rows = []
  for idx, stage in enumerate(TRACKING_STAGES):
    window = etas.get(stage)
    rows.append(
      {
        "shipment_id": shipment.id,
        "stage_type": stage,
        "status": "IN_PROGRESS" if idx == 0 else "PENDING",
        "estimated_at": window.start if window else None,
        "started_at": now if idx == 0 else None,
        "payment_requested": False,
        "payment_received": False,
      }
    )
  await db.execute(insert(TrackingStage), rows)

  logger.info("shipment %s created for project %s (%s, %d stages)", shipment_number, project.id, shipment.type, len(rows))
  return ShipmentResult(
    id=shipment.id,
    tracking_number=tracking_number,
    tracking_slug=tracking_slug,
    shipment_number=shipment_number,
    stages_created=len(TRACKING_STAGES),
  )
