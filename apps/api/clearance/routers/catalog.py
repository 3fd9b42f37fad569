from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from clearance.catalog import CLEARANCE_STAGES, SHIPMENT_TYPE_LABELS, activities_for, shipment_types, stages_for
from clearance.domain import TASK_CATEGORIES
from clearance.schemas import ActivityIn, StageCatalogOut
from clearance.services.templates import category_for_stage, tasks_for_stage
from clearance.tracking import STAGE_CONFIG, TRACKING_STAGES, is_milestone_stage

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/stages", response_model=StageCatalogOut)
async def stage_catalog() -> StageCatalogOut:
  tracking = [
    {
      "stageType": s,
      "name": STAGE_CONFIG[s]["name"],
      "order": STAGE_CONFIG[s]["order"],
      "estimatedHours": STAGE_CONFIG[s]["estimated_hours"],
      "milestone": is_milestone_stage(s),
      "category": category_for_stage(s),
      "templates": [{"title": t.title, "description": t.description, "estimatedHours": t.estimated_hours} for t in tasks_for_stage(s)],
    }
    for s in TRACKING_STAGES
  ]
  return StageCatalogOut(
    shipmentTypes=dict(SHIPMENT_TYPE_LABELS),
    stages=CLEARANCE_STAGES,
    trackingStages=tracking,
    categories=list(TASK_CATEGORIES),
  )


@router.get("/activities", response_model=list[ActivityIn])
async def catalog_activities(shipmentType: str, stage: str | None = None) -> list[ActivityIn]:
  if shipmentType not in shipment_types():
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown shipment type")
  if stage is not None and stage not in stages_for(shipmentType):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown stage")
  return [ActivityIn(**a.to_dict()) for a in activities_for(shipmentType, stage)]
