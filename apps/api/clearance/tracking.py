"""
Tracking identifiers and the fixed tracking-stage lifecycle of a shipment.

Every shipment carries the same eleven stages in the same order regardless of
its type; estimated times chain stage to stage from the project start date.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from clearance.config import settings

ALPH = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SLUG_ALPH = "abcdefghijkmnpqrstuvwxyz23456789"

TRACKING_STAGES: tuple[str, ...] = (
  "PRE_ARRIVAL_DOCS",
  "VESSEL_ARRIVAL",
  "CUSTOMS_DECLARATION",
  "CUSTOMS_PAYMENT",
  "INSPECTION",
  "PORT_FEES",
  "QUALITY_STANDARDS",
  "RELEASE",
  "LOADING",
  "IN_TRANSIT",
  "DELIVERED",
)

STAGE_CONFIG: dict[str, dict] = {
  "PRE_ARRIVAL_DOCS": {"order": 1, "estimated_hours": 24, "name": "Pre-arrival Documentation"},
  "VESSEL_ARRIVAL": {"order": 2, "estimated_hours": 0, "name": "Vessel Arrival"},
  "CUSTOMS_DECLARATION": {"order": 3, "estimated_hours": 24, "name": "Customs Declaration"},
  "CUSTOMS_PAYMENT": {"order": 4, "estimated_hours": 12, "name": "Customs Payment"},
  "INSPECTION": {"order": 5, "estimated_hours": 48, "name": "Inspection"},
  "PORT_FEES": {"order": 6, "estimated_hours": 12, "name": "Port Fees"},
  "QUALITY_STANDARDS": {"order": 7, "estimated_hours": 24, "name": "Quality Standards"},
  "RELEASE": {"order": 8, "estimated_hours": 12, "name": "Release"},
  "LOADING": {"order": 9, "estimated_hours": 6, "name": "Loading"},
  "IN_TRANSIT": {"order": 10, "estimated_hours": 24, "name": "In Transit"},
  "DELIVERED": {"order": 11, "estimated_hours": 0, "name": "Delivered"},
}

MILESTONE_STAGES: frozenset[str] = frozenset({"VESSEL_ARRIVAL", "CUSTOMS_DECLARATION", "RELEASE", "DELIVERED"})


@dataclass(frozen=True)
class StageWindow:
  start: datetime
  end: datetime


def _random(alphabet: str, n: int) -> str:
  return "".join(secrets.choice(alphabet) for _ in range(n))


def generate_tracking_number() -> str:
  return f"{settings.tracking_number_prefix}-{_random(ALPH, 6)}"


def generate_tracking_slug() -> str:
  return _random(SLUG_ALPH, 10)


def generate_shipment_number(today: date | None = None) -> str:
  d = today or datetime.now(timezone.utc).date()
  return f"{settings.shipment_number_prefix}-{d.strftime('%Y%m%d')}-{_random(ALPH, 4)}"


def calculate_stage_etas(start: datetime | None) -> dict[str, StageWindow]:
  """
  Chain estimated windows through every stage, starting at ``start``.

  Returns an empty mapping when there is no start date; callers treat a
  missing stage as "no estimate".
  """
  if start is None:
    return {}
  out: dict[str, StageWindow] = {}
  current = start
  for stage in TRACKING_STAGES:
    end = current + timedelta(hours=STAGE_CONFIG[stage]["estimated_hours"])
    out[stage] = StageWindow(start=current, end=end)
    current = end
  return out


def stage_order(stage: str) -> int:
  cfg = STAGE_CONFIG.get(stage)
  return int(cfg["order"]) if cfg else len(TRACKING_STAGES) + 1


def next_stage(stage: str) -> str | None:
  if stage not in TRACKING_STAGES:
    return None
  idx = TRACKING_STAGES.index(stage)
  if idx == len(TRACKING_STAGES) - 1:
    return None
  return TRACKING_STAGES[idx + 1]


def progress_percentage(completed_stages: int) -> int:
  return round((completed_stages / len(TRACKING_STAGES)) * 100)


def stage_name(stage: str) -> str:
  cfg = STAGE_CONFIG.get(stage)
  return cfg["name"] if cfg else stage


def is_milestone_stage(stage: str) -> bool:
  return stage in MILESTONE_STAGES
