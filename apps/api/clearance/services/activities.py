from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

# current key -> legacy key
_LEGACY_KEYS = {
  "shipmentType": "system",
  "stage": "category",
  "substage": "subcategory",
  "task": "activity",
}


@dataclass(frozen=True)
class Activity:
  shipment_type: str = ""
  stage: str = ""
  substage: str = ""
  task: str = ""

  def group_key(self) -> str:
    return f"{self.shipment_type}-{self.stage}-{self.substage}"

  def to_dict(self) -> dict[str, str]:
    return {
      "shipmentType": self.shipment_type,
      "stage": self.stage,
      "substage": self.substage,
      "task": self.task,
    }


@dataclass
class ActivityGroup:
  shipment_type: str
  stage: str
  substage: str
  tasks: list[str] = field(default_factory=list)

  @property
  def title(self) -> str:
    return self.substage or self.stage

  def linked_activity(self, project_id: str) -> dict[str, str]:
    return {
      "projectId": project_id,
      "shipmentType": self.shipment_type,
      "stage": self.stage,
      "substage": self.substage,
      "task": ", ".join(self.tasks),
    }


def _pick(raw: Mapping[str, Any], key: str) -> str:
  value = raw.get(key) or raw.get(_LEGACY_KEYS[key]) or ""
  return str(value).strip()


def normalize_activity(raw: Mapping[str, Any] | Activity) -> Activity:
  """Collapse either naming scheme into one Activity; current keys win over legacy ones."""
  if isinstance(raw, Activity):
    return raw
  return Activity(
    shipment_type=_pick(raw, "shipmentType"),
    stage=_pick(raw, "stage"),
    substage=_pick(raw, "substage"),
    task=_pick(raw, "task"),
  )


def normalize_activities(raw: Iterable[Any] | None) -> list[Activity]:
  if not raw:
    return []
  out: list[Activity] = []
  for item in raw:
    if isinstance(item, (Mapping, Activity)):
      out.append(normalize_activity(item))
  return out


def group_activities(activities: Iterable[Activity]) -> list[ActivityGroup]:
  """
  Group by shipmentType-stage-substage, keeping first-seen order.

  Task names sharing a key are merged in input order; empty task names are dropped
  but still open the group.
  """
  groups: dict[str, ActivityGroup] = {}
  for a in activities:
    key = a.group_key()
    g = groups.get(key)
    if g is None:
      g = ActivityGroup(shipment_type=a.shipment_type, stage=a.stage, substage=a.substage)
      groups[key] = g
    if a.task:
      g.tasks.append(a.task)
  return list(groups.values())
