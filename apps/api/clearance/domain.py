from __future__ import annotations

from typing import Literal

UserRole = Literal["ADMIN", "MANAGER", "CLERK", "VIEWER"]
TaskCategory = Literal[
  "DOCUMENTATION",
  "CUSTOMS_DECLARATION",
  "PAYMENT",
  "INSPECTION",
  "RELEASE",
  "DELIVERY",
  "GENERAL",
]

USER_ROLES: tuple[str, ...] = ("ADMIN", "MANAGER", "CLERK", "VIEWER")

TASK_CATEGORIES: tuple[str, ...] = (
  "DOCUMENTATION",
  "CUSTOMS_DECLARATION",
  "PAYMENT",
  "INSPECTION",
  "RELEASE",
  "DELIVERY",
  "GENERAL",
)

PROJECT_STATUSES: tuple[str, ...] = ("PENDING", "IN_PROGRESS", "CUSTOMS_HOLD", "RELEASED", "DELIVERED")
TASK_STATUSES: tuple[str, ...] = ("PENDING", "STUCK", "IN_PROGRESS", "DONE")
PRIORITIES: tuple[str, ...] = ("URGENT", "HIGH", "MEDIUM", "LOW")

# Statuses that count towards a user's load.
ACTIVE_TASK_STATUSES: tuple[str, ...] = ("PENDING", "IN_PROGRESS")

SHIPMENT_TYPES: tuple[str, ...] = ("IMPORT", "EXPORT")
STAGE_STATUSES: tuple[str, ...] = ("PENDING", "IN_PROGRESS", "COMPLETED", "SKIPPED")


def _map_choice(value: str | None, choices: tuple[str, ...], default: str) -> str:
  key = (value or "").strip().upper().replace("-", "_").replace(" ", "_")
  if key in choices:
    return key
  return default


def map_project_status(value: str | None) -> str:
  return _map_choice(value, PROJECT_STATUSES, "PENDING")


def map_task_status(value: str | None) -> str:
  return _map_choice(value, TASK_STATUSES, "PENDING")


def map_priority(value: str | None) -> str:
  return _map_choice(value, PRIORITIES, "MEDIUM")
