from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic import field_validator, model_validator

from clearance.domain import TaskCategory, UserRole
from clearance.services.activities import normalize_activity


_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_dt_utc(value: object) -> object:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    if _DATE_ONLY_RE.fullmatch(s):
      dt = datetime.fromisoformat(s)
    else:
      dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
  else:
    return value

  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


class UserOut(BaseModel):
  id: str
  email: str
  name: str
  role: UserRole
  active: bool = True


class UserCreateIn(BaseModel):
  email: str = Field(min_length=3, max_length=320)
  name: str = Field(min_length=1, max_length=120)
  role: UserRole = "CLERK"
  password: str | None = Field(default=None, min_length=8, max_length=200)


class UserUpdateIn(BaseModel):
  name: str | None = Field(default=None, min_length=1, max_length=120)
  role: UserRole | None = None
  active: bool | None = None
  password: str | None = Field(default=None, min_length=8, max_length=200)


class UserCreateOut(BaseModel):
  user: UserOut
  tempPassword: str | None = None


class LoginIn(BaseModel):
  email: str
  password: str


class ApiTokenOut(BaseModel):
  id: str
  userId: str
  name: str
  tokenHint: str
  createdAt: datetime
  revokedAt: datetime | None = None


class ApiTokenCreateIn(BaseModel):
  name: str = Field(min_length=1, max_length=200)
  password: str = Field(min_length=1, max_length=200)


class ApiTokenCreateOut(BaseModel):
  token: str
  tokenHint: str
  apiToken: ApiTokenOut


class ActivityIn(BaseModel):
  """One unit of clearance work; legacy system/category/subcategory/activity keys are accepted."""

  shipmentType: str = ""
  stage: str = ""
  substage: str = ""
  task: str = ""

  @model_validator(mode="before")
  @classmethod
  def _normalize(cls, data: Any) -> Any:
    if isinstance(data, Mapping):
      return normalize_activity(data).to_dict()
    return data


class ProjectCreateIn(BaseModel):
  customer: str = Field(default="", max_length=200)
  blAwbNumber: str | None = Field(default=None, max_length=120)
  description: str = ""
  status: str | None = None
  priority: str | None = None
  systems: list[str] = []
  activities: list[ActivityIn] = []
  customerId: str | None = None
  portOfOrigin: str | None = None
  portOfDestination: str | None = None
  teamLead: str | None = None
  team: list[str] = []
  startDate: datetime | None = None
  endDate: datetime | None = None
  skipCascade: bool = False

  @field_validator("startDate", "endDate", mode="before")
  @classmethod
  def _dates_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class ProjectUpdateIn(BaseModel):
  customer: str | None = Field(default=None, max_length=200)
  blAwbNumber: str | None = None
  description: str | None = None
  status: str | None = None
  priority: str | None = None
  systems: list[str] | None = None
  activities: list[ActivityIn] | None = None
  customerId: str | None = None
  portOfOrigin: str | None = None
  portOfDestination: str | None = None
  teamLead: str | None = None
  team: list[str] | None = None
  startDate: datetime | None = None
  endDate: datetime | None = None

  @field_validator("startDate", "endDate", mode="before")
  @classmethod
  def _dates_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class ProjectOut(BaseModel):
  id: str
  customer: str
  blAwbNumber: str | None
  description: str
  status: str
  priority: str
  systems: list[str]
  activities: list[ActivityIn]
  customerId: str | None
  portOfOrigin: str | None
  portOfDestination: str | None
  teamLead: str | None
  team: list[str]
  startDate: datetime | None
  endDate: datetime | None
  userId: str
  createdAt: datetime
  updatedAt: datetime


class TrackingStageOut(BaseModel):
  id: str
  stageType: str
  name: str
  order: int
  status: str
  milestone: bool = False
  estimatedAt: datetime | None
  startedAt: datetime | None
  completedAt: datetime | None
  paymentRequested: bool
  paymentReceived: bool
  notes: str | None = None


class ShipmentOut(BaseModel):
  id: str
  shipmentNumber: str
  trackingNumber: str
  trackingSlug: str
  type: str
  status: str
  description: str
  consignor: str | None
  consignee: str | None
  arrivalDate: datetime | None
  publicTrackingEnabled: bool
  projectId: str | None
  clientId: str | None
  createdAt: datetime


class ShipmentDetailOut(ShipmentOut):
  stages: list[TrackingStageOut] = []
  progress: int = 0


class TrackOut(BaseModel):
  trackingNumber: str
  shipmentNumber: str
  type: str
  status: str
  consignee: str | None
  arrivalDate: datetime | None
  progress: int
  currentStage: str | None
  stages: list[TrackingStageOut]


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=1, max_length=300)
  projectId: str | None = None
  status: str | None = None
  priority: str | None = None
  category: TaskCategory = "GENERAL"
  trackingStageType: str | None = None
  description: str | None = None
  label: str | None = None
  duration: str | None = None
  assignedTo: list[str] = []
  date: datetime | None = None
  hours: int | None = Field(default=None, ge=0)
  autoAssign: bool = False

  @field_validator("date", mode="before")
  @classmethod
  def _date_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=1, max_length=300)
  status: str | None = None
  priority: str | None = None
  category: TaskCategory | None = None
  trackingStageType: str | None = None
  description: str | None = None
  label: str | None = None
  duration: str | None = None
  assignedTo: list[str] | None = None
  date: datetime | None = None
  hours: int | None = Field(default=None, ge=0)

  @field_validator("date", mode="before")
  @classmethod
  def _date_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskOut(BaseModel):
  id: str
  title: str
  project: str
  projectId: str | None
  status: str
  priority: str
  category: str
  trackingStageType: str | None
  description: str | None
  label: str | None
  duration: str | None
  assignedTo: list[str]
  date: datetime | None
  hours: int | None
  linkedActivity: dict[str, Any] | None
  userId: str
  createdAt: datetime
  updatedAt: datetime


class ProjectDetailOut(ProjectOut):
  shipment: ShipmentDetailOut | None = None
  tasks: list[TaskOut] = []


class AssignmentOut(BaseModel):
  taskId: str
  assignedUserId: str | None
  assignedUserName: str | None
  reason: str


class CascadeShipmentOut(BaseModel):
  id: str
  trackingNumber: str
  trackingSlug: str
  shipmentNumber: str


class CascadeOut(BaseModel):
  shipment: CascadeShipmentOut
  stagesCreated: int
  tasksCreated: int
  tasksAssigned: int
  assignments: list[AssignmentOut]


class ProjectCreateOut(BaseModel):
  success: bool
  error: str | None = None
  project: ProjectOut | None = None
  cascade: CascadeOut | None = None


class SyncProjectOut(BaseModel):
  projectId: str
  name: str
  success: bool
  message: str
  count: int = 0


class SyncOut(BaseModel):
  success: bool = True
  message: str
  totalTasks: int
  results: list[SyncProjectOut] = []


class AutoAssignOut(BaseModel):
  assigned: int
  assignments: list[AssignmentOut]


class RuleIn(BaseModel):
  category: TaskCategory
  roleTarget: UserRole | None = None
  userId: str | None = None
  priority: int | None = Field(default=None, ge=0)
  description: str | None = Field(default=None, max_length=300)
  isActive: bool | None = None


class RuleOut(BaseModel):
  id: str
  category: str
  shipmentType: str | None
  roleTarget: str | None
  userId: str | None
  priority: int
  description: str | None
  isActive: bool


class UserLoadOut(BaseModel):
  userId: str
  userName: str
  role: str
  activeTasks: int


class CategoryCountOut(BaseModel):
  category: str
  count: int


class AssignmentStatsOut(BaseModel):
  userLoads: list[UserLoadOut]
  categoryBreakdown: list[CategoryCountOut]


class AuditEventOut(BaseModel):
  id: str
  projectId: str | None
  taskId: str | None
  actorId: str | None
  eventType: str
  entityType: str
  entityId: str | None
  payload: dict[str, Any]
  createdAt: datetime


class StageCatalogOut(BaseModel):
  shipmentTypes: dict[str, str]
  stages: dict[str, dict[str, list[str]]]
  trackingStages: list[dict[str, Any]]
  categories: list[str]


class HealthOut(BaseModel):
  ok: bool = True
  db: Literal["ok", "error"] = "ok"
