from __future__ import annotations

from clearance.models import ApiToken, Project, Shipment, Task, TaskAssignmentRule, TrackingStage, User
from clearance.schemas import (
  ActivityIn,
  ApiTokenOut,
  AssignmentOut,
  CascadeOut,
  CascadeShipmentOut,
  ProjectOut,
  RuleOut,
  ShipmentDetailOut,
  ShipmentOut,
  TaskOut,
  TrackingStageOut,
  UserOut,
)
from clearance.services.activities import normalize_activities
from clearance.services.assignment import AssignmentResult
from clearance.services.cascade import CascadeResult
from clearance.tracking import is_milestone_stage, progress_percentage, stage_name, stage_order


def project_out(p: Project) -> ProjectOut:
  return ProjectOut(
    id=p.id,
    customer=p.customer,
    blAwbNumber=p.bl_awb_number,
    description=p.description,
    status=p.status,
    priority=p.priority,
    systems=list(p.systems or []),
    activities=[ActivityIn(**a.to_dict()) for a in normalize_activities(p.activities)],
    customerId=p.customer_id,
    portOfOrigin=p.port_of_origin,
    portOfDestination=p.port_of_destination,
    teamLead=p.team_lead,
    team=list(p.team or []),
    startDate=p.start_date,
    endDate=p.end_date,
    userId=p.user_id,
    createdAt=p.created_at,
    updatedAt=p.updated_at,
  )


def task_out(t: Task) -> TaskOut:
  return TaskOut(
    id=t.id,
    title=t.title,
    project=t.project,
    projectId=t.project_id,
    status=t.status,
    priority=t.priority,
    category=t.category,
    trackingStageType=t.tracking_stage_type,
    description=t.description,
    label=t.label,
    duration=t.duration,
    assignedTo=list(t.assigned_to or []),
    date=t.date,
    hours=t.hours,
    linkedActivity=t.linked_activity,
    userId=t.user_id,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
  )


def stage_out(s: TrackingStage) -> TrackingStageOut:
  return TrackingStageOut(
    id=s.id,
    stageType=s.stage_type,
    name=stage_name(s.stage_type),
    order=stage_order(s.stage_type),
    status=s.status,
    milestone=is_milestone_stage(s.stage_type),
    estimatedAt=s.estimated_at,
    startedAt=s.started_at,
    completedAt=s.completed_at,
    paymentRequested=bool(s.payment_requested),
    paymentReceived=bool(s.payment_received),
    notes=s.notes,
  )


def sorted_stages(stages: list[TrackingStage]) -> list[TrackingStage]:
  return sorted(stages, key=lambda s: stage_order(s.stage_type))


def stage_progress(stages: list[TrackingStage]) -> int:
  return progress_percentage(sum(1 for s in stages if s.status == "COMPLETED"))


def shipment_out(s: Shipment) -> ShipmentOut:
  return ShipmentOut(
    id=s.id,
    shipmentNumber=s.shipment_number,
    trackingNumber=s.tracking_number,
    trackingSlug=s.tracking_slug,
    type=s.type,
    status=s.status,
    description=s.description,
    consignor=s.consignor,
    consignee=s.consignee,
    arrivalDate=s.arrival_date,
    publicTrackingEnabled=bool(s.public_tracking_enabled),
    projectId=s.project_id,
    clientId=s.client_id,
    createdAt=s.created_at,
  )


def shipment_detail_out(s: Shipment, stages: list[TrackingStage]) -> ShipmentDetailOut:
  ordered = sorted_stages(stages)
  return ShipmentDetailOut(
    **shipment_out(s).model_dump(),
    stages=[stage_out(x) for x in ordered],
    progress=stage_progress(ordered),
  )


def assignment_out(a: AssignmentResult) -> AssignmentOut:
  return AssignmentOut(
    taskId=a.task_id,
    assignedUserId=a.assigned_user_id,
    assignedUserName=a.assigned_user_name,
    reason=a.reason,
  )


def cascade_out(c: CascadeResult) -> CascadeOut:
  return CascadeOut(
    shipment=CascadeShipmentOut(
      id=c.shipment.id,
      trackingNumber=c.shipment.tracking_number,
      trackingSlug=c.shipment.tracking_slug,
      shipmentNumber=c.shipment.shipment_number,
    ),
    stagesCreated=c.stages_created,
    tasksCreated=c.tasks_created,
    tasksAssigned=c.tasks_assigned,
    assignments=[assignment_out(a) for a in c.assignments],
  )


def rule_out(r: TaskAssignmentRule) -> RuleOut:
  return RuleOut(
    id=r.id,
    category=r.category,
    shipmentType=r.shipment_type,
    roleTarget=r.role_target,
    userId=r.user_id,
    priority=r.priority,
    description=r.description,
    isActive=bool(r.is_active),
  )


def user_out(u: User) -> UserOut:
  return UserOut(id=u.id, email=u.email, name=u.name, role=u.role, active=bool(u.active))


def api_token_out(t: ApiToken) -> ApiTokenOut:
  return ApiTokenOut(id=t.id, userId=t.user_id, name=t.name, tokenHint=t.token_hint, createdAt=t.created_at, revokedAt=t.revoked_at)
