from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def _uuid() -> str:
  return str(uuid.uuid4())


class Base(DeclarativeBase):
  pass


class User(Base):
  __tablename__ = "users"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  password_hash: Mapped[str] = mapped_column(String, nullable=False)
  role: Mapped[str] = mapped_column(String, nullable=False, default="CLERK", index=True)
  active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Session(Base):
  __tablename__ = "sessions"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  created_ip: Mapped[str | None] = mapped_column(String, nullable=True)
  user_agent: Mapped[str | None] = mapped_column(String, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ApiToken(Base):
  __tablename__ = "api_tokens"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  token_hash: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  token_hint: Mapped[str] = mapped_column(String, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Project(Base):
  __tablename__ = "projects"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  customer: Mapped[str] = mapped_column(String, nullable=False, default="")
  bl_awb_number: Mapped[str | None] = mapped_column(String, nullable=True)
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
  priority: Mapped[str] = mapped_column(String, nullable=False, default="MEDIUM")
  systems: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
  activities: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
  customer_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
  port_of_origin: Mapped[str | None] = mapped_column(String, nullable=True)
  port_of_destination: Mapped[str | None] = mapped_column(String, nullable=True)
  team_lead: Mapped[str | None] = mapped_column(String(36), nullable=True)
  team: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
  start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Shipment(Base):
  __tablename__ = "shipments"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  shipment_number: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  tracking_number: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  tracking_slug: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  type: Mapped[str] = mapped_column(String, nullable=False, default="IMPORT")
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  consignor: Mapped[str | None] = mapped_column(String, nullable=True)
  consignee: Mapped[str | None] = mapped_column(String, nullable=True)
  vessel_name: Mapped[str | None] = mapped_column(String, nullable=True)
  container_number: Mapped[str | None] = mapped_column(String, nullable=True)
  arrival_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  public_tracking_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
  # No FK: deleting a project leaves its generated shipment in place.
  project_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
  client_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TrackingStage(Base):
  __tablename__ = "tracking_stages"
  __table_args__ = (UniqueConstraint("shipment_id", "stage_type", name="ux_tracking_stages_shipment_stage"),)

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  shipment_id: Mapped[str] = mapped_column(String(36), ForeignKey("shipments.id"), nullable=False, index=True)
  stage_type: Mapped[str] = mapped_column(String, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
  estimated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  payment_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  payment_received: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  notes: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Task(Base):
  __tablename__ = "tasks"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  title: Mapped[str] = mapped_column(String, nullable=False)
  project: Mapped[str] = mapped_column(String, nullable=False, default="")
  project_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING", index=True)
  priority: Mapped[str] = mapped_column(String, nullable=False, default="MEDIUM")
  category: Mapped[str] = mapped_column(String, nullable=False, default="GENERAL", index=True)
  tracking_stage_type: Mapped[str | None] = mapped_column(String, nullable=True)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  label: Mapped[str | None] = mapped_column(String, nullable=True)
  duration: Mapped[str | None] = mapped_column(String, nullable=True)
  assigned_to: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
  date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
  linked_activity: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TaskAssignmentRule(Base):
  __tablename__ = "task_assignment_rules"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  category: Mapped[str] = mapped_column(String, nullable=False, index=True)
  shipment_type: Mapped[str | None] = mapped_column(String, nullable=True)
  role_target: Mapped[str | None] = mapped_column(String, nullable=True)
  user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
  priority: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
  description: Mapped[str | None] = mapped_column(String, nullable=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class AuditEvent(Base):
  __tablename__ = "audit_events"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  project_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
  task_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
  actor_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
  event_type: Mapped[str] = mapped_column(String, nullable=False)
  entity_type: Mapped[str] = mapped_column(String, nullable=False)
  entity_id: Mapped[str | None] = mapped_column(String, nullable=True)
  payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
