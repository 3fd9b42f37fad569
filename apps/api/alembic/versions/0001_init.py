"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "users",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("email", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("password_hash", sa.String(), nullable=False),
    sa.Column("role", sa.String(), nullable=False, server_default="CLERK"),
    sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_users_email", "users", ["email"], unique=True)
  op.create_index("ix_users_role", "users", ["role"], unique=False)

  op.create_table(
    "sessions",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("created_ip", sa.String(), nullable=True),
    sa.Column("user_agent", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_sessions_user_id", "sessions", ["user_id"], unique=False)

  op.create_table(
    "api_tokens",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("token_hash", sa.String(), nullable=False),
    sa.Column("token_hint", sa.String(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
  )
  op.create_index("ix_api_tokens_user_id", "api_tokens", ["user_id"], unique=False)
  op.create_index("ix_api_tokens_token_hash", "api_tokens", ["token_hash"], unique=True)

  op.create_table(
    "projects",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("customer", sa.String(), nullable=False, server_default=""),
    sa.Column("bl_awb_number", sa.String(), nullable=True),
    sa.Column("description", sa.Text(), nullable=False, server_default=""),
    sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
    sa.Column("priority", sa.String(), nullable=False, server_default="MEDIUM"),
    sa.Column("systems", sa.JSON(), nullable=False),
    sa.Column("activities", sa.JSON(), nullable=False),
    sa.Column("customer_id", sa.String(length=36), nullable=True),
    sa.Column("port_of_origin", sa.String(), nullable=True),
    sa.Column("port_of_destination", sa.String(), nullable=True),
    sa.Column("team_lead", sa.String(length=36), nullable=True),
    sa.Column("team", sa.JSON(), nullable=False),
    sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_projects_user_id", "projects", ["user_id"], unique=False)

  op.create_table(
    "shipments",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("shipment_number", sa.String(), nullable=False),
    sa.Column("tracking_number", sa.String(), nullable=False),
    sa.Column("tracking_slug", sa.String(), nullable=False),
    sa.Column("type", sa.String(), nullable=False, server_default="IMPORT"),
    sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
    sa.Column("description", sa.Text(), nullable=False, server_default=""),
    sa.Column("consignor", sa.String(), nullable=True),
    sa.Column("consignee", sa.String(), nullable=True),
    sa.Column("vessel_name", sa.String(), nullable=True),
    sa.Column("container_number", sa.String(), nullable=True),
    sa.Column("arrival_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("public_tracking_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("project_id", sa.String(length=36), nullable=True),
    sa.Column("client_id", sa.String(length=36), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_shipments_shipment_number", "shipments", ["shipment_number"], unique=True)
  op.create_index("ix_shipments_tracking_number", "shipments", ["tracking_number"], unique=True)
  op.create_index("ix_shipments_tracking_slug", "shipments", ["tracking_slug"], unique=True)
  op.create_index("ix_shipments_project_id", "shipments", ["project_id"], unique=False)

  op.create_table(
    "tracking_stages",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("shipment_id", sa.String(length=36), sa.ForeignKey("shipments.id"), nullable=False),
    sa.Column("stage_type", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
    sa.Column("estimated_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("payment_requested", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("payment_received", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("notes", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("shipment_id", "stage_type", name="ux_tracking_stages_shipment_stage"),
  )
  op.create_index("ix_tracking_stages_shipment_id", "tracking_stages", ["shipment_id"], unique=False)

  op.create_table(
    "tasks",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("project", sa.String(), nullable=False, server_default=""),
    sa.Column("project_id", sa.String(length=36), nullable=True),
    sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
    sa.Column("priority", sa.String(), nullable=False, server_default="MEDIUM"),
    sa.Column("category", sa.String(), nullable=False, server_default="GENERAL"),
    sa.Column("tracking_stage_type", sa.String(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("label", sa.String(), nullable=True),
    sa.Column("duration", sa.String(), nullable=True),
    sa.Column("assigned_to", sa.JSON(), nullable=False),
    sa.Column("date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("hours", sa.Integer(), nullable=True),
    sa.Column("linked_activity", sa.JSON(), nullable=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_tasks_project_id", "tasks", ["project_id"], unique=False)
  op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)
  op.create_index("ix_tasks_category", "tasks", ["category"], unique=False)

  op.create_table(
    "task_assignment_rules",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("category", sa.String(), nullable=False),
    sa.Column("shipment_type", sa.String(), nullable=True),
    sa.Column("role_target", sa.String(), nullable=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
    sa.Column("priority", sa.Integer(), nullable=False, server_default="100"),
    sa.Column("description", sa.String(), nullable=True),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_task_assignment_rules_category", "task_assignment_rules", ["category"], unique=False)

  op.create_table(
    "audit_events",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("project_id", sa.String(length=36), nullable=True),
    sa.Column("task_id", sa.String(length=36), nullable=True),
    sa.Column("actor_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
    sa.Column("event_type", sa.String(), nullable=False),
    sa.Column("entity_type", sa.String(), nullable=False),
    sa.Column("entity_id", sa.String(), nullable=True),
    sa.Column("payload", sa.JSON(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_audit_events_project_id", "audit_events", ["project_id"], unique=False)


def downgrade() -> None:
  op.drop_table("audit_events")
  op.drop_table("task_assignment_rules")
  op.drop_table("tasks")
  op.drop_table("tracking_stages")
  op.drop_table("shipments")
  op.drop_table("projects")
  op.drop_table("api_tokens")
  op.drop_table("sessions")
  op.drop_table("users")
