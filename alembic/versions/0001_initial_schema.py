"""initial schema: leads, deals, contacts, tasks, assignment_rules

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("company", sa.String(length=255), nullable=False),
        sa.Column("contact_name", sa.String(length=255)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("value", sa.Numeric(precision=15, scale=2)),
        sa.Column("budget", sa.Numeric(precision=15, scale=2)),
        sa.Column("timeline", sa.String(length=100)),
        sa.Column("source", sa.String(length=50), nullable=False, server_default="website"),
        sa.Column("stage", sa.String(length=50), nullable=False, server_default="new"),
        sa.Column("notes", sa.Text()),
        sa.Column("assigned_to", sa.Integer()),
        # JSON documents stored as text; see app.models.types.JSONDocument
        sa.Column("assignment_history", sa.Text()),
        sa.Column("qualification", sa.Text()),
        sa.Column("score", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("score_history", sa.Text()),
        sa.Column("tags", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("score BETWEEN 1 AND 100", name="ck_lead_score_range"),
    )
    op.create_index("idx_leads_assigned_stage", "leads", ["assigned_to", "stage"])
    op.create_index("idx_leads_score", "leads", ["score"])

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column(
            "amount", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"
        ),
        sa.Column("stage", sa.String(length=50), nullable=False, server_default="new"),
        sa.Column("probability", sa.Integer(), nullable=False, server_default="25"),
        sa.Column("close_date", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("deal_owner", sa.Integer()),
        sa.Column("contact_id", sa.Integer()),
        sa.Column("stage_history", sa.Text()),
        sa.Column("assignment_history", sa.Text()),
        sa.Column("tags", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "probability BETWEEN 0 AND 100", name="ck_deal_probability_range"
        ),
    )
    op.create_index("idx_deals_owner_stage", "deals", ["deal_owner", "stage"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("company", sa.String(length=255)),
        sa.Column("assigned_to", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_contacts_assigned_to", "contacts", ["assigned_to"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="pending"),
        sa.Column("assigned_to", sa.Integer()),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"])

    op.create_table(
        "assignment_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("entity", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("criteria", sa.Text()),
        sa.Column(
            "fallback_strategy",
            sa.String(length=50),
            nullable=False,
            server_default="least_workload",
        ),
        sa.Column("assign_to", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_assignment_rules_entity_active",
        "assignment_rules",
        ["entity", "is_active", "priority"],
    )


def downgrade() -> None:
    op.drop_index("idx_assignment_rules_entity_active", table_name="assignment_rules")
    op.drop_table("assignment_rules")
    op.drop_index("ix_tasks_assigned_to", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_contacts_assigned_to", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("idx_deals_owner_stage", table_name="deals")
    op.drop_table("deals")
    op.drop_index("idx_leads_score", table_name="leads")
    op.drop_index("idx_leads_assigned_stage", table_name="leads")
    op.drop_table("leads")
