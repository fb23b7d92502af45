"""create BANT scoring tables

Revision ID: 3c1e7a9d2f40
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates ``scoring_config``, ``lead_scoring`` and ``lead_score_history``
and seeds the default rubric with INSERT … WHERE NOT EXISTS, so the
seed step is idempotent.  ``leads`` belongs to the enclosing
application and is only created here when it does not exist yet.
"""

from typing import Sequence, Union

import json

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1e7a9d2f40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Values come from DEFAULT_SCORING_CONFIG; edit them there, not here.
from bant_scoring.core.default_scoring_config import DEFAULT_SCORING_CONFIG  # noqa: E402


def _create_leads_if_missing() -> None:
    inspector = sa.inspect(op.get_bind())
    if "leads" in inspector.get_table_names():
        return
    op.create_table(
        "leads",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text()),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("property_type", sa.Text()),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.Text()),
        sa.Column("postal_code", sa.Text()),
        sa.Column("surface", sa.Integer()),
        sa.Column("rooms", sa.Integer()),
        sa.Column("bedrooms", sa.Integer()),
        sa.Column("bathrooms", sa.Integer()),
        sa.Column("has_garden", sa.Boolean(), server_default="false"),
        sa.Column("has_parking", sa.Boolean(), server_default="false"),
        sa.Column("has_balcony", sa.Boolean(), server_default="false"),
        sa.Column("construction_year", sa.Integer()),
        sa.Column("sale_timeline", sa.Text()),
        sa.Column("wants_expert_contact", sa.Boolean(), server_default="false"),
        sa.Column("estimated_value", sa.Numeric(12, 2)),
        sa.Column("project_type", sa.Text()),
        sa.Column("timeline", sa.Text()),
        sa.Column("ownership_status", sa.Text()),
        sa.Column(
            "lead_type",
            sa.String(50),
            nullable=False,
            server_default="estimation_quick",
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )


def upgrade() -> None:
    _create_leads_if_missing()

    op.create_table(
        "scoring_config",
        sa.Column(
            "config_id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("criteria_type", sa.String(20), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="25"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("rules", postgresql.JSONB(), nullable=False),
        sa.Column("thresholds", postgresql.JSONB()),
        sa.Column("bonus_rules", postgresql.JSONB()),
        sa.Column("description", sa.Text()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.UniqueConstraint("criteria_type", name="uq_scoring_config_criteria_type"),
        sa.CheckConstraint(
            "criteria_type IN ('budget', 'authority', 'need', 'timeline')",
            name="ck_scoring_config_criteria_type",
        ),
        sa.CheckConstraint(
            "weight BETWEEN 0 AND 100", name="ck_scoring_config_weight"
        ),
    )

    op.create_table(
        "lead_scoring",
        sa.Column(
            "scoring_id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("total_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("budget_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("authority_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("need_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("timeline_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "qualification_status",
            sa.String(20),
            nullable=False,
            server_default="unqualified",
        ),
        sa.Column("confidence_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("manual_adjustment", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("assigned_to", sa.String(100)),
        sa.Column(
            "last_calculated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint("total_score BETWEEN 0 AND 100", name="ck_total_score_range"),
        sa.CheckConstraint("budget_score BETWEEN 0 AND 25", name="ck_budget_score_range"),
        sa.CheckConstraint(
            "authority_score BETWEEN 0 AND 25", name="ck_authority_score_range"
        ),
        sa.CheckConstraint("need_score BETWEEN 0 AND 25", name="ck_need_score_range"),
        sa.CheckConstraint(
            "timeline_score BETWEEN 0 AND 25", name="ck_timeline_score_range"
        ),
        sa.CheckConstraint(
            "confidence_level BETWEEN 0 AND 100", name="ck_confidence_level_range"
        ),
        sa.CheckConstraint(
            "qualification_status IN ('unqualified', 'to_review', 'qualified', 'hot_lead')",
            name="ck_qualification_status",
        ),
    )
    op.create_index(
        "ix_lead_scoring_last_calculated_at", "lead_scoring", ["last_calculated_at"]
    )

    op.create_table(
        "lead_score_history",
        sa.Column(
            "history_id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("old_score", sa.Integer(), nullable=False),
        sa.Column("new_score", sa.Integer(), nullable=False),
        sa.Column("score_change", sa.Integer(), nullable=False),
        sa.Column("change_reason", sa.String(30), nullable=False),
        sa.Column(
            "changed_by", sa.String(100), nullable=False, server_default="system"
        ),
        sa.Column("details", postgresql.JSONB()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("clock_timestamp()"),
        ),
        sa.CheckConstraint(
            "change_reason IN ('automatic_calculation', 'config_update', "
            "'initial_calculation', 'manual_adjustment')",
            name="ck_score_history_change_reason",
        ),
        sa.CheckConstraint(
            "score_change = new_score - old_score", name="ck_score_history_change"
        ),
    )
    op.create_index(
        "ix_lead_score_history_lead_created",
        "lead_score_history",
        ["lead_id", "created_at"],
    )

    for config in DEFAULT_SCORING_CONFIG:
        criteria_type = config["criteria_type"]
        description = (config.get("description") or "").replace("'", "''")
        rules = json.dumps(config["rules"]).replace("'", "''")
        thresholds = json.dumps(config["thresholds"]).replace("'", "''")
        bonus_rules = json.dumps(config["bonus_rules"]).replace("'", "''")

        op.execute(
            f"""
            INSERT INTO scoring_config
                (criteria_type, weight, is_active, rules, thresholds, bonus_rules, description)
            SELECT '{criteria_type}', {config["weight"]}, {str(config["is_active"]).lower()},
                   '{rules}'::jsonb, '{thresholds}'::jsonb, '{bonus_rules}'::jsonb,
                   '{description}'
            WHERE NOT EXISTS (
                SELECT 1 FROM scoring_config WHERE criteria_type = '{criteria_type}'
            );
            """
        )


def downgrade() -> None:
    op.drop_index("ix_lead_score_history_lead_created", table_name="lead_score_history")
    op.drop_table("lead_score_history")
    op.drop_index("ix_lead_scoring_last_calculated_at", table_name="lead_scoring")
    op.drop_table("lead_scoring")
    op.drop_table("scoring_config")
