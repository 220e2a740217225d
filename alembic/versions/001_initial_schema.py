"""Initial schema: clients, quotes, invoices, SLA templates and agreements.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # ── Standalone tables (no FKs) ─────────────────────────────────────

    op.create_table(
        "audit_log",
        sa.Column("event_type", sa.String(100), nullable=False, index=True),
        sa.Column("entity", sa.String(50), comment="Table/model name"),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("actor", sa.String(100), comment="API user or 'system'"),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text())),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "clients",
        sa.Column("name", sa.String(200)),
        sa.Column("company", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(50)),
        sa.Column("billing_address", sa.Text()),
        sa.Column("delivery_address", sa.Text()),
        sa.Column("vat_number", sa.String(50)),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "sla_templates",
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("package_type", sa.String(50), nullable=False, index=True, comment="PackageType enum value"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("default_metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("default_penalties", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_customizable", sa.Boolean(), nullable=False),
        sa.Column("requires_legal_review", sa.Boolean(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("parent_template_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("sla_templates.id")),
        sa.Column("created_by", sa.String(100)),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Dependent tables ──────────────────────────────────────────────

    op.create_table(
        "template_variables",
        sa.Column(
            "template_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sla_templates.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("default_value", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("data_source", sa.String(255), comment="Dotted path into the mapping context"),
        sa.Column("validation", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("description", sa.Text()),
        sa.Column("position", sa.Integer(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "quotes",
        sa.Column("quote_number", sa.String(50), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False, index=True),
        sa.Column("date_issued", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date()),
        sa.Column("subtotal_excl_vat", sa.Numeric(14, 2), nullable=False),
        sa.Column("vat_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_incl_vat", sa.Numeric(14, 2), nullable=False),
        sa.Column("deposit_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("deposit_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("balance_remaining", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("terms_text", sa.Text()),
        sa.Column("notes", sa.Text()),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("quote_number"),
    )

    op.create_table(
        "quote_items",
        sa.Column(
            "quote_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quotes.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(30)),
        sa.Column("taxable", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "invoices",
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quotes.id")),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False, index=True),
        sa.Column("date_issued", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("subtotal_excl_vat", sa.Numeric(14, 2), nullable=False),
        sa.Column("vat_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_incl_vat", sa.Numeric(14, 2), nullable=False),
        sa.Column("deposit_required", sa.Boolean(), nullable=False),
        sa.Column("deposit_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("balance_remaining", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("notes", sa.Text()),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number"),
        sa.UniqueConstraint("quote_id"),
    )

    op.create_table(
        "invoice_items",
        sa.Column(
            "invoice_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(30)),
        sa.Column("taxable", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Agreements ─────────────────────────────────────────────────────

    op.create_table(
        "service_agreements",
        sa.Column("agreement_number", sa.String(50), nullable=False),
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quotes.id"), nullable=False, index=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False, index=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("sla_templates.id")),
        sa.Column("package_type", sa.String(50), nullable=False),
        sa.Column("detection_confidence", sa.Integer()),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("variables", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("missing_variables", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("uptime_guarantee", sa.Numeric(5, 2), nullable=False),
        sa.Column("response_time_hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("resolution_time_hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("penalty_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("penalty_cap_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("monthly_revenue", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("generated_at", sa.DateTime(timezone=True)),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("accepted_at", sa.DateTime(timezone=True)),
        sa.Column("rejected_at", sa.DateTime(timezone=True)),
        sa.Column("expired_at", sa.DateTime(timezone=True)),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("signature_status", sa.String(20), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True)),
        sa.Column("auto_generated", sa.Boolean(), nullable=False),
        sa.Column("automation_trigger", sa.String(30), nullable=False),
        sa.Column("created_by", sa.String(100)),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("agreement_number"),
    )
    op.create_index(
        "uq_service_agreements_active_quote",
        "service_agreements",
        ["quote_id"],
        unique=True,
        postgresql_where=sa.text("status NOT IN ('rejected', 'expired')"),
    )

    op.create_table(
        "breach_incidents",
        sa.Column(
            "agreement_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("service_agreements.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("metric", sa.String(30), nullable=False, comment="BreachMetric enum value"),
        sa.Column("severity", sa.Numeric(5, 2), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("incident_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("calculated_penalty", sa.Numeric(14, 2), nullable=False),
        sa.Column("penalty_cap", sa.Numeric(14, 2), nullable=False),
        sa.Column("final_penalty", sa.Numeric(14, 2), nullable=False),
        sa.Column("resolution_status", sa.String(20), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    # Drop in reverse dependency order
    op.drop_table("breach_incidents")
    op.drop_index("uq_service_agreements_active_quote", table_name="service_agreements")
    op.drop_table("service_agreements")
    op.drop_table("invoice_items")
    op.drop_table("invoices")
    op.drop_table("quote_items")
    op.drop_table("quotes")
    op.drop_table("template_variables")
    op.drop_table("sla_templates")
    op.drop_table("clients")
    op.drop_table("audit_log")
