"""initial schema - organizations, profiles, suppliers, requisitions, quotes, invoices

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("surname", sa.String(255)),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "organization_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="SET NULL"),
        ),
        sa.Column("department", sa.String(255)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_profiles_org_role", "profiles", ["organization_id", "role"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255)),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            unique=True,
        ),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "purchase_requisitions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("transaction_id", sa.String(40), nullable=False, unique=True),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("parent_id", sa.String(36), sa.ForeignKey("purchase_requisitions.id")),
        sa.Column("requested_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("requested_by_name", sa.String(255), nullable=False),
        sa.Column("department", sa.String(255)),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("urgency", sa.String(10), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("hod_status", sa.String(20), nullable=False),
        sa.Column("finance_status", sa.String(20), nullable=False),
        sa.Column("due_date", sa.Date()),
        sa.Column("payment_due_date", sa.Date()),
        sa.Column("document_url", sa.String(1024)),
        sa.Column("history", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_pr_org_status", "purchase_requisitions", ["organization_id", "status"])
    op.create_index("ix_pr_requested_by", "purchase_requisitions", ["requested_by"])
    op.create_index("ix_pr_parent", "purchase_requisitions", ["parent_id"])
    op.create_index("ix_pr_created_at", "purchase_requisitions", ["created_at"])

    op.create_table(
        "quote_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "pr_id", sa.String(36), sa.ForeignKey("purchase_requisitions.id"), nullable=False
        ),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("supplier_id", sa.String(36), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("requested_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.Column("responded_at", sa.DateTime()),
    )
    op.create_index("ix_qr_pr", "quote_requests", ["pr_id"])
    op.create_index("ix_qr_supplier_status", "quote_requests", ["supplier_id", "status"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "quote_request_id",
            sa.String(36),
            sa.ForeignKey("quote_requests.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "pr_id", sa.String(36), sa.ForeignKey("purchase_requisitions.id"), nullable=False
        ),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("supplier_id", sa.String(36), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("delivery_time", sa.String(100)),
        sa.Column("valid_until", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("document_url", sa.String(1024)),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("resolved_by", sa.String(36), sa.ForeignKey("profiles.id")),
        sa.Column("resolved_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_quotes_pr_status", "quotes", ["pr_id", "status"])
    op.create_index("ix_quotes_supplier", "quotes", ["supplier_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "pr_id", sa.String(36), sa.ForeignKey("purchase_requisitions.id"), nullable=False
        ),
        sa.Column(
            "quote_id", sa.String(36), sa.ForeignKey("quotes.id"), nullable=False, unique=True
        ),
        sa.Column("supplier_id", sa.String(36), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("document_url", sa.String(1024), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("paid_by", sa.String(36), sa.ForeignKey("profiles.id")),
        sa.Column("paid_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_invoices_org_status", "invoices", ["organization_id", "status"])
    op.create_index("ix_invoices_pr", "invoices", ["pr_id"])


def downgrade() -> None:
    """Drop all tables. ⚠️ DESTRUCTIVE — only for dev/test environments."""
    for table in (
        "invoices",
        "quotes",
        "quote_requests",
        "purchase_requisitions",
        "suppliers",
        "profiles",
        "organizations",
    ):
        op.drop_table(table)
