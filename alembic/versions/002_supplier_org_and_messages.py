"""Supplier organization and requisition message thread

Revision ID: 002_supplier_org_messages
Revises: 001_initial
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_supplier_org_messages"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # batch mode so the foreign key survives SQLite's limited ALTER TABLE
    with op.batch_alter_table("suppliers") as batch:
        batch.add_column(sa.Column("organization_id", sa.String(36), nullable=True))
        batch.create_foreign_key(
            "fk_suppliers_organization_id",
            "organizations",
            ["organization_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch.create_index("ix_suppliers_org", ["organization_id"])

    op.create_table(
        "pr_messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "pr_id",
            sa.String(36),
            sa.ForeignKey("purchase_requisitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("sender_name", sa.String(255), nullable=False),
        sa.Column("sender_role", sa.String(20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("is_system_note", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_pr_messages_pr_created", "pr_messages", ["pr_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_pr_messages_pr_created", table_name="pr_messages")
    op.drop_table("pr_messages")
    with op.batch_alter_table("suppliers") as batch:
        batch.drop_index("ix_suppliers_org")
        batch.drop_column("organization_id")
