"""create agreements and engagements

Revision ID: 202610010003
Revises: 202610010002
Create Date: 2026-10-01 00:03:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610010003"
down_revision: str | None = "202610010002"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _party_columns() -> list[sa.Column]:
    return [
        sa.Column("deal_id", sa.Uuid(), nullable=True),
        sa.Column("client_company_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
    ]


def _party_foreign_keys() -> list[sa.ForeignKeyConstraint]:
    return [
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["client_company_id"], ["client_companies.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
    ]


def upgrade() -> None:
    op.create_table(
        "proposals",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        *_party_columns(),
        sa.Column("created_by_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("total_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        *_party_foreign_keys(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_proposals_org_created", "proposals", ["organization_id", "created_at"], unique=False)
    op.create_index("ix_proposals_deal", "proposals", ["deal_id"], unique=False)

    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("proposal_id", sa.Uuid(), nullable=True),
        *_party_columns(),
        sa.Column("created_by_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("total_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signed_by_name", sa.String(length=255), nullable=True),
        sa.Column("signature_data", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="SET NULL"),
        *_party_foreign_keys(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contracts_org_created", "contracts", ["organization_id", "created_at"], unique=False)
    op.create_index("ix_contracts_deal", "contracts", ["deal_id"], unique=False)

    op.create_table(
        "engagements",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("contract_id", sa.Uuid(), nullable=True),
        *_party_columns(),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"], ondelete="SET NULL"),
        *_party_foreign_keys(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_engagements_org_created", "engagements", ["organization_id", "created_at"], unique=False)
    op.create_index("ix_engagements_org_status", "engagements", ["organization_id", "status"], unique=False)
    op.create_index("ix_engagements_client_company", "engagements", ["client_company_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_engagements_client_company", table_name="engagements")
    op.drop_index("ix_engagements_org_status", table_name="engagements")
    op.drop_index("ix_engagements_org_created", table_name="engagements")
    op.drop_table("engagements")
    op.drop_index("ix_contracts_deal", table_name="contracts")
    op.drop_index("ix_contracts_org_created", table_name="contracts")
    op.drop_table("contracts")
    op.drop_index("ix_proposals_deal", table_name="proposals")
    op.drop_index("ix_proposals_org_created", table_name="proposals")
    op.drop_table("proposals")
