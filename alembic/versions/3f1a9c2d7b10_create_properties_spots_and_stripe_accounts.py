"""Create properties, spots and stripe account tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2025-08-04 10:12:31.118204

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3f1a9c2d7b10"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "rental"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", postgresql.JSONB(), nullable=True),
        sa.Column("amenities", postgresql.JSONB(), nullable=False),
        sa.Column("images", postgresql.JSONB(), nullable=False),
        sa.Column("rules", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("record_status", sa.String(16), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_rental_properties_record_status", "properties", ["record_status"], schema=SCHEMA
    )

    op.create_table(
        "spots",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey(f"{SCHEMA}.properties.id"),
            nullable=False,
        ),
        sa.Column("spot_number", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("length", sa.Float(), nullable=False),
        sa.Column("width", sa.Float(), nullable=False),
        sa.Column("price_daily", sa.Float(), nullable=False),
        sa.Column("price_weekly", sa.Float(), nullable=False),
        sa.Column("price_monthly", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("images", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("property_id", "spot_number", name="uq_spots_property_spot_number"),
        schema=SCHEMA,
    )
    op.create_index("ix_rental_spots_property_id", "spots", ["property_id"], schema=SCHEMA)

    op.create_table(
        "stripe_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stripe_account_id", sa.String(255), nullable=True, unique=True),
        sa.Column("stripe_secret_key", sa.String(255), nullable=False, unique=True),
        sa.Column("account_type", sa.String(16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("is_global_account", sa.Boolean(), nullable=False),
        sa.Column("is_default_account", sa.Boolean(), nullable=False),
        sa.Column("webhook_id", sa.String(255), nullable=True),
        sa.Column("webhook_url", sa.String(1024), nullable=True),
        sa.Column("webhook_status", sa.String(16), nullable=False),
        sa.Column("webhook_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("record_status", sa.String(16), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_rental_stripe_accounts_record_status",
        "stripe_accounts",
        ["record_status"],
        schema=SCHEMA,
    )
    # At most one non-deleted default account
    op.create_index(
        "uq_stripe_accounts_single_default",
        "stripe_accounts",
        ["is_default_account"],
        unique=True,
        schema=SCHEMA,
        postgresql_where=sa.text("is_default_account AND record_status = 'ACTIVE'"),
    )

    op.create_table(
        "stripe_account_properties",
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey(f"{SCHEMA}.stripe_accounts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey(f"{SCHEMA}.properties.id"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_rental_stripe_account_properties_property_id",
        "stripe_account_properties",
        ["property_id"],
        schema=SCHEMA,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("stripe_account_properties", schema=SCHEMA)
    op.drop_index("uq_stripe_accounts_single_default", table_name="stripe_accounts", schema=SCHEMA)
    op.drop_table("stripe_accounts", schema=SCHEMA)
    op.drop_table("spots", schema=SCHEMA)
    op.drop_table("properties", schema=SCHEMA)
