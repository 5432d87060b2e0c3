"""Create owner accounts, listings, bookings, pricing periods and event log

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2025-06-02 10:12:31.418204

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]
from stay_settlement.config import SCHEMA

# revision identifiers, used by Alembic.
revision = "3f1c2a9d7b10"
down_revision = None
branch_labels = None
depends_on = None

_PREFIX = f"{SCHEMA}." if SCHEMA else ""


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "owner_accounts",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("pms_api_key", sa.String(), nullable=True),
        sa.Column("pms_customer_id", sa.Integer(), nullable=True),
        sa.Column("payment_account_id", sa.String(), nullable=True),
        sa.Column("application_fee_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "owner_account_id",
            sa.String(length=64),
            sa.ForeignKey(f"{_PREFIX}owner_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("pms_listing_id", sa.Integer(), nullable=True),
        sa.Column("currency", sa.String(length=3), server_default="eur", nullable=False),
        *_timestamps(),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_listings_owner_account_id", "listings", ["owner_account_id"], schema=SCHEMA
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "listing_id",
            sa.String(length=64),
            sa.ForeignKey(f"{_PREFIX}listings.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("guest_user_id", sa.String(length=64), nullable=False),
        sa.Column("check_in", sa.String(length=10), nullable=False),
        sa.Column("check_out", sa.String(length=10), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False),
        sa.Column("adults", sa.Integer(), nullable=True),
        sa.Column("children", sa.Integer(), nullable=True),
        sa.Column("total_price", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", sa.String(length=16), server_default="pending", nullable=False),
        sa.Column("guest_note", sa.Text(), nullable=True),
        sa.Column("guest_first_name", sa.String(), nullable=True),
        sa.Column("guest_last_name", sa.String(), nullable=True),
        sa.Column("guest_email", sa.String(), nullable=True),
        sa.Column("guest_phone", sa.String(), nullable=True),
        sa.Column("payment_session_id", sa.String(), nullable=False),
        sa.Column("payment_intent_id", sa.String(), nullable=True),
        sa.Column("external_reservation_id", sa.String(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("payment_session_id", name="uq_bookings_payment_session_id"),
        schema=SCHEMA,
    )
    op.create_index("ix_bookings_listing_id", "bookings", ["listing_id"], schema=SCHEMA)
    op.create_index("ix_bookings_guest_user_id", "bookings", ["guest_user_id"], schema=SCHEMA)
    op.create_index("ix_bookings_status", "bookings", ["status"], schema=SCHEMA)
    op.create_index(
        "ix_bookings_payment_intent_id", "bookings", ["payment_intent_id"], schema=SCHEMA
    )

    op.create_table(
        "pricing_periods",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "listing_id",
            sa.String(length=64),
            sa.ForeignKey(f"{_PREFIX}listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.Column("percentage_adjustment", sa.Integer(), nullable=True),
        sa.Column("label", sa.String(), nullable=True),
        *_timestamps(),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_pricing_periods_listing_id", "pricing_periods", ["listing_id"], schema=SCHEMA
    )

    op.create_table(
        "event_logs",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("level", sa.String(length=16), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "metadata", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True
        ),
        sa.Column("acknowledged", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        schema=SCHEMA,
    )
    op.create_index("ix_event_logs_level", "event_logs", ["level"], schema=SCHEMA)
    op.create_index("ix_event_logs_source", "event_logs", ["source"], schema=SCHEMA)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("event_logs", schema=SCHEMA)
    op.drop_table("pricing_periods", schema=SCHEMA)
    op.drop_table("bookings", schema=SCHEMA)
    op.drop_table("listings", schema=SCHEMA)
    op.drop_table("owner_accounts", schema=SCHEMA)
