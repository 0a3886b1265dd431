"""cabin booking schema with active-slot unique index

Revision ID: 0001
Revises:
Create Date: 2024-05-01 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

SHIFT_CHECK = "shift IN ('morning', 'afternoon', 'evening')"
ACTIVE_STATUS_SQL = "status IN ('pending', 'payment_pending', 'confirmed')"


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("city", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_locations_owner_id", "locations", ["owner_id"])

    op.create_table(
        "cabins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("default_price", sa.Float(), nullable=False),
        sa.Column("morning_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("afternoon_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("evening_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("location_id", "name"),
        sa.CheckConstraint("default_price > 0", name="ck_cabins_default_price_positive"),
    )

    for table, extra in (
        ("manual_overrides", [
            sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        ]),
        ("price_overrides", [
            sa.Column("price", sa.Float(), nullable=False),
            sa.CheckConstraint("price > 0", name="ck_price_overrides_price_positive"),
        ]),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("cabin_id", sa.Integer(), sa.ForeignKey("cabins.id", ondelete="CASCADE"), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("shift", sa.Text(), nullable=False),
            *extra,
            sa.Column("updated_by", sa.Text()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
            sa.UniqueConstraint("cabin_id", "date", "shift"),
            sa.CheckConstraint(SHIFT_CHECK, name=f"ck_{table}_shift"),
        )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cabin_id", sa.Integer(), sa.ForeignKey("cabins.id"), nullable=False),
        sa.Column("professional_id", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shift", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("cancel_reason", sa.Text()),
        sa.Column("cancelled_by", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint(SHIFT_CHECK, name="ck_bookings_shift"),
        sa.CheckConstraint("price > 0", name="ck_bookings_price_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'payment_pending', 'confirmed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )
    op.create_index(
        "uq_bookings_active_slot",
        "bookings",
        ["cabin_id", "date", "shift"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_SQL),
        sqlite_where=sa.text(ACTIVE_STATUS_SQL),
    )
    op.create_index("ix_bookings_professional_date", "bookings", ["professional_id", "date"])


def downgrade() -> None:
    op.drop_index("ix_bookings_professional_date", table_name="bookings")
    op.drop_index("uq_bookings_active_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("price_overrides")
    op.drop_table("manual_overrides")
    op.drop_table("cabins")
    op.drop_index("ix_locations_owner_id", table_name="locations")
    op.drop_table("locations")
