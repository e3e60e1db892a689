"""add demo bookings and contact messages

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "demo_bookings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=50), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "confirmed", "completed", "cancelled", name="demo_booking_status"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column(
            "preferred_contact_method",
            sa.Enum("email", "phone", "whatsapp", name="contact_method"),
            nullable=True,
        ),
        sa.Column("source", sa.String(length=100), nullable=True),
        sa.Column("contacted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("demo_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_demo_bookings_email", "demo_bookings", ["email"])
    op.create_index("ix_demo_bookings_status", "demo_bookings", ["status"])

    op.create_table(
        "contact_messages",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=300), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("contact_messages")
    op.drop_index("ix_demo_bookings_status", table_name="demo_bookings")
    op.drop_index("ix_demo_bookings_email", table_name="demo_bookings")
    op.drop_table("demo_bookings")
    sa.Enum(name="contact_method").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="demo_booking_status").drop(op.get_bind(), checkfirst=True)
