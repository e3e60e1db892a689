"""create academy schema

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "user_role": ("student", "teacher", "admin"),
    "user_status": ("active", "inactive", "on_hold", "graduated"),
    "class_preference": ("online", "offline", "hybrid"),
    "user_sex": ("male", "female", "other"),
    "employment_type": ("part_time", "full_time"),
    "batch_mode": ("online", "offline"),
    "notification_type": ("general", "content", "schedule", "billing"),
    "event_priority": ("low", "medium", "high"),
    "event_category": ("general", "academic", "cultural", "sports", "notice"),
    "book_material_type": ("pdf", "video", "youtube"),
    "currency": ("inr", "usd"),
    "billing_cycle": ("monthly", "quarterly", "annually"),
    "invoice_status": ("pending", "paid", "overdue"),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True, nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("status", _enum("user_status"), nullable=False),
        sa.Column("class_preference", _enum("class_preference"), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("sex", _enum("user_sex"), nullable=True),
        sa.Column("contact_number", sa.String(length=50), nullable=True),
        sa.Column("alternate_contact_number", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("date_of_joining", sa.Date(), nullable=True),
        sa.Column("location_id", sa.String(length=36), nullable=True),
        sa.Column("schedules", sa.JSON(), nullable=False),
        sa.Column("courses", sa.JSON(), nullable=False),
        sa.Column("father_name", sa.String(length=200), nullable=True),
        sa.Column("standard", sa.String(length=50), nullable=True),
        sa.Column("school_name", sa.String(length=200), nullable=True),
        sa.Column("grade", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("course_expertise", sa.JSON(), nullable=False),
        sa.Column("educational_qualifications", sa.Text(), nullable=True),
        sa.Column("employment_type", _enum("employment_type"), nullable=True),
        sa.Column("years_of_experience", sa.Integer(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courses",
        _id(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("icon_url", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_courses_name", "courses", ["name"], unique=True)

    op.create_table(
        "locations",
        _id(),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
        sa.Column("address", sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "batches",
        _id(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("mode", _enum("batch_mode"), nullable=True),
        sa.Column("location_id", sa.String(length=36), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_batches_course_id", "batches", ["course_id"])
    op.create_index("ix_batches_teacher_id", "batches", ["teacher_id"])

    op.create_table(
        "notifications",
        _id(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", _enum("notification_type"), nullable=False),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])

    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=50), nullable=True),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", _enum("event_priority"), nullable=False),
        sa.Column("event_type", _enum("event_category"), nullable=False),
        sa.Column("target_audience", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("recipient_ids", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "notices",
        _id(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("target_audience", sa.String(length=200), nullable=True),
        sa.Column("course_name", sa.String(length=200), nullable=True),
        sa.Column("recipient_ids", sa.JSON(), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "book_materials",
        _id(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("type", _enum("book_material_type"), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("recipient_ids", sa.JSON(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_book_materials_course_id", "book_materials", ["course_id"])

    op.create_table(
        "grade_exams",
        _id(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("exam_date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=50), nullable=True),
        sa.Column("duration", sa.String(length=50), nullable=True),
        sa.Column("course", sa.String(length=200), nullable=True),
        sa.Column("grade", sa.String(length=50), nullable=True),
        sa.Column("syllabus_url", sa.Text(), nullable=True),
        sa.Column("registration_fee", sa.Float(), nullable=True),
        sa.Column("registration_deadline", sa.Date(), nullable=True),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("recipient_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "fee_structures",
        _id(),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", _enum("currency"), nullable=False),
        sa.Column("billing_cycle", _enum("billing_cycle"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_fee_structures_course_id", "fee_structures", ["course_id"], unique=True)

    op.create_table(
        "invoices",
        _id(),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("fee_structure_id", sa.String(length=36), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", _enum("currency"), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("billing_period", sa.String(length=50), nullable=False),
        sa.Column("status", _enum("invoice_status"), nullable=False),
        sa.Column("payment_details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_invoices_student_id", "invoices", ["student_id"])
    op.create_index("ix_invoices_fee_structure_id", "invoices", ["fee_structure_id"])


def downgrade() -> None:
    for table in (
        "invoices",
        "fee_structures",
        "grade_exams",
        "book_materials",
        "notices",
        "events",
        "activity_logs",
        "notifications",
        "batches",
        "locations",
        "courses",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for name in ENUMS:
        sa.Enum(name=name).drop(bind, checkfirst=True)
