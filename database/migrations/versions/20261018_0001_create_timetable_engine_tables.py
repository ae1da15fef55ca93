"""create timetable engine tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

notification_type = sa.Enum(
    "attendance_absent",
    "attendance_late",
    "attendance_excused",
    "system",
    name="notification_type",
)


def upgrade() -> None:
    op.create_table(
        "class_timetables",
        sa.Column("school_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("entries", sa.JSON(), nullable=False),
        sa.Column("periods", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "teacher_timetables",
        sa.Column("school_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("entries", sa.JSON(), nullable=False),
        sa.Column("periods", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "attendance_records",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("period", sa.Integer(), nullable=False),
        sa.Column("statuses", sa.JSON(), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "school_id",
            "class_id",
            "subject_id",
            "session_date",
            "period",
            name="uq_attendance_slot",
        ),
    )
    op.create_index("ix_attendance_records_school_id", "attendance_records", ["school_id"])
    op.create_index("ix_attendance_records_session_date", "attendance_records", ["session_date"])

    op.create_table(
        "student_guardians",
        sa.Column("student_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("guardian_id", sa.String(length=36), primary_key=True, nullable=False),
    )
    op.create_index("ix_student_guardians_guardian_id", "student_guardians", ["guardian_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False, server_default="system"),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    notification_type.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_student_guardians_guardian_id", table_name="student_guardians")
    op.drop_table("student_guardians")
    op.drop_index("ix_attendance_records_session_date", table_name="attendance_records")
    op.drop_index("ix_attendance_records_school_id", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_table("teacher_timetables")
    op.drop_table("class_timetables")
