"""create schedule entries, bucket locks and activity logs

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


day_of_week = sa.Enum(
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
    name="day_of_week",
)


def upgrade() -> None:
    op.create_table(
        "schedule_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("room", sa.String(length=100), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_entries_class_id", "schedule_entries", ["class_id"])
    op.create_index("ix_schedule_entries_subject_id", "schedule_entries", ["subject_id"])
    op.create_index("ix_schedule_entries_teacher_id", "schedule_entries", ["teacher_id"])
    op.create_index("ix_schedule_entries_academic_year", "schedule_entries", ["academic_year"])
    op.create_index("ix_schedule_entries_is_active", "schedule_entries", ["is_active"])
    op.create_index(
        "ix_schedule_entries_class_bucket",
        "schedule_entries",
        ["class_id", "section", "day_of_week", "academic_year"],
    )
    op.create_index(
        "ix_schedule_entries_teacher_bucket",
        "schedule_entries",
        ["teacher_id", "day_of_week", "academic_year"],
    )
    op.create_index(
        "ix_schedule_entries_room_bucket",
        "schedule_entries",
        ["room", "day_of_week", "academic_year"],
    )

    op.create_table(
        "schedule_locks",
        sa.Column("academic_year", sa.String(length=20), primary_key=True, nullable=False),
        sa.Column("day_of_week", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_entity_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("schedule_locks")
    for name in (
        "ix_schedule_entries_room_bucket",
        "ix_schedule_entries_teacher_bucket",
        "ix_schedule_entries_class_bucket",
        "ix_schedule_entries_is_active",
        "ix_schedule_entries_academic_year",
        "ix_schedule_entries_teacher_id",
        "ix_schedule_entries_subject_id",
        "ix_schedule_entries_class_id",
    ):
        op.drop_index(name, table_name="schedule_entries")
    op.drop_table("schedule_entries")
    day_of_week.drop(op.get_bind(), checkfirst=True)
