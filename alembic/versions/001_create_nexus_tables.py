"""create nexus tables

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision  = "001"
down_revision = None
branch_labels = None
depends_on    = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "professionals",
        sa.Column("id",                  sa.String(36),  primary_key=True),
        sa.Column("name",                sa.String(120), nullable=False),
        sa.Column("email",               sa.String(255), nullable=False),
        sa.Column("role",                sa.Enum("psychologist", "psychiatrist", "monitor", "coordinator", name="professional_role_enum"), nullable=False),
        sa.Column("specialization",      sa.String(120), nullable=True),
        sa.Column("can_create_programs", sa.Boolean(),   nullable=False, server_default=sa.true()),
        sa.Column("can_manage_students", sa.Boolean(),   nullable=False, server_default=sa.true()),
        sa.Column("is_active",           sa.Boolean(),   nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_professionals_email", "professionals", ["email"], unique=True)

    op.create_table(
        "students",
        sa.Column("id",           sa.String(36),  primary_key=True),
        sa.Column("name",         sa.String(120), nullable=False),
        sa.Column("email",        sa.String(255), nullable=True),
        sa.Column("school",       sa.String(200), nullable=True),
        sa.Column("grade",        sa.String(50),  nullable=True),
        sa.Column("is_active",    sa.Boolean(),   nullable=False, server_default=sa.true()),
        sa.Column("total_points", sa.Integer(),   nullable=False, server_default="0"),
        sa.Column("streak",       sa.Integer(),   nullable=False, server_default="0"),
        sa.Column("level",        sa.Integer(),   nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("total_points >= 0", name="ck_students_total_points"),
        sa.CheckConstraint("streak >= 0",       name="ck_students_streak"),
        sa.CheckConstraint("level >= 1",        name="ck_students_level"),
    )
    op.create_index("ix_students_email",     "students", ["email"],     unique=True)
    op.create_index("ix_students_is_active", "students", ["is_active"], unique=False)

    op.create_table(
        "programs",
        sa.Column("id",                 sa.String(36),  primary_key=True),
        sa.Column("title",              sa.String(200), nullable=False),
        sa.Column("description",        sa.Text(),      nullable=True),
        sa.Column("created_by",         sa.String(36),  sa.ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status",             sa.Enum("draft", "active", "paused", "completed", "archived", name="program_status_enum"), nullable=False),
        sa.Column("estimated_duration", sa.Integer(),   nullable=False, server_default="0"),
        sa.Column("color",              sa.String(20),  nullable=True),
        sa.Column("icon",               sa.String(50),  nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_programs_created_by", "programs", ["created_by"], unique=False)

    op.create_table(
        "modules",
        sa.Column("id",          sa.String(36),  primary_key=True),
        sa.Column("program_id",  sa.String(36),  sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title",       sa.String(200), nullable=False),
        sa.Column("description", sa.Text(),      nullable=True),
        sa.Column("order",       sa.Integer(),   nullable=False, server_default="1"),
        sa.Column("is_locked",   sa.Boolean(),   nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_modules_program_id", "modules", ["program_id"], unique=False)

    op.create_table(
        "activities",
        sa.Column("id",             sa.String(36),  primary_key=True),
        sa.Column("module_id",      sa.String(36),  sa.ForeignKey("modules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("program_id",     sa.String(36),  sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type",           sa.Enum("text", "checklist", "video", "quiz", "file", "habit", name="activity_type_enum"), nullable=False),
        sa.Column("title",          sa.String(200), nullable=False),
        sa.Column("description",    sa.Text(),      nullable=True),
        sa.Column("instructions",   sa.Text(),      nullable=True),
        sa.Column("order",          sa.Integer(),   nullable=False, server_default="1"),
        sa.Column("estimated_time", sa.Integer(),   nullable=False, server_default="15"),
        sa.Column("points",         sa.Integer(),   nullable=True),
        sa.Column("is_required",    sa.Boolean(),   nullable=False, server_default=sa.false()),
        sa.Column("content",        sa.JSON(),      nullable=False),
        *_timestamps(),
        sa.CheckConstraint("points IS NULL OR points >= 0", name="ck_activities_points"),
        sa.CheckConstraint("estimated_time >= 0",           name="ck_activities_estimated_time"),
    )
    op.create_index("ix_activities_module_id",      "activities", ["module_id"],               unique=False)
    op.create_index("ix_activities_program_module", "activities", ["program_id", "module_id"], unique=False)

    op.create_table(
        "student_programs",
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("added_at",   sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "assignments",
        sa.Column("id",                   sa.String(36), primary_key=True),
        sa.Column("student_id",           sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("program_id",           sa.String(36), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_by",          sa.String(36), sa.ForeignKey("professionals.id", ondelete="SET NULL"), nullable=True),
        sa.Column("assigned_at",          sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("start_date",           sa.Date(),     nullable=True),
        sa.Column("end_date",             sa.Date(),     nullable=True),
        sa.Column("status",               sa.Enum("active", "paused", "completed", "cancelled", "inactive", name="assignment_status_enum"), nullable=False),
        sa.Column("progress",             sa.Integer(),  nullable=False, server_default="0"),
        sa.Column("completed_activities", sa.JSON(),     nullable=False),
        sa.Column("custom_message",       sa.Text(),     nullable=True),
        sa.Column("send_notification",    sa.Boolean(),  nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_assignments_progress"),
    )
    op.create_index("ix_assignments_program_id",             "assignments", ["program_id"],                      unique=False)
    op.create_index("ix_assignments_student_status",         "assignments", ["student_id", "status"],            unique=False)
    op.create_index("ix_assignments_student_program_status", "assignments", ["student_id", "program_id", "status"], unique=False)

    op.create_table(
        "student_activities",
        sa.Column("id",           sa.String(36), primary_key=True),
        sa.Column("student_id",   sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_id",  sa.String(36), sa.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("program_id",   sa.String(36), nullable=True),
        sa.Column("module_id",    sa.String(36), nullable=True),
        sa.Column("status",       sa.Enum("locked", "in_progress", "completed", "reviewed", name="student_activity_status_enum"), nullable=False),
        sa.Column("started_at",   sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_spent",   sa.Integer(),  nullable=False, server_default="0"),
        sa.Column("answers",      sa.JSON(),     nullable=True),
        sa.Column("notes",        sa.Text(),     nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "activity_id", name="uq_student_activity"),
        sa.CheckConstraint("time_spent >= 0", name="ck_student_activities_time_spent"),
    )
    op.create_index("ix_student_activities_student_id",  "student_activities", ["student_id"],  unique=False)
    op.create_index("ix_student_activities_activity_id", "student_activities", ["activity_id"], unique=False)

    op.create_table(
        "weekly_schedules",
        sa.Column("id",          sa.String(36),  primary_key=True),
        sa.Column("title",       sa.String(200), nullable=False),
        sa.Column("description", sa.Text(),      nullable=True),
        sa.Column("created_by",  sa.String(36),  sa.ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("is_active",   sa.Boolean(),   nullable=False, server_default=sa.true()),
        sa.Column("color",       sa.String(20),  nullable=True),
        sa.Column("icon",        sa.String(50),  nullable=True),
        sa.Column("week_days",   sa.JSON(),      nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_weekly_schedules_created_by", "weekly_schedules", ["created_by"], unique=False)

    op.create_table(
        "schedule_students",
        sa.Column("schedule_id", sa.String(36), sa.ForeignKey("weekly_schedules.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("student_id",  sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("added_at",    sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "schedule_progress",
        sa.Column("id",           sa.String(36), primary_key=True),
        sa.Column("student_id",   sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("schedule_id",  sa.String(36), sa.ForeignKey("weekly_schedules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_id",  sa.String(64), nullable=False),
        sa.Column("day",          sa.String(10), nullable=True),
        sa.Column("completed",    sa.Boolean(),  nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_spent",   sa.Integer(),  nullable=False, server_default="0"),
        sa.Column("answers",      sa.JSON(),     nullable=True),
        sa.Column("notes",        sa.Text(),     nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "schedule_id", "activity_id", name="uq_schedule_progress_key"),
        sa.CheckConstraint("time_spent >= 0", name="ck_schedule_progress_time_spent"),
        sa.CheckConstraint(
            "(completed AND completed_at IS NOT NULL) OR (NOT completed AND completed_at IS NULL)",
            name="ck_schedule_progress_completed_at",
        ),
    )
    op.create_index("ix_schedule_progress_student_id",       "schedule_progress", ["student_id"],                unique=False)
    op.create_index("ix_schedule_progress_student_schedule", "schedule_progress", ["student_id", "schedule_id"], unique=False)

    op.create_table(
        "point_awards",
        sa.Column("id",            sa.String(36), primary_key=True),
        sa.Column("student_id",    sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_id",   sa.String(36), nullable=False),
        sa.Column("assignment_id", sa.String(36), nullable=True),
        sa.Column("points",        sa.Integer(),  nullable=False),
        sa.Column("awarded_at",    sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("points >= 0", name="ck_point_awards_points"),
    )
    op.create_index("ix_point_awards_student_id", "point_awards", ["student_id"], unique=False)


def downgrade() -> None:
    op.drop_table("point_awards")
    op.drop_table("schedule_progress")
    op.drop_table("schedule_students")
    op.drop_table("weekly_schedules")
    op.drop_table("student_activities")
    op.drop_table("assignments")
    op.drop_table("student_programs")
    op.drop_table("activities")
    op.drop_table("modules")
    op.drop_table("programs")
    op.drop_table("students")
    op.drop_table("professionals")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in (
            "student_activity_status_enum",
            "assignment_status_enum",
            "activity_type_enum",
            "program_status_enum",
            "professional_role_enum",
        ):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
