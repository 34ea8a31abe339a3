"""observations, gad-7 assessments and student followers

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision  = "002"
down_revision = "001"
branch_labels = None
depends_on    = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "student_professionals",
        sa.Column("student_id",      sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"),      primary_key=True),
        sa.Column("professional_id", sa.String(36), sa.ForeignKey("professionals.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("added_at",        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_student_professionals_professional_id", "student_professionals", ["professional_id"], unique=False)

    op.create_table(
        "observations",
        sa.Column("id",          sa.String(36),  primary_key=True),
        sa.Column("student_id",  sa.String(36),  sa.ForeignKey("students.id", ondelete="CASCADE"),      nullable=False),
        sa.Column("author_id",   sa.String(36),  sa.ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_name", sa.String(120), nullable=False),
        sa.Column("author_type", sa.Enum("monitor", "psychologist", "psychiatrist", "general", name="observation_author_enum"), nullable=False),
        sa.Column("text",        sa.Text(),      nullable=False),
        sa.Column("form_data",   sa.JSON(),      nullable=True),
        sa.Column("time_stamp",  sa.String(10),  nullable=False),
        sa.Column("is_private",  sa.Boolean(),   nullable=False, server_default=sa.false()),
        sa.Column("tags",        sa.JSON(),      nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_observations_student_created", "observations", ["student_id", "created_at"], unique=False)
    op.create_index("ix_observations_author_created",  "observations", ["author_id", "created_at"],  unique=False)

    op.create_table(
        "gad7_assessments",
        sa.Column("id",                   sa.String(36), primary_key=True),
        sa.Column("student_id",           sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("answers",              sa.JSON(),     nullable=False),
        sa.Column("score",                sa.Integer(),  nullable=False),
        sa.Column("severity",             sa.Enum("minimal", "mild", "moderate", "severe", name="gad7_severity_enum"), nullable=False),
        sa.Column("completed_at",         sa.DateTime(timezone=True), nullable=False),
        sa.Column("next_assessment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_first_assessment",  sa.Boolean(),  nullable=False, server_default=sa.false()),
        sa.Column("notes",                sa.Text(),     nullable=True),
        *_timestamps(),
        sa.CheckConstraint("score >= 0 AND score <= 21", name="ck_gad7_assessments_score"),
    )
    op.create_index("ix_gad7_assessments_student_completed", "gad7_assessments", ["student_id", "completed_at"], unique=False)

    op.create_table(
        "gad7_student_configs",
        sa.Column("student_id",           sa.String(36), sa.ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("last_assessment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_assessment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assessment_frequency", sa.Integer(),  nullable=False, server_default="7"),
        sa.Column("total_assessments",    sa.Integer(),  nullable=False, server_default="0"),
        sa.Column("average_score",        sa.Float(),    nullable=False, server_default="0"),
        sa.Column("trend",                sa.Enum("improving", "stable", "worsening", name="gad7_trend_enum"), nullable=False),
        sa.Column("notification_enabled", sa.Boolean(),  nullable=False, server_default=sa.true()),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("gad7_student_configs")
    op.drop_table("gad7_assessments")
    op.drop_table("observations")
    op.drop_table("student_professionals")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("gad7_trend_enum", "gad7_severity_enum", "observation_author_enum"):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
