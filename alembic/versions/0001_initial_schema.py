"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

Creates the roster, monthly input and monthly result tables:
- batches, students
- exams, exam_scores, attendance_records, academic_calendar_days, monthly_bonuses
- monthly_results, top_performers
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
PERCENT = sa.Numeric(6, 2)


def id_column() -> sa.Column:
    return sa.Column("id", ID, primary_key=True, autoincrement=True)


def timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def fk(column: str, target: str, index: bool = True) -> sa.Column:
    return sa.Column(
        column,
        sa.BigInteger(),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=False,
        index=index,
    )


def upgrade() -> None:
    op.create_table(
        "batches",
        id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("class_level", sa.String(20), nullable=False, index=True),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", "completed", name="batchstatus"),
            nullable=False,
        ),
        *timestamp_columns(),
    )

    op.create_table(
        "students",
        id_column(),
        fk("batch_id", "batches.id"),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("class_level", sa.String(20), nullable=False),
        sa.Column("phone_no", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamp_columns(),
    )

    op.create_table(
        "exams",
        id_column(),
        fk("batch_id", "batches.id"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(100), nullable=True),
        sa.Column("exam_date", sa.Date(), nullable=False, index=True),
        sa.Column("total_marks", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamp_columns(),
    )

    op.create_table(
        "exam_scores",
        id_column(),
        fk("exam_id", "exams.id"),
        fk("student_id", "students.id"),
        sa.Column("marks_obtained", sa.DECIMAL(10, 2), nullable=False),
        *timestamp_columns(),
        sa.UniqueConstraint("exam_id", "student_id", name="uq_exam_score_student"),
    )

    op.create_table(
        "attendance_records",
        id_column(),
        fk("student_id", "students.id"),
        fk("batch_id", "batches.id"),
        sa.Column("attendance_date", sa.Date(), nullable=False, index=True),
        sa.Column(
            "status",
            sa.Enum("present", "excused", "absent", name="attendancestatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint("student_id", "attendance_date", name="uq_attendance_student_date"),
    )

    op.create_table(
        "academic_calendar_days",
        id_column(),
        sa.Column("calendar_date", sa.Date(), nullable=False, unique=True, index=True),
        sa.Column("is_working_day", sa.Boolean(), nullable=False),
        sa.Column("day_type", sa.String(50), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *timestamp_columns(),
    )

    op.create_table(
        "monthly_bonuses",
        id_column(),
        fk("student_id", "students.id"),
        fk("batch_id", "batches.id"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("bonus_percent", PERCENT, nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint(
            "student_id", "batch_id", "year", "month",
            name="uq_monthly_bonus_student_period",
        ),
    )

    op.create_table(
        "monthly_results",
        id_column(),
        fk("student_id", "students.id"),
        fk("batch_id", "batches.id"),
        sa.Column("year", sa.Integer(), nullable=False, index=True),
        sa.Column("month", sa.Integer(), nullable=False, index=True),
        sa.Column("class_level", sa.String(20), nullable=False),
        sa.Column("exam_component_percent", PERCENT, nullable=False),
        sa.Column("total_exams", sa.Integer(), nullable=False),
        sa.Column("present_days", sa.Integer(), nullable=False),
        sa.Column("excused_days", sa.Integer(), nullable=False),
        sa.Column("absent_days", sa.Integer(), nullable=False),
        sa.Column("working_days", sa.Integer(), nullable=False),
        sa.Column("attendance_component_percent", PERCENT, nullable=False),
        sa.Column("bonus_percent", PERCENT, nullable=False),
        sa.Column("final_percent", PERCENT, nullable=False),
        sa.Column("gpa", PERCENT, nullable=False),
        sa.Column("letter_grade", sa.String(5), nullable=False),
        sa.Column("grade_description", sa.String(100), nullable=False),
        sa.Column("class_rank", sa.Integer(), nullable=False),
        sa.Column("total_students", sa.Integer(), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint(
            "student_id", "batch_id", "year", "month",
            name="uq_monthly_result_student_period",
        ),
    )

    op.create_table(
        "top_performers",
        id_column(),
        fk("student_id", "students.id", index=False),
        sa.Column("year", sa.Integer(), nullable=False, index=True),
        sa.Column("month", sa.Integer(), nullable=False, index=True),
        sa.Column("class_level", sa.String(20), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("final_percent", PERCENT, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("top_performers")
    op.drop_table("monthly_results")
    op.drop_table("monthly_bonuses")
    op.drop_table("academic_calendar_days")
    op.drop_table("attendance_records")
    op.drop_table("exam_scores")
    op.drop_table("exams")
    op.drop_table("students")
    op.drop_table("batches")

    # Enum types outlive their tables on PostgreSQL
    sa.Enum(name="attendancestatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="batchstatus").drop(op.get_bind(), checkfirst=True)
