"""exams and attempts

Revision ID: 0001_exams_attempts
Revises:
Create Date: 2026-10-18 09:12:44.318207

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_exams_attempts"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_IN_PROGRESS = sa.text("status = 'InProgress'")


def upgrade() -> None:
    op.create_table(
        "exams",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("cooldown_minutes", sa.Integer(), nullable=False),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("max_attempts >= 1", name="ck_exams_max_attempts_positive"),
        sa.CheckConstraint("cooldown_minutes >= 0", name="ck_exams_cooldown_non_negative"),
        sa.PrimaryKeyConstraint("id", name="pk_exams"),
    )
    op.create_index("ix_exams_last_modified", "exams", ["last_modified"])

    op.create_table(
        "attempts",
        sa.Column("row_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("exam_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["exam_id"], ["exams.id"], name="fk_attempts_exam_id_exams"
        ),
        sa.PrimaryKeyConstraint("row_id", name="pk_attempts"),
        sa.UniqueConstraint("id", name="uq_attempts_id"),
        sa.UniqueConstraint(
            "exam_id", "student_id", "sequence_number", name="uq_attempts_exam_student_sequence"
        ),
    )
    op.create_index("ix_attempts_exam_id", "attempts", ["exam_id"])
    op.create_index("ix_attempts_student_id", "attempts", ["student_id"])
    op.create_index(
        "uq_attempts_one_in_progress",
        "attempts",
        ["exam_id", "student_id"],
        unique=True,
        sqlite_where=_IN_PROGRESS,
        postgresql_where=_IN_PROGRESS,
    )


def downgrade() -> None:
    op.drop_index("uq_attempts_one_in_progress", table_name="attempts")
    op.drop_index("ix_attempts_student_id", table_name="attempts")
    op.drop_index("ix_attempts_exam_id", table_name="attempts")
    op.drop_table("attempts")
    op.drop_index("ix_exams_last_modified", table_name="exams")
    op.drop_table("exams")
