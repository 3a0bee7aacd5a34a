from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base, UTCDateTime


def utc_now() -> datetime:
    return datetime.now(UTC)


class AttemptStatus(str, Enum):
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class Exam(Base):
    __tablename__ = "exams"
    __table_args__ = (
        sa.CheckConstraint("max_attempts >= 1", name="max_attempts_positive"),
        sa.CheckConstraint("cooldown_minutes >= 0", name="cooldown_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200))
    max_attempts: Mapped[int] = mapped_column(Integer)
    cooldown_minutes: Mapped[int] = mapped_column(Integer, default=0)
    last_modified: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, index=True)

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)


class Attempt(Base):
    __tablename__ = "attempts"
    __table_args__ = (
        sa.UniqueConstraint(
            "exam_id", "student_id", "sequence_number", name="uq_attempts_exam_student_sequence"
        ),
        # at most one open attempt per (exam, student)
        sa.Index(
            "uq_attempts_one_in_progress",
            "exam_id",
            "student_id",
            unique=True,
            sqlite_where=sa.text("status = 'InProgress'"),
            postgresql_where=sa.text("status = 'InProgress'"),
        ),
    )

    # insertion order; breaks listing ties that start_time cannot
    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, unique=True, default=uuid.uuid4)
    exam_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("exams.id"), index=True)
    # opaque id asserted by the gateway; there is no local users table
    student_id: Mapped[str] = mapped_column(String(64), index=True)
    sequence_number: Mapped[int] = mapped_column(Integer)
    status: Mapped[AttemptStatus] = mapped_column(
        sa.Enum(AttemptStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=AttemptStatus.IN_PROGRESS,
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
    end_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
