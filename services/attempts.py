# services/attempts.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from db import SessionLocal, session_scope
from eligibility import evaluate
from errors import Rejection, RejectionKind
from locks import KeyedLocks, exam_locks
from models import Attempt, AttemptStatus, utc_now
from services.exams import lock_exam, most_recent_exam

logger = logging.getLogger(__name__)


class AttemptLifecycleManager:
    """
    Starts and submits attempts. The only writer of attempt rows
    apart from the purge done on exam update.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLocks = exam_locks,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.locks = locks

    def _resolve_exam_id(self) -> Optional[uuid.UUID]:
        with session_scope(self.session_factory) as db:
            exam = most_recent_exam(db)
            return exam.id if exam is not None else None

    def start(
        self, student_id: str, exam_id: Optional[uuid.UUID] = None
    ) -> Union[Attempt, Rejection]:
        """
        Start (or resume) an attempt for `student_id`.

        Without `exam_id` the most recently modified exam is used. Limit, cooldown
        and in-progress checks plus the insert all run under the exam's lock, in a
        single transaction, so concurrent starts and exam updates cannot interleave.
        """
        if exam_id is None:
            exam_id = self._resolve_exam_id()
            if exam_id is None:
                logger.info("start rejected: no exam available (student=%s)", student_id)
                return Rejection(RejectionKind.NO_EXAM_AVAILABLE)

        with self.locks.hold(exam_id), session_scope(self.session_factory) as db:
            exam = lock_exam(db, exam_id)
            if exam is None:
                logger.info("start rejected: exam %s not found", exam_id)
                return Rejection(RejectionKind.EXAM_NOT_FOUND)

            attempts = (
                db.query(Attempt)
                .filter(Attempt.exam_id == exam_id, Attempt.student_id == student_id)
                .all()
            )
            now = self.clock()

            if len(attempts) >= exam.max_attempts:
                logger.info(
                    "start rejected: max attempts (%d) reached exam=%s student=%s",
                    exam.max_attempts,
                    exam_id,
                    student_id,
                )
                return Rejection(RejectionKind.MAX_ATTEMPTS_EXCEEDED)

            eligibility = evaluate(exam, attempts, now)
            if eligibility.next_eligible_at is not None:
                logger.info(
                    "start rejected: cooldown until %s exam=%s student=%s",
                    eligibility.next_eligible_at.isoformat(),
                    exam_id,
                    student_id,
                )
                return Rejection(
                    RejectionKind.COOLDOWN_ACTIVE, next_eligible_at=eligibility.next_eligible_at
                )

            open_attempt = next(
                (a for a in attempts if a.status == AttemptStatus.IN_PROGRESS), None
            )
            if open_attempt is not None:
                return open_attempt

            attempt = Attempt(
                id=uuid.uuid4(),
                exam_id=exam_id,
                student_id=student_id,
                sequence_number=len(attempts) + 1,
                status=AttemptStatus.IN_PROGRESS,
                start_time=now,
                end_time=None,
            )
            db.add(attempt)

        logger.info(
            "attempt started id=%s exam=%s student=%s seq=%d",
            attempt.id,
            exam_id,
            student_id,
            attempt.sequence_number,
        )
        return attempt

    def submit(self, attempt_id: uuid.UUID, student_id: str) -> Union[Attempt, Rejection]:
        """
        Complete an open attempt owned by `student_id`.

        Someone else's attempt, a missing one and an already completed one all
        give AttemptNotFound.
        """
        with session_scope(self.session_factory) as db:
            attempt = (
                db.query(Attempt)
                .filter(Attempt.id == attempt_id, Attempt.student_id == student_id)
                .one_or_none()
            )
            if attempt is None or attempt.status != AttemptStatus.IN_PROGRESS:
                logger.info("submit rejected: attempt %s not open for student", attempt_id)
                return Rejection(RejectionKind.ATTEMPT_NOT_FOUND)

            end_time = max(self.clock(), attempt.start_time)
            # status guard makes check-then-write atomic against a concurrent submit
            result = db.execute(
                update(Attempt)
                .where(
                    Attempt.id == attempt_id,
                    Attempt.student_id == student_id,
                    Attempt.status == AttemptStatus.IN_PROGRESS,
                )
                .values(status=AttemptStatus.COMPLETED, end_time=end_time)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.info("submit rejected: attempt %s already completed", attempt_id)
                return Rejection(RejectionKind.ATTEMPT_NOT_FOUND)

            set_committed_value(attempt, "status", AttemptStatus.COMPLETED)
            set_committed_value(attempt, "end_time", end_time)

        logger.info("attempt submitted id=%s student=%s", attempt_id, student_id)
        return attempt
