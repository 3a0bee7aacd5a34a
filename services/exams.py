# services/exams.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session, sessionmaker

from db import SessionLocal, session_scope
from errors import Rejection, RejectionKind
from locks import KeyedLocks, exam_locks
from models import Attempt, Exam, utc_now
from schemas.exams import ExamConfig

logger = logging.getLogger(__name__)


def most_recent_exam(db: Session) -> Optional[Exam]:
    """Greatest last_modified; id breaks exact ties."""
    return db.query(Exam).order_by(Exam.last_modified.desc(), Exam.id.desc()).first()


def lock_exam(db: Session, exam_id: uuid.UUID) -> Optional[Exam]:
    """Load an exam row with FOR UPDATE (a no-op on SQLite)."""
    return db.query(Exam).filter(Exam.id == exam_id).with_for_update().one_or_none()


class ExamDefinitionManager:
    """Creates and reconfigures exams. Reconfiguring purges the exam's attempts."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLocks = exam_locks,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.locks = locks

    def most_recent(self) -> Optional[Exam]:
        with session_scope(self.session_factory) as db:
            return most_recent_exam(db)

    def create_or_update(
        self, config: ExamConfig, exam_id: Optional[uuid.UUID] = None
    ) -> Union[Exam, Rejection]:
        if exam_id is None:
            return self._create(config)
        return self._update(exam_id, config)

    def _create(self, config: ExamConfig) -> Exam:
        with session_scope(self.session_factory) as db:
            exam = Exam(
                id=uuid.uuid4(),
                title=config.title,
                max_attempts=config.max_attempts,
                cooldown_minutes=config.cooldown_minutes,
                last_modified=self.clock(),
            )
            db.add(exam)
        logger.info("exam created id=%s max_attempts=%d", exam.id, exam.max_attempts)
        return exam

    def _update(self, exam_id: uuid.UUID, config: ExamConfig) -> Union[Exam, Rejection]:
        with self.locks.hold(exam_id), session_scope(self.session_factory) as db:
            exam = lock_exam(db, exam_id)
            if exam is None:
                logger.info("exam update rejected: %s not found", exam_id)
                return Rejection(RejectionKind.EXAM_NOT_FOUND)

            # old history is meaningless under the new limits/cooldown
            purged = (
                db.query(Attempt)
                .filter(Attempt.exam_id == exam_id)
                .delete(synchronize_session=False)
            )
            exam.title = config.title
            exam.max_attempts = config.max_attempts
            exam.cooldown_minutes = config.cooldown_minutes
            exam.last_modified = self.clock()

        logger.info("exam updated id=%s purged_attempts=%d", exam_id, purged)
        return exam
