# services/facade.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import sessionmaker

from db import SessionLocal, session_scope
from errors import Rejection
from locks import KeyedLocks, exam_locks
from models import Attempt, Exam, utc_now
from schemas.attempts import AttemptOut
from schemas.exams import ExamConfig, ExamOut
from services import queries
from services.attempts import AttemptLifecycleManager
from services.exams import ExamDefinitionManager


class ExamAttemptService:
    """
    The operations the HTTP layer calls. Storage, clock and locks are injectable;
    every call re-reads storage, nothing is cached between calls.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLocks = exam_locks,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.attempts = AttemptLifecycleManager(session_factory, clock, locks)
        self.exams = ExamDefinitionManager(session_factory, clock, locks)

    def start_attempt(
        self, student_id: str, exam_id: Optional[uuid.UUID] = None
    ) -> Union[Attempt, Rejection]:
        return self.attempts.start(student_id, exam_id)

    def submit_attempt(self, attempt_id: uuid.UUID, student_id: str) -> Union[Attempt, Rejection]:
        return self.attempts.submit(attempt_id, student_id)

    def create_or_update_exam(
        self, config: ExamConfig, exam_id: Optional[uuid.UUID] = None
    ) -> Union[Exam, Rejection]:
        return self.exams.create_or_update(config, exam_id)

    def list_attempts(self, student_id: Optional[str] = None) -> List[AttemptOut]:
        with session_scope(self.session_factory) as db:
            if student_id is None:
                return queries.list_all_attempts(db)
            return queries.list_attempts(db, student_id)

    def list_exams(self, student_id: Optional[str] = None) -> List[ExamOut]:
        with session_scope(self.session_factory) as db:
            if student_id is None:
                return queries.list_exams(db)
            return queries.list_exams_for(db, student_id, self.clock())

    def current_exam(self, student_id: str) -> Optional[ExamOut]:
        with session_scope(self.session_factory) as db:
            return queries.current_exam_for(db, student_id, self.clock())
