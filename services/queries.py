# services/queries.py
"""
Read-only listings. No business rules beyond attaching eligibility for a student.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from eligibility import evaluate
from models import Attempt, Exam
from schemas.attempts import AttemptOut
from schemas.exams import ExamOut
from services.exams import most_recent_exam

UNKNOWN_EXAM_TITLE = "Unknown Exam"


def _attempt_rows(db: Session, student_id: Optional[str]) -> List[AttemptOut]:
    q = db.query(Attempt, Exam.title).outerjoin(Exam, Exam.id == Attempt.exam_id)
    if student_id is not None:
        q = q.filter(Attempt.student_id == student_id)
    q = q.order_by(Attempt.sequence_number, Attempt.row_id)

    rows = []
    for attempt, title in q.all():
        out = AttemptOut.model_validate(attempt)
        out.exam_title = title or UNKNOWN_EXAM_TITLE
        rows.append(out)
    return rows


def list_attempts(db: Session, student_id: str) -> List[AttemptOut]:
    return _attempt_rows(db, student_id)


def list_all_attempts(db: Session) -> List[AttemptOut]:
    return _attempt_rows(db, None)


def _exams_newest_first(db: Session) -> List[Exam]:
    return db.query(Exam).order_by(Exam.last_modified.desc(), Exam.id.desc()).all()


def list_exams(db: Session) -> List[ExamOut]:
    # remaining_attempts=0 / next_attempt_available_at=None mean "not applicable" here
    return [ExamOut.model_validate(e) for e in _exams_newest_first(db)]


def _with_eligibility(exam: Exam, attempts: List[Attempt], now: datetime) -> ExamOut:
    eligibility = evaluate(exam, attempts, now)
    out = ExamOut.model_validate(exam)
    out.remaining_attempts = eligibility.remaining
    out.next_attempt_available_at = eligibility.next_eligible_at
    return out


def list_exams_for(db: Session, student_id: str, now: datetime) -> List[ExamOut]:
    by_exam: Dict[UUID, List[Attempt]] = defaultdict(list)
    for a in db.query(Attempt).filter(Attempt.student_id == student_id).all():
        by_exam[a.exam_id].append(a)

    return [_with_eligibility(e, by_exam[e.id], now) for e in _exams_newest_first(db)]


def current_exam_for(db: Session, student_id: str, now: datetime) -> Optional[ExamOut]:
    exam = most_recent_exam(db)
    if exam is None:
        return None
    attempts = (
        db.query(Attempt)
        .filter(Attempt.exam_id == exam.id, Attempt.student_id == student_id)
        .all()
    )
    return _with_eligibility(exam, attempts, now)
