# routers/attempts.py
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends

from deps.auth import Identity, require_admin, require_student
from deps.services import get_exam_service
from errors import Rejection
from routers.rejections import rejection_error
from schemas.attempts import AttemptOut
from schemas.exams import ExamOut
from services.facade import ExamAttemptService

router = APIRouter(prefix="/attempts", tags=["attempts"])

Service = Annotated[ExamAttemptService, Depends(get_exam_service)]


@router.get("/student", response_model=List[AttemptOut])
def student_attempts(identity: Annotated[Identity, Depends(require_student)], svc: Service):
    return svc.list_attempts(identity.subject_id)


@router.get("/exams", response_model=List[ExamOut])
def student_exams(identity: Annotated[Identity, Depends(require_student)], svc: Service):
    return svc.list_exams(identity.subject_id)


@router.get("/all", response_model=List[AttemptOut], dependencies=[Depends(require_admin)])
def all_attempts(svc: Service):
    return svc.list_attempts()


@router.get("/admin/exams", response_model=List[ExamOut], dependencies=[Depends(require_admin)])
def admin_exams(svc: Service):
    return svc.list_exams()


def _start(svc: ExamAttemptService, student_id: str, exam_id: UUID | None) -> AttemptOut:
    result = svc.start_attempt(student_id, exam_id)
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return AttemptOut.model_validate(result)


@router.post("/start", response_model=AttemptOut)
def start_latest(identity: Annotated[Identity, Depends(require_student)], svc: Service):
    # no exam id: the most recently modified exam
    return _start(svc, identity.subject_id, None)


@router.post("/start/{exam_id}", response_model=AttemptOut)
def start_attempt(
    exam_id: UUID, identity: Annotated[Identity, Depends(require_student)], svc: Service
):
    return _start(svc, identity.subject_id, exam_id)


@router.post("/{attempt_id}/submit", response_model=AttemptOut)
def submit_attempt(
    attempt_id: UUID, identity: Annotated[Identity, Depends(require_student)], svc: Service
):
    result = svc.submit_attempt(attempt_id, identity.subject_id)
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return AttemptOut.model_validate(result)
