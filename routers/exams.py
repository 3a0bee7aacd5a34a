# routers/exams.py
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from deps.auth import Identity, require_admin, require_student
from deps.services import get_exam_service
from errors import Rejection
from routers.rejections import rejection_error
from schemas.exams import ExamConfig, ExamOut
from services.facade import ExamAttemptService

router = APIRouter(prefix="/exams", tags=["exams"])

Service = Annotated[ExamAttemptService, Depends(get_exam_service)]


@router.post("", response_model=ExamOut, dependencies=[Depends(require_admin)])
def create_exam(config: ExamConfig, svc: Service):
    return ExamOut.model_validate(svc.create_or_update_exam(config))


@router.put("/{exam_id}", response_model=ExamOut, dependencies=[Depends(require_admin)])
def update_exam(exam_id: UUID, config: ExamConfig, svc: Service):
    """Reconfigure an exam. Every attempt recorded against it is discarded."""
    result = svc.create_or_update_exam(config, exam_id)
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return ExamOut.model_validate(result)


@router.get("/student", response_model=ExamOut)
def current_exam(identity: Annotated[Identity, Depends(require_student)], svc: Service):
    exam = svc.current_exam(identity.subject_id)
    if exam is None:
        raise HTTPException(status_code=404, detail="No exam found")
    return exam
