from fastapi import HTTPException

from errors import Rejection, RejectionKind
from schemas.attempts import RejectionOut

STATUS_BY_KIND = {
    RejectionKind.EXAM_NOT_FOUND: 404,
    RejectionKind.NO_EXAM_AVAILABLE: 404,
    RejectionKind.ATTEMPT_NOT_FOUND: 404,
    RejectionKind.MAX_ATTEMPTS_EXCEEDED: 409,
    RejectionKind.COOLDOWN_ACTIVE: 409,
}


def rejection_error(rejection: Rejection) -> HTTPException:
    body = RejectionOut(
        kind=rejection.kind.value,
        message=rejection.message,
        next_eligible_at=rejection.next_eligible_at,
    )
    return HTTPException(
        status_code=STATUS_BY_KIND[rejection.kind], detail=body.model_dump(mode="json")
    )
