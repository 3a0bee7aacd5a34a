from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class RejectionKind(str, Enum):
    EXAM_NOT_FOUND = "ExamNotFound"
    NO_EXAM_AVAILABLE = "NoExamAvailable"
    MAX_ATTEMPTS_EXCEEDED = "MaxAttemptsExceeded"
    COOLDOWN_ACTIVE = "CooldownActive"
    ATTEMPT_NOT_FOUND = "AttemptNotFound"


_MESSAGES = {
    RejectionKind.EXAM_NOT_FOUND: "Exam not found.",
    RejectionKind.NO_EXAM_AVAILABLE: "No exam available.",
    RejectionKind.MAX_ATTEMPTS_EXCEEDED: "Maximum number of attempts reached.",
    RejectionKind.COOLDOWN_ACTIVE: "Cooldown period is still active.",
    RejectionKind.ATTEMPT_NOT_FOUND: "Attempt not found.",
}


@dataclass(frozen=True)
class Rejection:
    """
    Expected business outcome returned (not raised) by the managers.
    Callers branch on `kind`; `next_eligible_at` is set only for CooldownActive.
    """

    kind: RejectionKind
    next_eligible_at: Optional[datetime] = None

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind]


class TransientStorageError(RuntimeError):
    """Storage or locking fault. Surface as 'try again'; never retried here."""
