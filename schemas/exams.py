# schemas/exams.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

TITLE_PATTERN = r"^[a-zA-Z0-9\s\-_.,!?()]+$"
MAX_ATTEMPTS_LIMIT = 1000
MAX_COOLDOWN_MINUTES = 525600  # one year


class ExamConfig(BaseModel):
    title: str = Field(min_length=5, max_length=200, pattern=TITLE_PATTERN)
    max_attempts: int = Field(ge=1, le=MAX_ATTEMPTS_LIMIT)
    cooldown_minutes: int = Field(default=0, ge=0, le=MAX_COOLDOWN_MINUTES)

    @model_validator(mode="after")
    def _cooldown_needs_retakes(self) -> "ExamConfig":
        if self.cooldown_minutes > 0 and self.max_attempts <= 1:
            raise ValueError("Cooldown period is only applicable when max attempts is greater than 1")
        return self


class ExamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    title: str
    max_attempts: int
    cooldown_minutes: int
    last_modified: datetime
    # student-specific; 0 / None in admin views means "not applicable"
    remaining_attempts: int = 0
    next_attempt_available_at: Optional[datetime] = None
