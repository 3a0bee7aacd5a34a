from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from models import AttemptStatus


class AttemptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    exam_id: UUID
    sequence_number: int
    status: AttemptStatus
    start_time: datetime
    end_time: datetime | None = None
    # filled by list views (joined from exams); absent on start/submit
    exam_title: str | None = None


class RejectionOut(BaseModel):
    kind: str
    message: str
    next_eligible_at: Optional[datetime] = None
