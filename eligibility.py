"""
Attempt eligibility: remaining attempts and cooldown expiry.

Pure and stateless. Works on anything shaped like `models.Exam` / `models.Attempt`
so it can be exercised without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from models import Attempt, Exam


@dataclass(frozen=True)
class Eligibility:
    remaining: int
    next_eligible_at: Optional[datetime] = None


def latest_attempt(attempts: Sequence[Attempt]) -> Optional[Attempt]:
    """
    Attempt with the greatest start_time. Exact ties (clock resolution) fall back
    to the greater id so the choice is stable between calls.
    """
    if not attempts:
        return None
    return max(attempts, key=lambda a: (a.start_time, str(a.id)))


def evaluate(exam: Exam, attempts: Sequence[Attempt], now: datetime) -> Eligibility:
    remaining = max(0, exam.max_attempts - len(attempts))

    if not attempts or exam.cooldown_minutes == 0:
        return Eligibility(remaining=remaining)

    # cooldown is anchored on start_time, whatever the attempt's status
    candidate = latest_attempt(attempts).start_time + exam.cooldown
    if candidate > now:
        return Eligibility(remaining=remaining, next_eligible_at=candidate)
    return Eligibility(remaining=remaining)
