from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime, timedelta

# must be set before db.py is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="exam-attempts-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import models  # noqa: E402,F401
from db import Base, engine  # noqa: E402
from deps.services import get_exam_service  # noqa: E402
from locks import KeyedLocks  # noqa: E402
from main import app  # noqa: E402
from schemas.exams import ExamConfig  # noqa: E402
from services.facade import ExamAttemptService  # noqa: E402

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock; call it like `models.utc_now`."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks(timeout=5)


@pytest.fixture
def service(clock, locks) -> ExamAttemptService:
    return ExamAttemptService(clock=clock, locks=locks)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_exam_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def config(title="Algebra Midterm", max_attempts=3, cooldown_minutes=0) -> ExamConfig:
    return ExamConfig(title=title, max_attempts=max_attempts, cooldown_minutes=cooldown_minutes)


@pytest.fixture
def make_exam(service):
    def _make(**kwargs):
        return service.create_or_update_exam(config(**kwargs))

    return _make
