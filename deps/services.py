from functools import lru_cache

from services.facade import ExamAttemptService


@lru_cache(maxsize=1)
def get_exam_service() -> ExamAttemptService:
    # tests swap this out via app.dependency_overrides to inject a clock
    return ExamAttemptService()
