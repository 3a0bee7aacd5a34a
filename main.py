import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import TransientStorageError

# Routers
from routers.attempts import router as attempts_router
from routers.exams import router as exams_router
from routers.health import router as health_router

logger = logging.getLogger("exam-attempts")
logging.basicConfig(level=logging.INFO)

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

app = FastAPI(title="Exam Attempts API")

# Allow calls from the frontend dev server and configured sites
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-subject-id", "x-role"],
)


@app.exception_handler(TransientStorageError)
def storage_unavailable(request: Request, exc: TransientStorageError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503, content={"detail": "Storage temporarily unavailable, try again."}
    )


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(exams_router)  # /exams/...
app.include_router(attempts_router)  # /attempts/...
app.include_router(health_router)  # /health/...
