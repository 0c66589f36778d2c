"""Main FastAPI application with modularized routes."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quiz_engine.config import LOG_LEVEL
from quiz_engine.database import init_db
from quiz_engine.errors import (
    Forbidden,
    IntegrityViolation,
    NotFound,
    QuizEngineError,
    SessionStateError,
    StoreError,
    Unauthenticated,
    ValidationError,
)
from quiz_engine.logging_setup import setup_console_logging
from quiz_engine.routes import attempts, quizzes, scores
from quiz_engine.services.session_registry import registry

setup_console_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Assessment Engine API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Most specific first: NotFound is a StoreError
_ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (Unauthenticated, status.HTTP_401_UNAUTHORIZED),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (SessionStateError, status.HTTP_409_CONFLICT),
    (IntegrityViolation, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: QuizEngineError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(QuizEngineError)
async def quiz_engine_error_handler(request: Request, exc: QuizEngineError) -> JSONResponse:
    """Translate engine errors into JSON error responses."""
    code = status_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content: dict[str, object] = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        content["reason"] = exc.reason
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content=content, headers=headers)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


@app.on_event("shutdown")
def shutdown_events() -> None:
    """Stop every live quiz timer."""
    registry.dispose_all()


# Include routers
app.include_router(quizzes.router)
app.include_router(attempts.router)
app.include_router(scores.router)
