import logging as _logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .platform.config import settings
from .platform.logging import setup_logging
from .platform.middleware import RequestLoggingMiddleware

# Set up logging
logger = setup_logging()

_is_production = (settings.DEPLOYMENT_ENV or "").strip().lower() == "production"

# ---------------------------------------------------------------------------
# Disable interactive API docs in production (information disclosure)
# ---------------------------------------------------------------------------
_docs_url = None if _is_production else "/api/docs"
_openapi_url = None if _is_production else "/api/openapi.json"


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    # Startup
    logger.info(
        "Job match API started | env=%s model=%s",
        settings.DEPLOYMENT_ENV,
        settings.resolved_claude_model,
    )
    if not (settings.ANTHROPIC_API_KEY or "").strip():
        logger.warning("ANTHROPIC_API_KEY is not set; match analysis requests will fail")
    yield


app = FastAPI(
    title="Job Match API",
    description="AI-assisted scoring of candidate profiles against job postings.",
    version="1.0.0",
    docs_url=_docs_url,
    openapi_url=_openapi_url,
    lifespan=_lifespan,
)

_val_logger = _logging.getLogger("jobmatch.validation")


def _sanitize_errors(errors: list) -> list:
    """Ensure validation error details are JSON-serializable."""

    def _json_safe(value):
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {str(k): _json_safe(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [_json_safe(v) for v in value]
        return str(value)

    return [_json_safe(err) for err in errors]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with detail so we can diagnose 422s."""
    _val_logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=422,
        content={"detail": _sanitize_errors(exc.errors())},
    )


# Request logging
app.add_middleware(RequestLoggingMiddleware)

# Include routers
from .components.matching.api import router as matches_router  # noqa: E402

app.include_router(matches_router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "jobmatch",
        "model": settings.resolved_claude_model,
        "claude_configured": bool((settings.ANTHROPIC_API_KEY or "").strip()),
    }
