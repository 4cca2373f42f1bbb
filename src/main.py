"""
PlanPilot - lesson planning wizard

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from src.config import get_settings
from src.database import async_session_maker, init_db, close_db
from src.ai.generation_service import ContentGenerationService
from src.api.v1 import router as api_v1_router
from src.api.middleware.rate_limit import RateLimitMiddleware
from src.api.middleware.request_id import RequestIdMiddleware
from src.exceptions import PlanPilotError
from src.kernel.drafts import DraftStore
from src.orchestration.planning_session import PlanningSession
from src.schemas.common import ErrorResponse, HealthResponse
from src.logging_config import configure_logging, get_logger

settings = get_settings()
logger = get_logger(__name__)


async def restore_planning_session() -> PlanningSession:
    """Planning session seeded from the saved draft, or a fresh one."""
    session = PlanningSession(history_limit=settings.history_limit)
    async with async_session_maker() as db:
        snapshot = await DraftStore(db).load(settings.draft_slot_key)
    if snapshot is not None:
        session.restore(snapshot.plan, snapshot.current_step)
        logger.info(
            "Draft restored",
            extra={"current_step": snapshot.current_step, "saved_at": snapshot.saved_at.isoformat()},
        )
    return session


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    # Configure logging first
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    # Startup
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")
    app.state.planning_session = await restore_planning_session()
    app.state.generation_service = ContentGenerationService()
    if not settings.ai_configured:
        logger.warning("OpenAI API key not configured, generation uses the fallback templates")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.project_name,
    description="""
    PlanPilot - guided lesson planning for teachers

    ## Features

    - **Wizard**: Context, goals and didactic choices with step validation
    - **Generation**: Short version, detail plan and sequence skeleton via OpenAI,
      with a deterministic fallback when the model is unavailable
    - **Approval Gates**: Gate A and Gate B unlock detail planning
    - **Differentiation**: Niveau A/B/C and language supports per phase
    - **Quality Checks**: Advisory timing, language and workload warnings
    - **Curriculum**: Lehrplan 21 search, suggestions and uploads
    - **Export**: PDF, DOCX and JSON
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# Middleware order: add_middleware stacks innermost-first, so LAST added = OUTERMOST.
# CORS must be outermost so it adds headers to ALL responses (including 429s).
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses (500s often bypass CORS middleware)."""
    origin = request.headers.get("origin") or ""
    allow_origin = origin if origin in _cors_origins else _cors_origins[0]
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


def _error_headers(request: Request) -> dict:
    headers = _cors_headers(request)
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


def _error_response(request: Request, status_code: int, body: ErrorResponse) -> JSONResponse:
    headers = _error_headers(request)
    if status_code >= 500 or body.errors:
        body.request_id = headers.get("X-Request-ID")
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(PlanPilotError)
async def planpilot_exception_handler(request: Request, exc: PlanPilotError):
    """Expected domain failures: mapped status with a German message and a code."""
    logger.info(
        "Request refused",
        extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path},
    )
    body = ErrorResponse(detail=exc.message, code=exc.code, errors=getattr(exc, "errors", None) or None)
    return _error_response(request, exc.status_code, body)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, ErrorResponse(detail=str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Per-field validation errors for malformed request bodies and parameters."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    body = ErrorResponse(detail="Ungültige Eingabe.", code="validation_error", errors=errors)
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, body)


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Unexpected faults; the draft was saved by the last successful mutation."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        body = ErrorResponse(detail=str(exc), code=type(exc).__name__)
    else:
        body = ErrorResponse(detail="Interner Fehler. Bitte erneut versuchen.", code="internal_error")
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, body)


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected",
        ai_configured=settings.ai_configured,
        model=settings.openai_model if settings.ai_configured else None,
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


# Mount API v1 routes
app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
