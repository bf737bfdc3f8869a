"""CivicDesk FastAPI application entry point.

Creates the FastAPI app, configures middleware, includes routers, and
manages the lifecycle of the backend services (storage, LLM, speech,
routing, intake, status lookup, action suggestions, dashboard).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from config.settings import settings
from src.api.router import api_router
from src.middleware.rate_limit import RateLimitMiddleware
from src.services.action_suggester import ActionSuggestionService
from src.services.dashboard import AdminDashboardService
from src.services.department_router import DepartmentRouter
from src.services.intake import ComplaintIntakeService
from src.services.repository import ComplaintRepository
from src.services.status_lookup import StatusLookupService
from src.services.storage import create_storage_backend

if TYPE_CHECKING:
    from src.services.llm import LLMService
    from src.services.speech import SpeechToTextService, TextToSpeechService
    from src.services.storage import StorageBackend

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.get_level_from_name(settings.log_level),
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def install_services(
    app: FastAPI,
    *,
    storage: StorageBackend,
    llm: LLMService | None = None,
    tts: TextToSpeechService | None = None,
    stt: SpeechToTextService | None = None,
) -> None:
    """Build the domain services on ``app.state`` from their collaborators.

    Services that need the LLM are left as ``None`` without one; their
    endpoints then answer 503.
    """
    repository = ComplaintRepository(storage, slot=settings.storage_slot)
    department_router = DepartmentRouter(llm)

    app.state.storage = storage
    app.state.repository = repository
    app.state.llm = llm
    app.state.tts = tts
    app.state.stt = stt
    app.state.department_router = department_router
    app.state.intake = ComplaintIntakeService(
        repository,
        department_router,
        priority_probability=settings.priority_probability,
        id_attempts=settings.tracking_id_attempts,
    )
    app.state.dashboard = AdminDashboardService(repository)
    app.state.status_lookup = StatusLookupService(repository, llm, tts) if llm is not None else None
    app.state.action_suggester = ActionSuggestionService(llm) if llm is not None else None


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of the CivicDesk services.

    On startup:
      1. Select the complaint storage backend
      2. Initialise the LLM when a GCP project is configured
      3. Initialise Text-to-Speech and Speech-to-Text when enabled
      4. Wire routing, intake, status lookup, suggestions and dashboard

    On shutdown the speech clients and storage backend are closed.
    """
    _configure_logging()
    logger.info(
        "app.startup",
        env=settings.env,
        gcp_project=settings.gcp_project_id,
        storage_backend=settings.storage_backend,
    )
    app.state.start_time = time.time()

    # -- 1. Storage -----------------------------------------------------------
    storage = create_storage_backend(settings)

    # -- 2. LLM service (Vertex AI / Gemini) ----------------------------------
    llm: LLMService | None = None
    if settings.gcp_project_id:
        try:
            from src.services.llm import LLMService

            llm = LLMService(
                project_id=settings.gcp_project_id,
                region=settings.vertex_ai_location,
                model_name=settings.vertex_ai_model,
                max_attempts=settings.llm_max_attempts,
            )
            logger.info("app.llm_initialised", model=settings.vertex_ai_model)
        except Exception:
            logger.warning("app.llm_init_failed", exc_info=True)
    else:
        logger.warning("app.llm_not_configured", note="routing uses the static table only")

    # -- 3. Speech services -----------------------------------------------------
    tts: TextToSpeechService | None = None
    stt: SpeechToTextService | None = None
    if settings.gcp_project_id:
        from src.services.speech import SpeechToTextService, TextToSpeechService

        if settings.tts_enabled:
            try:
                tts = TextToSpeechService(
                    language_code=settings.tts_language_code,
                    voice_name=settings.tts_voice_name,
                    max_attempts=settings.llm_max_attempts,
                )
                logger.info("app.tts_initialised")
            except Exception:
                logger.warning("app.tts_init_failed", exc_info=True)

        if settings.stt_enabled:
            try:
                stt = SpeechToTextService(
                    project_id=settings.gcp_project_id,
                    region=settings.gcp_region,
                    language_code=settings.stt_language_code,
                    max_attempts=settings.llm_max_attempts,
                )
                logger.info("app.stt_initialised")
            except Exception:
                logger.warning("app.stt_init_failed", exc_info=True)

    # -- 4. Domain services ---------------------------------------------------
    install_services(app, storage=storage, llm=llm, tts=tts, stt=stt)
    logger.info("app.startup_complete")

    yield

    # -- Shutdown -------------------------------------------------------------
    logger.info("app.shutdown_start")
    if stt is not None:
        await stt.close()
    if tts is not None:
        await tts.close()
    await storage.close()
    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CivicDesk API",
    description=(
        "Citizen complaint submission and tracking: filing, department "
        "routing, conversational status lookup with speech, resolution "
        "suggestions and an admin dashboard."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
if settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-API-Key"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:9002", "http://127.0.0.1:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization", "X-Admin-API-Key"],
    )

# -- Custom middleware ------------------------------------------------------
app.add_middleware(
    RateLimitMiddleware,
    max_requests_per_minute=settings.rate_limit_per_minute,
    trusted_proxy_count=settings.trusted_proxy_count,
)

# -- Prometheus metrics -----------------------------------------------------
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/api/v1/health"],
).instrument(app).expose(
    app,
    endpoint="/metrics",
    include_in_schema=not settings.is_production,
)

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "CivicDesk API",
        "description": "Citizen complaint submission and tracking",
        "version": app.version,
        "docs": "/docs",
        "health": "/api/v1/health",
        "endpoints": {
            "complaints": "/api/v1/complaints",
            "route_complaint": "/api/v1/route-complaint",
            "status": "/api/v1/status",
            "voice_status": "/api/v1/status/voice",
            "suggest_actions": "/api/v1/actions/suggest",
            "admin_dashboard": "/api/v1/admin/dashboard",
        },
    }


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("src.main:app", host=settings.api_host, port=settings.api_port)
