import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import build_event_store, get_rules, get_settings
from src.app_shell.config import validate_ops_rules
from src.shell.http.health import (
    create_health_router,
    mark_startup_complete,
    setup_default_health_checks,
)

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load rules and validate on startup (fail-fast)
    try:
        rules = get_rules(settings)
        validate_ops_rules(rules)
        store = build_event_store(settings)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    logger.info("Rules loaded from %s", settings.rules_path)
    setup_default_health_checks(store)
    mark_startup_complete()

    yield


app = FastAPI(
    title="Page Telemetry API",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import telemetry  # noqa: E402

app.include_router(telemetry.router, prefix="/api/telemetry", tags=["Telemetry"])
app.include_router(create_health_router(version=VERSION))


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
