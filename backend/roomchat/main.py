# backend/roomchat/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .database import init_db
from .errors import register_error_handlers
from .routes import auth as auth_routes
from .routes import health as health_routes
from .routes import messages as message_routes
from .routes import realtime as realtime_routes
from .services.realtime.broadcast import BroadcastCore

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    init_db()

    yield

    open_connections = len(app.state.realtime.registry)
    logger.info(f"{API_TITLE} shutting down with {open_connections} open realtime connections")


def create_app(realtime: Optional[BroadcastCore] = None) -> FastAPI:
    """Build the application. Each app owns its own broadcast core and connection registry."""
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    app.state.realtime = realtime if realtime is not None else BroadcastCore()

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )
    logger.info("CORS allow_origins=%s", settings.cors_origins)

    app.include_router(auth_routes.router)
    app.include_router(message_routes.router)
    app.include_router(realtime_routes.router)
    app.include_router(health_routes.router)

    return app


app = create_app()
