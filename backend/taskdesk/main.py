import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskdesk.api import api_router
from taskdesk.core.config import Settings, settings as default_settings
from taskdesk.core.database import Database
from taskdesk.core.errors import register_exception_handlers
from taskdesk.core.logging_setup import setup_logging
from taskdesk.services.email_service import EmailSender, SmtpEmailSender

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    email_sender: Optional[EmailSender] = None,
) -> FastAPI:
    """
    Build an application instance.

    The database handle and mail transport are created here (or passed in by
    tests) and hung on app.state; request dependencies read them from there.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    database = database or Database(settings.DATABASE_URL)
    email_sender = email_sender or SmtpEmailSender(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: create tables if they don't exist
        Shutdown: release the connection pool
        """
        # In production, use migrations (Alembic) instead of create_all
        database.create_all()
        logger.info("%s started", settings.APP_NAME)
        yield
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Task management API with JWT auth and OTP password reset",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.email_sender = email_sender

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, expose_errors=settings.is_development)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": settings.APP_NAME, "version": app.version}

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app


app = create_app()
