"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from nedapay.api.routes import webhooks
from nedapay.core.config import Settings, configure_logging
from nedapay.core.database import create_db_engine, create_session_factory, init_db
from nedapay.services.blockradar.dispatcher import EventDispatcher
from nedapay.services.blockradar.handlers import LedgerEventHandlers
from nedapay.services.blockradar.signature import BlockradarSignatureVerifier
from nedapay.services.exceptions import WebhookAuthenticationError
from nedapay.services.ledger import LedgerService
from nedapay.uow import create_uow_factory

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, create ledger tables, build the event dispatcher
    - Shutdown: Dispose of the database engine
    """
    settings: Settings = app.state.settings

    configure_logging(settings)

    engine = create_db_engine(settings.database_url, settings.db_pool_size)
    await init_db(engine)

    session_factory = create_session_factory(engine)
    uow_factory = create_uow_factory(session_factory)

    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.dispatcher = EventDispatcher(LedgerEventHandlers(LedgerService(uow_factory)))

    if not app.state.signature_verifier.is_configured:
        logger.error(
            "startup.webhook_secret_missing",
            message="BLOCKRADAR_WEBHOOK_SECRET is empty; all webhooks will be rejected",
        )

    logger.info("application.startup", db_url=settings.database_url.split("@")[-1])

    yield

    logger.info("application.shutdown")
    await engine.dispose()


async def handle_webhook_authentication_error(
    request: Request, exc: WebhookAuthenticationError
) -> JSONResponse:
    """Render authentication failures as ``{"error": ...}`` for the provider."""
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="NEDApay Backend API",
        description="Wallet webhook intake and ledger",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Secret is read once here; requests never touch the environment
    app.state.settings = settings
    app.state.signature_verifier = BlockradarSignatureVerifier(settings.blockradar_webhook_secret)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WebhookAuthenticationError, handle_webhook_authentication_error)  # type: ignore[arg-type]

    app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
