from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from chatbridge.config import get_settings
from chatbridge.api.chat import limiter, router as chat_router
from chatbridge.api.telegram import router as telegram_router
from chatbridge.api.whatsapp import router as whatsapp_router
from chatbridge.services.container import Services, build_services
from chatbridge.telegram_bot.logging_config import bot_logger as logger


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Services (conversation store, job queue, bot registry) are created on
    startup unless given, and live on app.state for the process lifetime.
    """
    app = FastAPI(
        title="Chat Bridge",
        description="Telegram and WhatsApp bridge to command-line workers",
        version="0.1.0"
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Lifecycle events
    @app.on_event("startup")
    async def startup_event():
        """Create process-wide services on startup."""
        logger.info("[STARTUP] Initializing services...")
        app.state.services = services or build_services()
        logger.info(
            f"[STARTUP] Ready; bot identities: {app.state.services.registry.names}"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Report work lost on shutdown (nothing is persisted)."""
        queue = app.state.services.queue
        if queue.busy or queue.pending:
            logger.warning(
                f"[SHUTDOWN] Dropping {queue.pending} queued job(s)"
                f"{' and one running job' if queue.busy else ''}"
            )
        logger.info("[SHUTDOWN] Bridge stopped")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        settings = get_settings()
        queue = app.state.services.queue
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": "0.1.0",
            "queue": {"busy": queue.busy, "pending": queue.pending},
        }

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Root endpoint."""
        return "<pre>Nothing to see here.</pre>"

    # Include routers
    app.include_router(telegram_router)
    app.include_router(whatsapp_router)
    app.include_router(chat_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
