"""
FastAPI Application Entry Point

Integrates:
  - AiSensy webhook (verification + inbound processing)
  - Env check and health endpoints
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import Config
from infra import ConfigError, bootstrap_infrastructure, get_config
from transport.aisensy import router as aisensy_router

# Setup logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: build the processor once, before the first request.

    A configuration error does not stop the server; it is reported by
    /health/ready and /env-check and the webhook answers 500 until fixed.
    """
    logger.info("=" * 60)
    logger.info("Inbox Relay starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")

    if app.state.processor is None:
        try:
            config = get_config()
            if app.state.verify_token is None:
                app.state.verify_token = config.webhook_verify_token
            infra = bootstrap_infrastructure(config)
            app.state.processor = infra.get_processor()
            logger.info(f"Backends: {infra!r}")
        except ConfigError as e:
            app.state.startup_error = str(e)
            logger.error(f"Startup configuration error: {e}")

    logger.info("=" * 60)

    yield

    logger.info("Inbox Relay shutting down...")


def create_app(processor=None, verify_token: Optional[str] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        processor: Pre-built InboundMessageProcessor; skips bootstrap (tests)
        verify_token: Webhook verify token; read from the environment if None
    """
    app = FastAPI(
        title="Inbox Relay API",
        description="AiSensy webhook relay with inbox log and AI replies",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.processor = processor
    app.state.verify_token = verify_token
    app.state.startup_error = None

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": "internal_error"},
            )

    app.include_router(aisensy_router)

    @app.get("/env-check")
    async def env_check():
        """Report required environment variables that are unset."""
        missing = Config.missing_required()
        if missing:
            return JSONResponse(
                status_code=500,
                content={
                    "ok": False,
                    "missing": missing,
                    "SUPABASE_URL": Config.redacted_store_url(),
                },
            )
        return {"ok": True, "SUPABASE_URL": Config.redacted_store_url()}

    @app.get("/health/live")
    async def health_live():
        """Liveness probe."""
        return {"status": "alive"}

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """Readiness probe: the processor was built from a valid config."""
        if request.app.state.processor is None:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "not_ready",
                    "reason": request.app.state.startup_error or "processor not initialized",
                },
            )
        return {"status": "ready"}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Inbox Relay API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "aisensy_webhook": "POST /webhook/aisensy",
                "aisensy_verify": "GET /webhook/aisensy",
                "env_check": "GET /env-check",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.PORT,
        reload=Config.ENVIRONMENT == "development",
    )
