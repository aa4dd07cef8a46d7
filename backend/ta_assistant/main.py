"""
Main FastAPI Application.

This is the entry point for the backend server.
It configures and runs the complete API.
"""
from contextlib import asynccontextmanager

import dotenv
from fastapi import FastAPI

from ta_assistant.api.middleware.cors import setup_cors
from ta_assistant.api.middleware.error_handler import ErrorMiddleware
from ta_assistant.api.routes import api_router, health
from ta_assistant.core.config import settings
from ta_assistant.utils.logger import get_logger

dotenv.load_dotenv()

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")

    if settings.OTEL_ENABLED:
        from ta_assistant.telemetry.setup import setup_telemetry
        setup_telemetry()
        logger.info(f"Telemetry exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")

    errors = settings.validate_required_settings()
    for error in errors:
        logger.warning(f"⚠️  {error}")

    if settings.VALIDATE_LLM_ON_STARTUP and not errors:
        from ta_assistant.services.llm_service import get_llm_service
        try:
            logger.debug("Validating llm service...")
            llm = get_llm_service()
            if llm.validate_connection():
                logger.info(f"✅ LLM service ready (model: {llm.model})")
            else:
                logger.warning("⚠️  LLM service not responding")
        except Exception as e:
            logger.error(f"❌ LLM service error: {e}")

    logger.info(f"🚀 Server ready at http://{settings.HOST}:{settings.PORT}")

    yield  # Server runs here

    # Shutdown
    logger.info("Shutting down gracefully...")


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title = settings.APP_NAME,
    description = "Pedagogical chat backend that evaluates student PDF submissions",
    version = settings.APP_VERSION,
    debug=settings.DEBUG,
)

# Error middleware
app.add_middleware(ErrorMiddleware)

# CORS middleware
setup_cors(app)

# Routes
api_router.include_router(health.router, tags=["health"], prefix="")
app.include_router(api_router, prefix=settings.API_V1_PREFIX)

@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "openapi": "/openapi.json"
    }


if __name__ == "__main__":
    import uvicorn
    try:
        uvicorn.run(
            "ta_assistant.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.DEBUG,  # Auto-reload in dev mode
            log_level=settings.LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        logger.warning("Shutdown requested")
        logger.info("Goodbye")
