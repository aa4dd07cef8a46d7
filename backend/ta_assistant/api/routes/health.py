import asyncio
from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ta_assistant.api.deps import get_llm_service_dep
from ta_assistant.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def get_llm_health_check() -> Callable[[], bool]:
    # Resolved lazily so a missing API key degrades health instead of failing the route
    def check() -> bool:
        return get_llm_service_dep().validate_connection()
    return check


@router.get("/health")
async def health_check(llm_check: Callable[[], bool] = Depends(get_llm_health_check)):
    """Health check endpoint."""
    logger.info("Checking system health...")

    health_status = {
        "status": "healthy",
        "services": {}
    }

    try:
        logger.debug("Checking llm service connection...")
        if await asyncio.to_thread(llm_check):
            logger.info("LLM service connection successfully established")
            health_status["services"]["llm"] = "healthy"
        else:
            logger.warning("Failed to connect to LLM service")
            health_status["services"]["llm"] = "unhealthy"
            health_status["status"] = "degraded"
    except Exception as e:
        logger.error(f"Failed to connect to llm service: {e}")
        health_status["services"]["llm"] = "unhealthy"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "healthy" else 503
    logger.info(f"Health check endpoint received: {status_code}")
    return JSONResponse(content=health_status, status_code=status_code)
