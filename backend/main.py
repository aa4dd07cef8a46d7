"""
Development server runner.

Usage:
    python main.py
"""
import uvicorn

from ta_assistant.core.config import settings
from ta_assistant.main import app  # noqa: F401

if __name__ == "__main__":
    uvicorn.run(
        "ta_assistant.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
