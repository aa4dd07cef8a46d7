from fastapi import APIRouter
from ta_assistant.api.routes import sessions, health

api_router = APIRouter()
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])


__all__ = ["api_router", "health"]
