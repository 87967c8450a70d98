from fastapi import APIRouter

from .health_routes import router as health_router
from .user_routes import router as user_router

router = APIRouter()
router.include_router(user_router)

__all__ = ["router", "health_router", "user_router"]
