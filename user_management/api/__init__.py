"""API routers for the user management service."""

from user_management.api.v1 import health_router
from user_management.api.v1 import router as v1_router

__all__ = ["health_router", "v1_router"]
