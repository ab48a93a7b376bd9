"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This rejects anonymous requests to every route
in the router before any handler runs. Handlers that need to know WHO
is calling also take get_current_user themselves (FastAPI caches it per
request, so the token is decoded once). Health and auth routers are open.
"""

from fastapi import APIRouter, Depends

from messagely.api.auth import router as auth_router
from messagely.api.health import router as health_router
from messagely.api.messages import router as messages_router
from messagely.api.users import router as users_router
from messagely.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid bearer JWT
api_router.include_router(messages_router, tags=["messages"], dependencies=_auth)
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
