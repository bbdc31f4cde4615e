"""Aggregate all API routers."""

from fastapi import APIRouter
from storylens.api.v1.health import router as health_router
from storylens.api.v1.stories import router as stories_router

api_router = APIRouter(prefix="/api")
api_router.include_router(health_router, tags=["health"])
api_router.include_router(stories_router, tags=["stories"])
