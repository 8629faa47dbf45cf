"""
API v1 Router - Aggregates all v1 endpoints.
Base Path: /api/v1
"""

from fastapi import APIRouter

from modelcatalog.api.v1 import files, health, models

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(models.router, prefix="/models", tags=["models"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
