"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter

from cogassess.api.v1 import assessment, content, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(assessment.router, prefix="/assessment", tags=["assessment"])
api_router.include_router(content.router, prefix="/content", tags=["content"])
