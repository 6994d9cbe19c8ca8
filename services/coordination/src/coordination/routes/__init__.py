"""Router aggregation."""

from fastapi import APIRouter

from services.coordination.src.coordination.realtime.websocket import router as websocket_router
from services.coordination.src.coordination.routes.coordination import router as coordination_router

api_router = APIRouter()
api_router.include_router(coordination_router, prefix="/api", tags=["coordination"])
api_router.include_router(websocket_router, tags=["notifications"])
