from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.endpoints import style

api_router = APIRouter(prefix="/v1")
api_router.include_router(style.router, tags=["style"])
