"""API v1 main router.

Aggregates all v1 API routers into a single router for inclusion in the app.
"""

from fastapi import APIRouter

from rcgateway.api.v1.rc import router as rc_router

router = APIRouter()

router.include_router(rc_router, prefix="/rc", tags=["RC Verification"])
