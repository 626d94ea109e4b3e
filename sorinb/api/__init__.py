"""HTTP routes."""

from fastapi import APIRouter

from sorinb.api import admin, auth, data, gps, health, locations, query

router = APIRouter()
router.include_router(auth.router, prefix="/api/auth", tags=["auth"])
router.include_router(data.router, prefix="/api/data", tags=["data"])
router.include_router(locations.router, prefix="/api/locations", tags=["locations"])
router.include_router(query.router, prefix="/api/query", tags=["query"])
router.include_router(admin.router, prefix="/api/admin", tags=["admin"])
router.include_router(gps.router, prefix="/gps", tags=["gps"])
router.include_router(health.router, prefix="/healthz", tags=["health"])
