"""API v1 router aggregating all endpoint routers.

Mounted under ``api.v1_prefix`` (default ``/api/v1/nutrition``).
"""

from __future__ import annotations

from fastapi import APIRouter

from nutrition_resolver.api.v1.endpoints import cache, health, products


router = APIRouter()

router.include_router(health.router)
router.include_router(products.router)
router.include_router(cache.router)
