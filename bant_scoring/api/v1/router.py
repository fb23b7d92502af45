from fastapi import APIRouter

from bant_scoring.api.v1.endpoints import analytics, config, health, scoring

router = APIRouter(prefix="/api/v1")

router.include_router(scoring.router)
router.include_router(config.router)
router.include_router(analytics.router)
router.include_router(health.router)
