from fastapi import APIRouter

from .endpoints import duo, health, observability

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(duo.router)
router.include_router(observability.router)
