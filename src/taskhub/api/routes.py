"""API router aggregation."""

from fastapi import APIRouter

from taskhub.api.tasks import router as tasks_router
from taskhub.api.categories import router as categories_router

router = APIRouter(prefix="/api")

router.include_router(tasks_router)
router.include_router(categories_router)
