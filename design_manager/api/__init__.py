"""API router for v1 endpoints."""

from fastapi import APIRouter

from design_manager.api import design_items

router = APIRouter()

# Design items: readiness, gate checks and stage transitions
router.include_router(design_items.router)
