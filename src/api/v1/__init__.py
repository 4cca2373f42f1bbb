"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import options, plans, generation, curriculum, quality, export

router = APIRouter()

router.include_router(options.router, tags=["Options"])
router.include_router(plans.router, tags=["Plan"])
router.include_router(generation.router, tags=["Generation"])
router.include_router(curriculum.router, tags=["Curriculum"])
router.include_router(quality.router, tags=["Quality"])
router.include_router(export.router, tags=["Export"])
