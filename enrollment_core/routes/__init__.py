"""
enrollment_core/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from enrollment_core.routes import catalog, correlativities, enrollments, prerequisites

router = APIRouter()

router.include_router(correlativities.router)
router.include_router(enrollments.router)
router.include_router(prerequisites.router)
router.include_router(catalog.router)
