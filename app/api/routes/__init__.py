"""
API router aggregating all route modules.
"""

from fastapi import APIRouter

from app.api.routes import admin, auth, bookings, health, jobs, messages, profile

router = APIRouter()

# Include all route modules
router.include_router(health.router, prefix="/health", tags=["Health"])
router.include_router(auth.router, tags=["Authentication"])
router.include_router(profile.router, tags=["Profiles"])
router.include_router(jobs.router, tags=["Jobs"])
router.include_router(bookings.router, tags=["Bookings"])
router.include_router(messages.router, tags=["Messages"])
router.include_router(admin.router, tags=["Admin"])
