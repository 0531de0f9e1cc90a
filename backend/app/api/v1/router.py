"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from app.api.v1 import admin, auth, meetings, proxy, system

router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])

# =============================================================================
# Meetings (annotated with status descriptors)
# =============================================================================

router.include_router(meetings.router, prefix="/meetings", tags=["meetings"])

# =============================================================================
# Transcription API proxy
# =============================================================================

router.include_router(proxy.router, prefix="/vexa", tags=["proxy"])

# =============================================================================
# Runtime config & health
# =============================================================================

router.include_router(system.router, tags=["system"])

# =============================================================================
# Admin panel
# =============================================================================

router.include_router(admin.router, prefix="/admin", tags=["admin"])
