"""
API main router
Combines all endpoint routers under the API prefix
"""

from fastapi import APIRouter

from allone.api.endpoints import (
    admin,
    auth,
    categories,
    community,
    daily_questions,
    health,
    notes,
    upload,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(notes.router, prefix="/notes", tags=["Notes"])
api_router.include_router(upload.router, prefix="/upload", tags=["Upload"])
api_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_router.include_router(community.router, prefix="/community", tags=["Community"])
api_router.include_router(daily_questions.router, prefix="/daily-questions", tags=["Daily Questions"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
