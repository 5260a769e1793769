"""
API package initialization.

This package contains the FastAPI router modules for the funnel diagnostic engine:
- diagnostics: Run diagnostics, list targets and benchmark profiles
"""

from fastapi import APIRouter

from funnel_diagnostics.api.diagnostics import router as diagnostics_router

# Create main API router
api_router = APIRouter()

api_router.include_router(diagnostics_router, prefix="/diagnostics", tags=["diagnostics"])

__all__ = [
    "api_router",
    "diagnostics_router",
]
