"""API router package."""

from app.routers import application_reviews, applications, elections

__all__ = [
    "application_reviews",
    "applications",
    "elections",
]
