"""
API Routers
FastAPI route handlers
"""

from app.routers import (
    posts,
    search,
)

__all__ = [
    "posts",
    "search",
]
