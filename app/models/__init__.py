"""
SQLAlchemy 2.0 Models
"""

from app.models.base import Base, BaseModel  # noqa: F401
from app.models.post import Post  # noqa: F401
from app.models.user import User  # noqa: F401

__all__ = [
    "Base",
    "BaseModel",
    "Post",
    "User",
]
