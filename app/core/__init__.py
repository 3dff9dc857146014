"""
Core module: Configuration, Database, Logging, Common Utilities
"""

from app.core.config import settings
from app.core.db import get_session, async_session_maker

__all__ = ["settings", "get_session", "async_session_maker"]
