"""Database layer: declarative base, settings, engine and sessions."""

from .base import Base
from .config import Settings, get_settings
from .session import dispose_engine, get_async_session, get_engine, get_session_maker

# Registers every model on Base.metadata.
from . import models  # noqa: F401,E402

__all__ = [
    "Base",
    "Settings",
    "dispose_engine",
    "get_async_session",
    "get_engine",
    "get_session_maker",
    "get_settings",
]
