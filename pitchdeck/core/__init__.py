"""Core module for the Pitchdeck backend."""

from .config import settings
from .security import get_password_hash, verify_password
from .database import get_db, engine, Base

__all__ = [
    "settings",
    "get_password_hash",
    "verify_password",
    "get_db",
    "engine",
    "Base"
]
