"""
API endpoints module
"""

from . import auth, users, sessions, venues, admin, health

__all__ = [
    "auth",
    "users",
    "sessions",
    "venues",
    "admin",
    "health"
]
