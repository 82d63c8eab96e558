"""
User model
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, Text, JSON

from flashmob.config import settings
from flashmob.models.base import BaseModel


def default_preferences() -> dict:
    return {"subjects": [], "max_distance": settings.DEFAULT_MAX_DISTANCE_MILES, "favorite_venues": []}


class User(BaseModel):
    """
    User model for authentication, location and study preferences
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_suspended = Column(Boolean, default=False, nullable=False)
    preferences = Column(JSON, default=default_preferences, nullable=False)

    @property
    def max_distance(self) -> float:
        return float((self.preferences or {}).get("max_distance") or settings.DEFAULT_MAX_DISTANCE_MILES)

    @property
    def favorite_venues(self) -> list:
        return list((self.preferences or {}).get("favorite_venues") or [])

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, is_admin={self.is_admin})>"
