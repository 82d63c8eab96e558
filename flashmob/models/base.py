"""
Base model class with common fields
"""

from sqlalchemy import Column, DateTime, func

from flashmob.core.clock import utcnow
from flashmob.core.database import Base


class BaseModel(Base):
    """
    Abstract base model with audit timestamps
    """
    __abstract__ = True

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False
    )

    def dict(self):
        """Convert model to dictionary"""
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }
