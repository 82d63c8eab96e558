"""
Year-bucketed counters backing human-readable identifiers
"""

from sqlalchemy import Column, String, Integer

from flashmob.core.database import Base


class IdSequence(Base):
    __tablename__ = "id_sequences"

    name = Column(String(20), primary_key=True)
    year = Column(Integer, primary_key=True)
    value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<IdSequence(name={self.name}, year={self.year}, value={self.value})>"
