"""
Venue model
"""

from sqlalchemy import Column, String, Integer, Float, Text

from flashmob.models.base import BaseModel


class Venue(BaseModel):
    """
    Reference catalogue of study venues, seeded out-of-band
    """
    __tablename__ = "venues"

    id = Column(String(20), primary_key=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    wifi_quality = Column(Integer)
    noise_level = Column(Integer)
    study_rating = Column(Float)

    def __repr__(self):
        return f"<Venue(id={self.id}, name={self.name}, category={self.category})>"
