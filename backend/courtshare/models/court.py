"""
Court model. Courts are maintained outside this service and are read-only here.
"""

from sqlalchemy import Column, Float, Integer, String, Text

from courtshare.db.base import Base, TimestampMixin


class Court(Base, TimestampMixin):
    __tablename__ = "courts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    address = Column(String(255), nullable=True)
    city = Column(String(120), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    image_url = Column(String(1024), nullable=True)

    def __repr__(self) -> str:
        return f"<Court(id={self.id}, name={self.name})>"
