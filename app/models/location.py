from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime


class Location(Base):
    __tablename__ = "locations"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    availabilities = relationship(
        "app.models.availability.Availability",
        back_populates="location",
        cascade="all, delete-orphan",
    )
    bookings = relationship("app.models.booking.Booking", back_populates="location")
