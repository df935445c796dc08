from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class Availability(Base):
    """Ventana reservable de una sede, con capacidad máxima de alumnos."""

    __tablename__ = "availabilities"
    __table_args__ = (
        Index("ix_availabilities_location_start", "location_id", "start_time"),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)  # UTC
    end_time = Column(DateTime, nullable=False)  # UTC
    service_name = Column(String, nullable=True)
    max_capacity = Column(Integer, default=10, nullable=False)
    # Se marca True cuando se alcanza la capacidad
    is_booked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    location = relationship(
        "app.models.location.Location", back_populates="availabilities"
    )
