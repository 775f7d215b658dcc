# app/models/car.py
"""
Cars table, the rentable fleet.
`status` is the single-writer gate for reservations: only a car in AVAILABLE
can be reserved, and the reservation engine flips it with a conditional UPDATE.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Float, Text
from app.database import Base


class CarStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    RENTED = "RENTED"            # Set by admin car updates only; no reservation flow produces it
    MAINTENANCE = "MAINTENANCE"


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    color = Column(String(50))
    plate = Column(String(50), unique=True)
    price_per_day = Column(Float, nullable=False)
    description = Column(Text)
    status = Column(String(20), default=CarStatus.AVAILABLE.value, nullable=False, index=True)
    latitude = Column(Float)
    longitude = Column(Float)
    address = Column(String(255))
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f"<Car {self.id} {self.brand} {self.model} status={self.status}>"
