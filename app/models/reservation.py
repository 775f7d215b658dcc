# app/models/reservation.py
"""
Reservations table.
Each row holds one booking of one car by one user. total_price is fixed at creation.
Status changes are always written together with the referenced car's status.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class RentalPeriodStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


OPEN_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)
RESERVATION_STATUSES = frozenset(s.value for s in ReservationStatus)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    car_id = Column(Integer, ForeignKey("cars.id"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    total_price = Column(Float, nullable=False)
    status = Column(String(20), default=ReservationStatus.PENDING.value, nullable=False, index=True)
    period_status = Column(String(20))
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    car = relationship("Car")

    def __repr__(self):
        return f"<Reservation {self.id} car={self.car_id} user={self.user_id} status={self.status}>"
