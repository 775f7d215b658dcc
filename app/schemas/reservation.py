# app/schemas/reservation.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Date ordering is checked by the engine so it surfaces as InvalidDateRange (400)."""
    car_id: int
    start_date: datetime
    end_date: datetime


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class CarSummary(BaseModel):
    """The reserved car as embedded in reservation responses."""
    id: int
    brand: str
    model: str
    year: int
    color: Optional[str]
    price_per_day: float

    class Config:
        from_attributes = True


class ReservationOut(BaseModel):
    id: int
    user_id: str
    car_id: int
    start_date: datetime
    end_date: datetime
    total_price: float
    status: str
    period_status: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    car: Optional[CarSummary] = None

    class Config:
        from_attributes = True
