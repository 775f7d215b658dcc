# app/schemas/car.py
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional

from app.models.car import CarStatus


class CarCreate(BaseModel):
    brand: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    color: Optional[str] = None
    plate: Optional[str] = None
    price_per_day: float = Field(gt=0)
    description: Optional[str] = None
    status: CarStatus = CarStatus.AVAILABLE
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = None

    @model_validator(mode="after")
    def check_location_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class CarUpdate(BaseModel):
    """Partial update: only fields present in the body are written."""
    brand: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    color: Optional[str] = None
    plate: Optional[str] = None
    price_per_day: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = None
    status: Optional[CarStatus] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = None

    @model_validator(mode="after")
    def check_location_pair(self):
        # Clearing one coordinate requires clearing the other in the same request
        cleared = {name for name in ("latitude", "longitude")
                   if name in self.model_fields_set and getattr(self, name) is None}
        if len(cleared) == 1:
            raise ValueError("latitude and longitude must be cleared together")
        return self


class CarOut(BaseModel):
    id: int
    brand: str
    model: str
    year: int
    color: Optional[str]
    plate: Optional[str]
    price_per_day: float
    description: Optional[str]
    status: str
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class NearbyCarOut(CarOut):
    distance_km: float
