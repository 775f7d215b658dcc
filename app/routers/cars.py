# app/routers/cars.py
"""Car catalogue: public reads, nearby search and admin fleet management."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.dependencies import get_clock
from app.schemas.car import CarCreate, CarUpdate, CarOut, NearbyCarOut
from app.security import require_admin
from app.services import car_service

router = APIRouter()


@router.get("/cars", response_model=list[CarOut], summary="List all cars")
def list_cars(db: Session = Depends(get_db)):
    return car_service.get_all_cars(db)


@router.get("/cars/available", response_model=list[CarOut], summary="List cars available for reservation")
def list_available_cars(db: Session = Depends(get_db), clock=Depends(get_clock)):
    """Completes expired reservations first, then returns every AVAILABLE car."""
    return car_service.get_available_cars(db, clock)


@router.get("/cars/nearby", response_model=list[NearbyCarOut], summary="Available cars near a location")
def list_nearby_cars(
    latitude: float,
    longitude: float,
    max_distance: float = settings.NEARBY_DEFAULT_MAX_DISTANCE_KM,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """AVAILABLE cars within `max_distance` km, closest first. Cars without a location are left out."""
    results = car_service.get_available_cars_nearby(db, latitude, longitude, max_distance, clock)
    return [
        NearbyCarOut(**CarOut.model_validate(r.car).model_dump(), distance_km=round(r.distance_km, 2))
        for r in results
    ]


@router.get("/cars/{car_id}", response_model=CarOut, summary="Get a car")
def get_car(car_id: int, db: Session = Depends(get_db)):
    return car_service.get_car(db, car_id)


@router.post("/cars", response_model=CarOut, status_code=status.HTTP_201_CREATED, summary="Add a car (admin)")
def create_car(body: CarCreate, db: Session = Depends(get_db), clock=Depends(get_clock),
               _admin=Depends(require_admin)):
    return car_service.create_car(db, clock=clock, **body.model_dump(mode="json"))


@router.put("/cars/{car_id}", response_model=CarOut, summary="Update a car (admin)")
def update_car(car_id: int, body: CarUpdate, db: Session = Depends(get_db), clock=Depends(get_clock),
               _admin=Depends(require_admin)):
    """Only fields present in the body are changed. Admins may set any status, including RENTED."""
    return car_service.update_car(db, car_id, clock=clock, **body.model_dump(mode="json", exclude_unset=True))


@router.delete("/cars/{car_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a car (admin)")
def delete_car(car_id: int, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    car_service.delete_car(db, car_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
