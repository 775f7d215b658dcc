# app/services/car_service.py
"""
Car catalogue reads, nearby search and admin fleet management.
Read paths that list AVAILABLE cars run the expiry sweep first so that cars
held by ended reservations show up again.
"""

from dataclasses import dataclass
import math

from sqlalchemy.orm import Session
from app.database import atomic
from app.models.car import Car, CarStatus
from app.models.reservation import Reservation, OPEN_STATUSES
from app.services.errors import CarNotFound, CarHasOpenReservations, InvalidQuery, InvalidLocation
from app.services.reservation_service import reconcile_expired_reservations, Clock
from app.utils.clock import utcnow
from app.utils.geo import haversine_km, is_valid_coordinate
from app.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = {"brand", "model", "year", "price_per_day", "status"}


@dataclass
class NearbyCar:
    car: Car
    distance_km: float


def get_all_cars(db: Session) -> list[Car]:
    return db.query(Car).order_by(Car.id).all()


def get_car(db: Session, car_id: int) -> Car:
    car = db.get(Car, car_id)
    if car is None:
        raise CarNotFound(car_id)
    return car


def get_available_cars(db: Session, clock: Clock = utcnow) -> list[Car]:
    reconcile_expired_reservations(db, clock)
    return (
        db.query(Car)
        .filter(Car.status == CarStatus.AVAILABLE.value)
        .order_by(Car.id)
        .all()
    )


def get_available_cars_nearby(db: Session, latitude: float, longitude: float,
                              max_distance_km: float, clock: Clock = utcnow) -> list[NearbyCar]:
    """
    AVAILABLE cars within max_distance_km of (latitude, longitude), closest first.
    Cars without coordinates are skipped.
    """
    if not is_valid_coordinate(latitude, longitude):
        raise InvalidQuery(f"Invalid coordinates: latitude={latitude}, longitude={longitude}")
    if not math.isfinite(max_distance_km) or max_distance_km <= 0:
        raise InvalidQuery(f"max_distance must be a positive number, got {max_distance_km}")

    results = []
    for car in get_available_cars(db, clock):
        if not car.has_location:
            continue
        distance = haversine_km(latitude, longitude, car.latitude, car.longitude)
        if distance <= max_distance_km:
            results.append(NearbyCar(car=car, distance_km=distance))

    results.sort(key=lambda r: r.distance_km)
    logger.debug(f"[NEARBY] ({latitude}, {longitude}) r={max_distance_km}km → {len(results)} cars")
    return results


# ── Admin fleet management ────────────────────────────────────────────────────

def _check_location(car: Car):
    if (car.latitude is None) != (car.longitude is None):
        raise InvalidLocation("latitude and longitude must be set together")
    if car.has_location and not is_valid_coordinate(car.latitude, car.longitude):
        raise InvalidLocation(f"Invalid coordinates: latitude={car.latitude}, longitude={car.longitude}")


def create_car(db: Session, clock: Clock = utcnow, **fields) -> Car:
    """Add a car. A duplicate plate raises ConstraintViolation."""
    now = clock()
    car = Car(created_at=now, updated_at=now, **fields)
    _check_location(car)
    with atomic(db):
        db.add(car)
    db.refresh(car)
    logger.info(f"[FLEET] Added car #{car.id} {car.brand} {car.model}")
    return car


def update_car(db: Session, car_id: int, clock: Clock = utcnow, **fields) -> Car:
    """
    Partial update. Status may be set to any value, including RENTED and MAINTENANCE.
    The location pair is checked on the merged result, so clearing one coordinate alone fails.
    """
    car = get_car(db, car_id)
    with atomic(db):
        for name, value in fields.items():
            if value is None and name in REQUIRED_FIELDS:
                continue
            setattr(car, name, value)
        _check_location(car)
        car.updated_at = clock()
    db.refresh(car)
    logger.info(f"[FLEET] Updated car #{car_id}: {sorted(fields)}")
    return car


def delete_car(db: Session, car_id: int):
    car = get_car(db, car_id)
    open_count = (
        db.query(Reservation)
        .filter(Reservation.car_id == car_id, Reservation.status.in_(OPEN_STATUSES))
        .count()
    )
    if open_count:
        raise CarHasOpenReservations(car_id)
    with atomic(db):
        db.query(Reservation).filter(Reservation.car_id == car_id).delete(synchronize_session=False)
        db.delete(car)
    logger.info(f"[FLEET] Removed car #{car_id}")
