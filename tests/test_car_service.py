# tests/test_car_service.py
"""Unit tests for car reads, the nearby search and admin fleet management."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import math
import pytest
from datetime import datetime, timedelta
from app.models.car import Car, CarStatus
from app.models.reservation import Reservation
from app.services import car_service, reservation_service
from app.services.errors import (
    CarNotFound, CarHasOpenReservations, InvalidQuery, InvalidLocation, ConstraintViolation,
)
from app.utils.geo import EARTH_RADIUS_KM

KM_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_KM / 360
ORIGIN = (40.0, -3.0)


def north_of_origin(km):
    """Point `km` due north of ORIGIN; haversine along a meridian is exact."""
    return dict(latitude=ORIGIN[0] + km / KM_PER_DEGREE, longitude=ORIGIN[1])


class TestNearbySearch:
    def test_filters_and_sorts_by_distance(self, db, make_car, clock):
        far = make_car(model="far", **north_of_origin(10))
        four = make_car(model="four", **north_of_origin(4))
        three = make_car(model="three", **north_of_origin(3))

        results = car_service.get_available_cars_nearby(db, *ORIGIN, 5, clock)

        assert [r.car.id for r in results] == [three.id, four.id]
        assert results[0].distance_km == pytest.approx(3)
        assert results[1].distance_km == pytest.approx(4)
        assert far.id not in {r.car.id for r in results}

    def test_boundary_distance_included(self, db, make_car, clock):
        car = make_car(**north_of_origin(5))
        results = car_service.get_available_cars_nearby(db, *ORIGIN, 5.000001, clock)
        assert [r.car.id for r in results] == [car.id]

    def test_cars_without_location_excluded(self, db, make_car, clock):
        make_car()
        located = make_car(**north_of_origin(1))

        results = car_service.get_available_cars_nearby(db, *ORIGIN, 50, clock)
        assert [r.car.id for r in results] == [located.id]

    @pytest.mark.parametrize("status", ["RESERVED", "RENTED", "MAINTENANCE"])
    def test_unavailable_cars_excluded(self, db, make_car, clock, status):
        make_car(status=status, **north_of_origin(1))
        assert car_service.get_available_cars_nearby(db, *ORIGIN, 50, clock) == []

    def test_distance_is_not_persisted(self, db, make_car, clock):
        car = make_car(**north_of_origin(2))
        car_service.get_available_cars_nearby(db, *ORIGIN, 5, clock)
        assert "distance_km" not in Car.__table__.columns
        assert db.get(Car, car.id).id == car.id

    @pytest.mark.parametrize("lat, lon, max_km", [
        (91, 0, 5), (-90.5, 0, 5), (0, 181, 5), (0, -180.1, 5),
        (0, 0, 0), (0, 0, -1), (float("nan"), 0, 5), (0, 0, float("inf")),
    ])
    def test_invalid_query(self, db, lat, lon, max_km, clock):
        with pytest.raises(InvalidQuery):
            car_service.get_available_cars_nearby(db, lat, lon, max_km, clock)


class TestCarReads:
    def test_get_car(self, db, make_car):
        car = make_car()
        assert car_service.get_car(db, car.id).id == car.id

    def test_get_missing_car(self, db):
        with pytest.raises(CarNotFound):
            car_service.get_car(db, 12345)

    def test_available_cars(self, db, make_car, clock):
        available = make_car()
        make_car(status=CarStatus.MAINTENANCE.value)
        assert [c.id for c in car_service.get_available_cars(db, clock)] == [available.id]

    def test_all_cars(self, db, make_car):
        make_car()
        make_car(status=CarStatus.RENTED.value)
        assert len(car_service.get_all_cars(db)) == 2


class TestFleetManagement:
    def test_create_car(self, db):
        car = car_service.create_car(db, brand="Tesla", model="Model 3", year=2023, price_per_day=95.0)
        assert car.id is not None
        assert car.status == CarStatus.AVAILABLE.value

    def test_admin_can_set_maintenance_and_rented(self, db, make_car):
        car = make_car()
        assert car_service.update_car(db, car.id, status="MAINTENANCE").status == "MAINTENANCE"
        assert car_service.update_car(db, car.id, status="RENTED").status == "RENTED"

    def test_update_missing_car(self, db):
        with pytest.raises(CarNotFound):
            car_service.update_car(db, 99, price_per_day=10.0)

    def test_delete_refused_with_open_reservation(self, db, make_car, clock):
        car = make_car()
        start = datetime(2025, 1, 1)
        reservation_service.create_reservation(db, "user-1", car.id, start, start + timedelta(days=1), clock)

        with pytest.raises(CarHasOpenReservations):
            car_service.delete_car(db, car.id)

    def test_delete_removes_closed_history(self, db, make_car, clock):
        car = make_car()
        start = datetime(2025, 1, 1)
        reservation = reservation_service.create_reservation(
            db, "user-1", car.id, start, start + timedelta(days=1), clock
        )
        reservation_service.cancel_reservation(db, reservation.id)

        car_service.delete_car(db, car.id)

        assert db.query(Car).count() == 0
        assert db.query(Reservation).count() == 0

    def test_duplicate_plate_is_a_conflict(self, db, make_car):
        make_car(plate="1234-ABC")
        with pytest.raises(ConstraintViolation) as exc_info:
            car_service.create_car(db, brand="Seat", model="Ibiza", year=2020,
                                   price_per_day=30.0, plate="1234-ABC")
        assert exc_info.value.status_code == 400
        assert exc_info.value.applied is False
        assert db.query(Car).count() == 1

    def test_clearing_one_coordinate_rejected(self, db, make_car):
        car = make_car(latitude=40.0, longitude=-3.0)

        with pytest.raises(InvalidLocation):
            car_service.update_car(db, car.id, latitude=None)

        db.refresh(car)
        assert (car.latitude, car.longitude) == (40.0, -3.0)

    def test_moving_one_coordinate_allowed(self, db, make_car):
        car = make_car(latitude=40.0, longitude=-3.0)
        moved = car_service.update_car(db, car.id, latitude=41.0)
        assert (moved.latitude, moved.longitude) == (41.0, -3.0)

    def test_clearing_both_coordinates_allowed(self, db, make_car):
        car = make_car(latitude=40.0, longitude=-3.0)
        cleared = car_service.update_car(db, car.id, latitude=None, longitude=None)
        assert not cleared.has_location

    def test_create_needs_both_coordinates(self, db):
        with pytest.raises(InvalidLocation):
            car_service.create_car(db, brand="Seat", model="Ibiza", year=2020,
                                   price_per_day=30.0, latitude=40.0)
        assert db.query(Car).count() == 0
