# app/services/reservation_service.py
"""
Reservation/availability engine.

Owns the car-status state machine:
  AVAILABLE --create--> RESERVED --cancel / CANCELLED / COMPLETED / expiry--> AVAILABLE

Every mutating operation runs as one atomic unit (see app.database.atomic), so a
reservation and its car never disagree. The AVAILABLE -> RESERVED flip is a
conditional UPDATE; its matched row count is the only double-booking guard.
Reservation status changes are conditional on the status they were read with, and
a closed reservation never writes its car, which may already be held by a newer one.
"""

import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.database import atomic
from app.models.car import Car, CarStatus
from app.models.reservation import (
    Reservation, ReservationStatus, RentalPeriodStatus, OPEN_STATUSES, RESERVATION_STATUSES,
)
from app.services.errors import (
    CarNotFound, CarUnavailable, InvalidDateRange, ReservationNotFound, AlreadyCancelled,
    InvalidStatus, ReservationStateChanged,
)
from app.utils.clock import utcnow, to_naive_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# Car status written alongside each reservation status update
CAR_STATUS_FOR_RESERVATION = {
    ReservationStatus.CONFIRMED.value: CarStatus.RESERVED.value,
    ReservationStatus.CANCELLED.value: CarStatus.AVAILABLE.value,
    ReservationStatus.COMPLETED.value: CarStatus.AVAILABLE.value,
}


def rental_days(start_date: datetime, end_date: datetime) -> int:
    """Whole rental days between two instants, rounded up. Zero or negative for bad ranges."""
    return math.ceil((end_date - start_date) / timedelta(days=1))


def car_status_for(reservation_status: Optional[str]) -> str:
    """Derive the car status from a reservation status. Unknown or missing → RESERVED."""
    if isinstance(reservation_status, ReservationStatus):
        reservation_status = reservation_status.value
    return CAR_STATUS_FOR_RESERVATION.get(reservation_status, CarStatus.RESERVED.value)


def period_status_for(start_date: datetime, end_date: datetime, now: datetime) -> str:
    if now < start_date:
        return RentalPeriodStatus.NOT_STARTED.value
    if now > end_date:
        return RentalPeriodStatus.ENDED.value
    return RentalPeriodStatus.ACTIVE.value


def compare_and_set_car_status(db: Session, car_id: int, expected: str, new: str,
                               now: Optional[datetime] = None) -> bool:
    """
    Atomic read-modify-write on a car's status: UPDATE ... WHERE status = expected.
    Returns True only if this call made the transition. Must run inside the caller's transaction.
    """
    matched = (
        db.query(Car)
        .filter(Car.id == car_id, Car.status == expected)
        .update({Car.status: new, Car.updated_at: now or utcnow()}, synchronize_session=False)
    )
    return matched == 1


def _set_car_status(db: Session, car_id: int, status: str, now: Optional[datetime] = None):
    db.query(Car).filter(Car.id == car_id).update(
        {Car.status: status, Car.updated_at: now or utcnow()}, synchronize_session=False
    )


def _transition_reservation(db: Session, reservation_id: int, expected: str, values: dict) -> bool:
    """UPDATE reservations ... WHERE status = expected. False if another request got there first."""
    matched = (
        db.query(Reservation)
        .filter(Reservation.id == reservation_id, Reservation.status == expected)
        .update(values, synchronize_session=False)
    )
    return matched == 1


def _get_reservation_or_raise(db: Session, reservation_id: int) -> Reservation:
    reservation = db.get(Reservation, reservation_id)
    if reservation is None:
        raise ReservationNotFound(reservation_id)
    return reservation


def create_reservation(db: Session, user_id: str, car_id: int,
                       start_date: datetime, end_date: datetime,
                       clock: Clock = utcnow) -> Reservation:
    """
    Reserve an AVAILABLE car for [start_date, end_date).
    Raises CarNotFound, CarUnavailable or InvalidDateRange; nothing is written in those cases.
    """
    start_date = to_naive_utc(start_date)
    end_date = to_naive_utc(end_date)

    car = db.get(Car, car_id)
    if car is None:
        raise CarNotFound(car_id)
    if car.status != CarStatus.AVAILABLE.value:
        logger.warning(f"[RESERVE] Car {car_id} rejected for user {user_id}: status={car.status}")
        raise CarUnavailable(car_id, car.status)

    days = rental_days(start_date, end_date)
    if days < 1:
        raise InvalidDateRange("Reservation must be for at least one day")

    now = clock()
    with atomic(db):
        if not compare_and_set_car_status(db, car_id, CarStatus.AVAILABLE.value,
                                          CarStatus.RESERVED.value, now):
            # Lost the race: another reservation flipped the car after our read
            db.refresh(car)
            logger.warning(f"[RESERVE] Car {car_id} taken concurrently, user {user_id} rejected")
            raise CarUnavailable(car_id, car.status)

        reservation = Reservation(
            user_id=user_id,
            car_id=car_id,
            start_date=start_date,
            end_date=end_date,
            total_price=car.price_per_day * days,
            status=ReservationStatus.PENDING.value,
            period_status=period_status_for(start_date, end_date, now),
            created_at=now,
            updated_at=now,
        )
        db.add(reservation)

    db.refresh(reservation)
    logger.info(f"[RESERVE] #{reservation.id} car={car_id} user={user_id} "
                f"days={days} total={reservation.total_price}")
    return reservation


def update_reservation_status(db: Session, reservation_id: int, new_status,
                              clock: Clock = utcnow) -> Reservation:
    """
    Write a reservation status and the matching car status in one transaction.

    The car is only touched while this reservation holds it:
      open -> open      car RESERVED
      open -> closed    car released to AVAILABLE
      closed -> open    car must still be AVAILABLE (compare-and-set), else CarUnavailable
      closed -> closed  car left alone, it may belong to a newer reservation
    An absent status keeps the current one and only follows the car rule above.
    """
    reservation = _get_reservation_or_raise(db, reservation_id)
    if isinstance(new_status, ReservationStatus):
        new_status = new_status.value
    if new_status is not None and new_status not in RESERVATION_STATUSES:
        raise InvalidStatus(f"Unknown reservation status: {new_status}")

    old_status = reservation.status
    target = new_status if new_status is not None else old_status
    was_open = old_status in OPEN_STATUSES
    now = clock()

    car_status = None
    with atomic(db):
        if not _transition_reservation(db, reservation_id, old_status,
                                       {Reservation.status: target, Reservation.updated_at: now}):
            raise ReservationStateChanged(reservation_id)

        if target in OPEN_STATUSES and not was_open:
            if not compare_and_set_car_status(db, reservation.car_id, CarStatus.AVAILABLE.value,
                                              CarStatus.RESERVED.value, now):
                car = db.get(Car, reservation.car_id, populate_existing=True)
                logger.warning(f"[STATUS] #{reservation_id} cannot reopen, car {reservation.car_id} "
                               f"is {car.status}")
                raise CarUnavailable(reservation.car_id, car.status)
            car_status = CarStatus.RESERVED.value
        elif was_open:
            car_status = car_status_for(new_status)
            _set_car_status(db, reservation.car_id, car_status, now)

    db.refresh(reservation)
    logger.info(f"[STATUS] #{reservation_id} {old_status} → {reservation.status}, "
                f"car {reservation.car_id} → {car_status or 'unchanged'}")
    return reservation


def cancel_reservation(db: Session, reservation_id: int, clock: Clock = utcnow) -> Reservation:
    """
    Cancel a reservation. Cancelling twice raises AlreadyCancelled.
    The car is released only if this reservation was still holding it (PENDING/CONFIRMED).
    """
    reservation = _get_reservation_or_raise(db, reservation_id)
    old_status = reservation.status
    if old_status == ReservationStatus.CANCELLED.value:
        raise AlreadyCancelled(reservation_id)

    now = clock()
    with atomic(db):
        if not _transition_reservation(db, reservation_id, old_status, {
            Reservation.status: ReservationStatus.CANCELLED.value,
            Reservation.updated_at: now,
        }):
            db.refresh(reservation)
            if reservation.status == ReservationStatus.CANCELLED.value:
                raise AlreadyCancelled(reservation_id)
            raise ReservationStateChanged(reservation_id)

        released = old_status in OPEN_STATUSES
        if released:
            _set_car_status(db, reservation.car_id, CarStatus.AVAILABLE.value, now)

    db.refresh(reservation)
    logger.info(f"[CANCEL] #{reservation_id} cancelled (was {old_status}), "
                f"car {reservation.car_id} {'→ AVAILABLE' if released else 'unchanged'}")
    return reservation


def reconcile_expired_reservations(db: Session, clock: Clock = utcnow):
    """
    Expiry sweep. Completes every PENDING/CONFIRMED reservation whose end_date has passed
    and releases its car. Each reservation commits on its own; a failed one is rolled back,
    logged and skipped.
    """
    now = clock()
    expired = (
        db.query(Reservation.id, Reservation.car_id)
        .filter(Reservation.end_date < now, Reservation.status.in_(OPEN_STATUSES))
        .all()
    )
    if not expired:
        return

    completed = 0
    for reservation_id, car_id in expired:
        try:
            # Re-checks the status so a reservation cancelled since the scan is left alone
            matched = (
                db.query(Reservation)
                .filter(Reservation.id == reservation_id, Reservation.status.in_(OPEN_STATUSES))
                .update({
                    Reservation.status: ReservationStatus.COMPLETED.value,
                    Reservation.period_status: RentalPeriodStatus.ENDED.value,
                    Reservation.updated_at: now,
                }, synchronize_session=False)
            )
            if matched:
                _set_car_status(db, car_id, CarStatus.AVAILABLE.value, now)
                completed += 1
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[SWEEP] Failed to complete reservation #{reservation_id}: {e}")

    logger.info(f"[SWEEP] Completed {completed}/{len(expired)} expired reservations")


def list_reservations(db: Session, clock: Clock = utcnow) -> list[Reservation]:
    """All reservations, newest first (admin view)."""
    reconcile_expired_reservations(db, clock)
    return (
        db.query(Reservation)
        .options(joinedload(Reservation.car))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .all()
    )


def list_user_reservations(db: Session, user_id: str, clock: Clock = utcnow) -> list[Reservation]:
    reconcile_expired_reservations(db, clock)
    return (
        db.query(Reservation)
        .options(joinedload(Reservation.car))
        .filter(Reservation.user_id == user_id)
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .all()
    )


def get_reservation(db: Session, reservation_id: int, clock: Clock = utcnow) -> Reservation:
    reconcile_expired_reservations(db, clock)
    return _get_reservation_or_raise(db, reservation_id)
