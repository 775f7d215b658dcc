# app/routers/reservations.py
"""
Reservation endpoints.
Any authenticated user may reserve; reads and changes of a single reservation
are limited to its owner or an admin.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_clock
from app.schemas.reservation import ReservationCreate, ReservationStatusUpdate, ReservationOut
from app.security import CallerIdentity, get_current_user, require_admin, ensure_owner_or_admin
from app.services import reservation_service

router = APIRouter()


@router.get("/reservations/all", response_model=list[ReservationOut], summary="All reservations (admin)")
def list_all_reservations(db: Session = Depends(get_db), clock=Depends(get_clock),
                          _admin=Depends(require_admin)):
    return reservation_service.list_reservations(db, clock)


@router.get("/reservations/me", response_model=list[ReservationOut], summary="Caller's reservations")
def list_my_reservations(db: Session = Depends(get_db), clock=Depends(get_clock),
                         caller: CallerIdentity = Depends(get_current_user)):
    return reservation_service.list_user_reservations(db, caller.user_id, clock)


@router.get("/reservations/{reservation_id}", response_model=ReservationOut, summary="Get a reservation")
def get_reservation(reservation_id: int, db: Session = Depends(get_db), clock=Depends(get_clock),
                    caller: CallerIdentity = Depends(get_current_user)):
    reservation = reservation_service.get_reservation(db, reservation_id, clock)
    ensure_owner_or_admin(caller, reservation.user_id)
    return reservation


@router.post("/reservations", response_model=ReservationOut, status_code=status.HTTP_201_CREATED,
             summary="Reserve a car")
def create_reservation(body: ReservationCreate, db: Session = Depends(get_db), clock=Depends(get_clock),
                       caller: CallerIdentity = Depends(get_current_user)):
    """Price is fixed now: price_per_day × rental days (rounded up). The car becomes RESERVED."""
    return reservation_service.create_reservation(
        db, caller.user_id, body.car_id, body.start_date, body.end_date, clock
    )


@router.put("/reservations/{reservation_id}", response_model=ReservationOut, summary="Change reservation status")
def update_reservation(reservation_id: int, body: ReservationStatusUpdate, db: Session = Depends(get_db),
                       clock=Depends(get_clock), caller: CallerIdentity = Depends(get_current_user)):
    reservation = reservation_service.get_reservation(db, reservation_id, clock)
    ensure_owner_or_admin(caller, reservation.user_id)
    return reservation_service.update_reservation_status(db, reservation_id, body.status, clock)


@router.put("/reservations/{reservation_id}/cancel", status_code=status.HTTP_204_NO_CONTENT,
            summary="Cancel a reservation")
def cancel_reservation(reservation_id: int, db: Session = Depends(get_db), clock=Depends(get_clock),
                       caller: CallerIdentity = Depends(get_current_user)):
    reservation = reservation_service.get_reservation(db, reservation_id, clock)
    ensure_owner_or_admin(caller, reservation.user_id)
    reservation_service.cancel_reservation(db, reservation_id, clock)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
