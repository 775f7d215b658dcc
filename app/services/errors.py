# app/services/errors.py
"""
Reservation engine error taxonomy.
Every error carries a kind and the HTTP status the API layer answers with.
Only PersistenceFailure means a write may have been attempted.
"""

NOT_FOUND = "not_found"
INVALID_INPUT = "invalid_input"
CONFLICTING_STATE = "conflicting_state"
PERSISTENCE_FAILURE = "persistence_failure"


class ReservationEngineError(Exception):
    kind = INVALID_INPUT
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def applied(self):
        """False when nothing was written, "unknown" when a rolled-back write failed."""
        return "unknown" if self.kind == PERSISTENCE_FAILURE else False


class CarNotFound(ReservationEngineError):
    kind = NOT_FOUND
    status_code = 404

    def __init__(self, car_id):
        super().__init__(f"Car {car_id} not found")
        self.car_id = car_id


class ReservationNotFound(ReservationEngineError):
    kind = NOT_FOUND
    status_code = 404

    def __init__(self, reservation_id):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class InvalidDateRange(ReservationEngineError):
    kind = INVALID_INPUT


class InvalidQuery(ReservationEngineError):
    kind = INVALID_INPUT


class CarUnavailable(ReservationEngineError):
    kind = CONFLICTING_STATE

    def __init__(self, car_id, status):
        super().__init__(f"Car {car_id} is not available for reservation (status: {status})")
        self.car_id = car_id
        self.status = status


class AlreadyCancelled(ReservationEngineError):
    kind = CONFLICTING_STATE

    def __init__(self, reservation_id):
        super().__init__(f"Reservation {reservation_id} is already cancelled")
        self.reservation_id = reservation_id


class CarHasOpenReservations(ReservationEngineError):
    kind = CONFLICTING_STATE

    def __init__(self, car_id):
        super().__init__(f"Car {car_id} still has pending or confirmed reservations")
        self.car_id = car_id


class InvalidStatus(ReservationEngineError):
    kind = INVALID_INPUT


class PersistenceFailure(ReservationEngineError):
    kind = PERSISTENCE_FAILURE
    status_code = 500


class ReservationStateChanged(ReservationEngineError):
    kind = CONFLICTING_STATE

    def __init__(self, reservation_id):
        super().__init__(f"Reservation {reservation_id} was changed by another request, retry")
        self.reservation_id = reservation_id


class InvalidLocation(ReservationEngineError):
    kind = INVALID_INPUT


class ConstraintViolation(ReservationEngineError):
    """The database refused the write (e.g. a duplicate plate). It was rolled back."""
    kind = CONFLICTING_STATE
