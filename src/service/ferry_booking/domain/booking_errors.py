"""
Ferry Booking Domain Errors

Every error maps onto the platform hierarchy so the HTTP layer and
@Logger.io treat them uniformly (expected errors are logged at ERROR,
never with a traceback).
"""

from typing import Any

from src.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    DomainError,
    NotFoundError,
)


class InvalidRange(DomainError):
    def __init__(self, origin: int, destination: int, reason: str = 'invalid segment') -> None:
        self.origin = origin
        self.destination = destination
        super().__init__(f'Invalid range [{origin}, {destination}): {reason}')


class InvalidSeatCount(DomainError):
    def __init__(self, seat_count: int, reason: str = 'seat_count must be positive') -> None:
        self.seat_count = seat_count
        super().__init__(f'Invalid seat count {seat_count}: {reason}')


class InsufficientCapacity(ConflictError):
    """Expected under contention: the UI shows "fully booked" for this one"""

    def __init__(self, *, origin: int, destination: int, requested: int, available: int) -> None:
        self.origin = origin
        self.destination = destination
        self.requested = requested
        self.available = available
        super().__init__(
            f'Insufficient capacity on [{origin}, {destination}): '
            f'requested {requested}, available {available}'
        )

    @property
    def context(self) -> dict[str, Any]:
        return {'requested': self.requested, 'available': self.available}


class ReservationNotFound(NotFoundError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f'Reservation {reservation_id} not found')


class TripNotFound(NotFoundError):
    def __init__(self, trip_id: str) -> None:
        self.trip_id = trip_id
        super().__init__(f'Trip {trip_id} not found')


class ReservationNotHeld(ConflictError):
    def __init__(self, reservation_id: str, state: str, reason: str = '') -> None:
        self.reservation_id = reservation_id
        self.state = state
        detail = f' ({reason})' if reason else ''
        super().__init__(f'Reservation {reservation_id} is {state}, not held{detail}')


class CannotReleaseConfirmed(ConflictError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(
            f'Reservation {reservation_id} is confirmed; use the cancel-confirmed flow'
        )


class TripNotBookable(ConflictError):
    def __init__(self, trip_id: str, reason: str) -> None:
        self.trip_id = trip_id
        super().__init__(f'Trip {trip_id} is not bookable: {reason}')


class CapacityLocked(ConflictError):
    def __init__(self, trip_id: str) -> None:
        self.trip_id = trip_id
        super().__init__(f'Trip {trip_id} capacity cannot change once reservations exist')


class ConfigurationError(CustomBaseError):
    """Malformed route or fare data; needs an operator fix"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class LedgerInvariantViolation(CustomBaseError):
    """Internal corruption of a leg ledger; never retried"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)
