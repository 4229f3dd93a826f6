from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs
from uuid_utils import uuid7

from src.platform.exception.exceptions import DomainError
from src.service.ferry_booking.domain.booking_errors import (
    CannotReleaseConfirmed,
    InvalidSeatCount,
    ReservationNotHeld,
)
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState


@attrs.frozen
class Reservation:
    """
    Seats on one segment of one trip

    Immutable: every transition returns a new Reservation. A transition
    that is already satisfied returns ``self`` unchanged, which callers
    use to tell an idempotent retry from a real state change.
    """

    id: str
    trip_id: str
    origin_index: int
    destination_index: int
    seat_count: int
    state: ReservationState
    hold_expiry: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    fare_amount: Decimal = Decimal('0')
    idempotency_key: Optional[str] = None

    @classmethod
    def hold(
        cls,
        *,
        trip_id: str,
        origin_index: int,
        destination_index: int,
        seat_count: int,
        hold_expiry: datetime,
        now: datetime,
        fare_amount: Decimal,
        idempotency_key: Optional[str] = None,
        id: Optional[str] = None,
    ) -> 'Reservation':
        if seat_count <= 0:
            raise InvalidSeatCount(seat_count)
        return cls(
            id=id or str(uuid7()),
            trip_id=trip_id,
            origin_index=origin_index,
            destination_index=destination_index,
            seat_count=seat_count,
            state=ReservationState.HELD,
            hold_expiry=hold_expiry,
            created_at=now,
            updated_at=now,
            fare_amount=fare_amount,
            idempotency_key=idempotency_key,
        )

    def is_expired_at(self, now: datetime) -> bool:
        return (
            self.state is ReservationState.HELD
            and self.hold_expiry is not None
            and self.hold_expiry < now
        )

    def covers_leg(self, leg: int) -> bool:
        return self.origin_index <= leg < self.destination_index

    def matches_request(
        self, *, origin_index: int, destination_index: int, seat_count: int
    ) -> bool:
        return (
            self.origin_index == origin_index
            and self.destination_index == destination_index
            and self.seat_count == seat_count
        )

    def confirm(self, *, now: datetime) -> 'Reservation':
        if self.state is ReservationState.CONFIRMED:
            return self
        if self.state is not ReservationState.HELD:
            raise ReservationNotHeld(self.id, self.state)
        if self.is_expired_at(now):
            raise ReservationNotHeld(self.id, self.state, 'hold expired')
        return attrs.evolve(
            self, state=ReservationState.CONFIRMED, hold_expiry=None, updated_at=now
        )

    def release(self, *, now: datetime) -> 'Reservation':
        if self.state in (ReservationState.RELEASED, ReservationState.EXPIRED):
            return self
        if self.state is ReservationState.CONFIRMED:
            raise CannotReleaseConfirmed(self.id)
        return attrs.evolve(self, state=ReservationState.RELEASED, updated_at=now)

    def expire(self, *, now: datetime) -> 'Reservation':
        if self.state is ReservationState.EXPIRED:
            return self
        if not self.is_expired_at(now):
            raise ReservationNotHeld(self.id, self.state, 'hold has not expired')
        return attrs.evolve(self, state=ReservationState.EXPIRED, updated_at=now)

    def cancel_confirmed(self, *, now: datetime) -> 'Reservation':
        if self.state is ReservationState.RELEASED:
            return self
        if self.state is ReservationState.HELD:
            raise DomainError(f'Reservation {self.id} is held; release it instead')
        if self.state is ReservationState.EXPIRED:
            raise ReservationNotHeld(self.id, self.state)
        return attrs.evolve(self, state=ReservationState.RELEASED, updated_at=now)
