from enum import StrEnum


class ReservationState(StrEnum):
    """Reservation lifecycle: HELD is the only non-terminal state"""

    HELD = 'held'
    CONFIRMED = 'confirmed'
    RELEASED = 'released'
    EXPIRED = 'expired'

    @property
    def is_terminal(self) -> bool:
        return self is not ReservationState.HELD

    @property
    def occupies_seats(self) -> bool:
        return self in (ReservationState.HELD, ReservationState.CONFIRMED)
