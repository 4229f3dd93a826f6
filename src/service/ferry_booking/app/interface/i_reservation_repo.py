"""
Reservation Repository Interface

Every state change goes through ``update_if_state``: the write only lands
if the stored state still equals the state the caller read.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from src.service.ferry_booking.domain.entity.reservation_entity import Reservation
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState


class IReservationRepo(ABC):
    @abstractmethod
    def add(self, *, reservation: Reservation) -> Reservation:
        """
        Persist a new reservation

        Raises:
            ConflictError: when the trip already has a reservation with the same idempotency key
        """
        pass

    @abstractmethod
    def get_by_id(self, *, reservation_id: str) -> Reservation | None:
        pass

    @abstractmethod
    def get_by_idempotency_key(self, *, trip_id: str, idempotency_key: str) -> Reservation | None:
        pass

    @abstractmethod
    def update_if_state(
        self, *, reservation: Reservation, expected_state: ReservationState
    ) -> bool:
        """
        Compare-and-set on the stored state

        Returns:
            True if the stored row was in expected_state and now holds ``reservation``
        """
        pass

    @abstractmethod
    def list_active_by_trip(self, *, trip_id: str) -> list[Reservation]:
        """HELD and CONFIRMED reservations of the trip"""
        pass

    @abstractmethod
    def list_expired_holds(self, *, trip_id: str, now: datetime) -> list[Reservation]:
        """HELD reservations of the trip with hold_expiry < now"""
        pass

    @abstractmethod
    def list_trip_ids_with_holds(self) -> list[str]:
        pass

    @abstractmethod
    def exists_for_trip(self, *, trip_id: str) -> bool:
        pass
