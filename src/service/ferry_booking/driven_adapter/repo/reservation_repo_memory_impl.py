"""
In-memory Reservation Repository

Thread-safe dict store with the same compare-and-set contract as the SQL
repository. Entities are frozen, so they are shared without copying.
"""

from datetime import datetime
import threading

from src.platform.exception.exceptions import ConflictError
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.domain.entity.reservation_entity import Reservation
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState


class InMemoryReservationRepoImpl(IReservationRepo):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reservations: dict[str, Reservation] = {}
        self._idempotency_index: dict[tuple[str, str], str] = {}

    def add(self, *, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.id in self._reservations:
                raise ConflictError(f'Reservation {reservation.id} already exists')
            if reservation.idempotency_key:
                index_key = (reservation.trip_id, reservation.idempotency_key)
                if index_key in self._idempotency_index:
                    raise ConflictError(
                        f'Idempotency key {reservation.idempotency_key!r} already used'
                    )
                self._idempotency_index[index_key] = reservation.id
            self._reservations[reservation.id] = reservation
        return reservation

    def get_by_id(self, *, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._reservations.get(reservation_id)

    def get_by_idempotency_key(self, *, trip_id: str, idempotency_key: str) -> Reservation | None:
        with self._lock:
            reservation_id = self._idempotency_index.get((trip_id, idempotency_key))
            return self._reservations.get(reservation_id) if reservation_id else None

    def update_if_state(
        self, *, reservation: Reservation, expected_state: ReservationState
    ) -> bool:
        with self._lock:
            stored = self._reservations.get(reservation.id)
            if stored is None or stored.state is not expected_state:
                return False
            self._reservations[reservation.id] = reservation
            return True

    def list_active_by_trip(self, *, trip_id: str) -> list[Reservation]:
        with self._lock:
            return [
                reservation
                for reservation in self._reservations.values()
                if reservation.trip_id == trip_id and reservation.state.occupies_seats
            ]

    def list_expired_holds(self, *, trip_id: str, now: datetime) -> list[Reservation]:
        with self._lock:
            expired = [
                reservation
                for reservation in self._reservations.values()
                if reservation.trip_id == trip_id and reservation.is_expired_at(now)
            ]
        return sorted(expired, key=lambda reservation: reservation.hold_expiry)  # type: ignore

    def list_trip_ids_with_holds(self) -> list[str]:
        with self._lock:
            return sorted(
                {
                    reservation.trip_id
                    for reservation in self._reservations.values()
                    if reservation.state is ReservationState.HELD
                }
            )

    def exists_for_trip(self, *, trip_id: str) -> bool:
        with self._lock:
            return any(
                reservation.trip_id == trip_id for reservation in self._reservations.values()
            )
