"""
Unit tests for ReservationManager

Runs on the in-memory repositories with a fixed clock; every test runs
against both ledger backends through the ``ledger_backend`` fixture.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

import attrs
import pytest

from src.platform.exception.exceptions import DomainError
from src.service.ferry_booking.app.command.reservation_manager import ReservationManager
from src.service.ferry_booking.app.dto.hold_dto import HoldRequest
from src.service.ferry_booking.domain.booking_errors import (
    CannotReleaseConfirmed,
    CapacityLocked,
    InsufficientCapacity,
    InvalidRange,
    InvalidSeatCount,
    ReservationNotFound,
    ReservationNotHeld,
    TripNotBookable,
    TripNotFound,
)
from src.service.ferry_booking.domain.entity.reservation_entity import Reservation
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState
from src.service.ferry_booking.domain.enum.trip_status import TripStatus
from src.service.ferry_booking.driven_adapter.repo.reservation_repo_memory_impl import (
    InMemoryReservationRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.trip_repo_memory_impl import (
    InMemoryTripRepoImpl,
)
from src.service.ferry_booking.driven_adapter.state.trip_ledger_store import TripLedgerStore


def _hold_request(origin: int, destination: int, seat_count: int, **kwargs) -> HoldRequest:
    return HoldRequest(
        trip_id='T1',
        origin_index=origin,
        destination_index=destination,
        seat_count=seat_count,
        **kwargs,
    )


def _booked(ledger_store: TripLedgerStore, trip_repo: InMemoryTripRepoImpl) -> list[int]:
    trip = trip_repo.get_by_id(trip_id='T1')
    assert trip is not None
    return ledger_store.get(trip=trip).snapshot()


class TestHold:
    def test_worked_example(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        a_to_c = manager.hold(_hold_request(0, 2, 4))
        assert _booked(ledger_store, trip_repo) == [4, 4, 0]

        with pytest.raises(InsufficientCapacity):
            manager.hold(_hold_request(1, 3, 7))
        assert _booked(ledger_store, trip_repo) == [4, 4, 0]

        manager.hold(_hold_request(1, 3, 6))
        assert _booked(ledger_store, trip_repo) == [4, 10, 6]

        manager.release(reservation_id=a_to_c.id)
        assert _booked(ledger_store, trip_repo) == [0, 6, 6]

    def test_hold_is_persisted_with_fare_and_default_expiry(
        self,
        manager: ReservationManager,
        reservation_repo: InMemoryReservationRepoImpl,
        now: datetime,
    ) -> None:
        reservation = manager.hold(_hold_request(0, 2, 4))

        assert reservation.state is ReservationState.HELD
        assert reservation.hold_expiry == now + timedelta(seconds=600)
        assert reservation.fare_amount == Decimal('100.00')
        assert reservation_repo.get_by_id(reservation_id=reservation.id) == reservation

    def test_custom_ttl(self, manager: ReservationManager, now: datetime) -> None:
        reservation = manager.hold(_hold_request(0, 1, 1, hold_ttl_seconds=60))

        assert reservation.hold_expiry == now + timedelta(seconds=60)

    @pytest.mark.parametrize('ttl', [0, -5, 3601])
    def test_ttl_out_of_bounds_is_rejected(self, manager: ReservationManager, ttl: int) -> None:
        with pytest.raises(DomainError):
            manager.hold(_hold_request(0, 1, 1, hold_ttl_seconds=ttl))

    @pytest.mark.parametrize('origin,destination', [(2, 2), (2, 1), (0, 4), (-1, 2)])
    def test_invalid_range(
        self, manager: ReservationManager, origin: int, destination: int
    ) -> None:
        with pytest.raises(InvalidRange):
            manager.hold(_hold_request(origin, destination, 1))

    @pytest.mark.parametrize('seat_count', [0, -1, 51])
    def test_invalid_seat_count(self, manager: ReservationManager, seat_count: int) -> None:
        with pytest.raises(InvalidSeatCount):
            manager.hold(_hold_request(0, 1, seat_count))

    def test_unknown_trip(self, manager: ReservationManager) -> None:
        with pytest.raises(TripNotFound):
            manager.hold(
                HoldRequest(trip_id='nope', origin_index=0, destination_index=1, seat_count=1)
            )

    def test_cancelled_trip_is_not_bookable(
        self, manager: ReservationManager, trip_repo: InMemoryTripRepoImpl, trip: TripInstance
    ) -> None:
        trip_repo.update(trip=trip.with_status(TripStatus.CANCELLED))

        with pytest.raises(TripNotBookable):
            manager.hold(_hold_request(0, 1, 1))

    def test_departed_trip_is_not_bookable(
        self,
        manager: ReservationManager,
        trip_repo: InMemoryTripRepoImpl,
        trip: TripInstance,
        now: datetime,
    ) -> None:
        trip_repo.update(trip=attrs.evolve(trip, departure_at=now))

        with pytest.raises(TripNotBookable):
            manager.hold(_hold_request(0, 1, 1))

    def test_hold_expiry_never_passes_departure(
        self,
        manager: ReservationManager,
        trip_repo: InMemoryTripRepoImpl,
        trip: TripInstance,
        now: datetime,
    ) -> None:
        departure = now + timedelta(minutes=2)
        trip_repo.update(trip=attrs.evolve(trip, departure_at=departure))

        reservation = manager.hold(_hold_request(0, 1, 1))

        assert reservation.hold_expiry == departure

    def test_failed_persist_gives_the_seats_back(
        self,
        manager: ReservationManager,
        reservation_repo: InMemoryReservationRepoImpl,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]
        monkeypatch.setattr(reservation_repo, 'add', Mock(side_effect=RuntimeError('db down')))

        with pytest.raises(RuntimeError):
            manager.hold(_hold_request(0, 2, 4))

        assert _booked(ledger_store, trip_repo) == [0, 0, 0]


class TestIdempotencyKey:
    def test_retry_returns_the_original_hold(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        first = manager.hold(_hold_request(0, 2, 4, idempotency_key='retry-1'))
        second = manager.hold(_hold_request(0, 2, 4, idempotency_key='retry-1'))

        assert second.id == first.id
        assert _booked(ledger_store, trip_repo) == [4, 4, 0]

    def test_reuse_for_a_different_request_is_rejected(self, manager: ReservationManager) -> None:
        manager.hold(_hold_request(0, 2, 4, idempotency_key='retry-1'))

        with pytest.raises(DomainError):
            manager.hold(_hold_request(0, 2, 5, idempotency_key='retry-1'))


class TestConfirm:
    def test_confirm_keeps_the_seats(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))

        confirmed = manager.confirm(reservation_id=held.id)

        assert confirmed.state is ReservationState.CONFIRMED
        assert confirmed.hold_expiry is None
        assert _booked(ledger_store, trip_repo) == [4, 4, 0]

    def test_confirm_twice_is_a_no_op(self, manager: ReservationManager) -> None:
        held = manager.hold(_hold_request(0, 2, 4))

        first = manager.confirm(reservation_id=held.id)
        second = manager.confirm(reservation_id=held.id)

        assert second == first

    def test_confirm_after_expiry_fails(self, manager: ReservationManager, now: datetime) -> None:
        held = manager.hold(_hold_request(0, 2, 4))

        with pytest.raises(ReservationNotHeld):
            manager.confirm(reservation_id=held.id, now=now + timedelta(minutes=11))

    def test_confirm_released_fails(self, manager: ReservationManager) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        manager.release(reservation_id=held.id)

        with pytest.raises(ReservationNotHeld):
            manager.confirm(reservation_id=held.id)

    def test_unknown_reservation(self, manager: ReservationManager) -> None:
        with pytest.raises(ReservationNotFound):
            manager.confirm(reservation_id='missing')


class TestRelease:
    def test_release_twice_returns_seats_once(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        manager.hold(_hold_request(0, 3, 2))
        held = manager.hold(_hold_request(0, 2, 4))

        manager.release(reservation_id=held.id)
        again = manager.release(reservation_id=held.id)

        assert again.state is ReservationState.RELEASED
        assert _booked(ledger_store, trip_repo) == [2, 2, 2]

    def test_confirmed_cannot_be_released(self, manager: ReservationManager) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        manager.confirm(reservation_id=held.id)

        with pytest.raises(CannotReleaseConfirmed):
            manager.release(reservation_id=held.id)

    def test_cancel_confirmed_returns_the_seats(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        manager.confirm(reservation_id=held.id)

        cancelled = manager.cancel_confirmed(reservation_id=held.id)

        assert cancelled.state is ReservationState.RELEASED
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]

    def test_cancel_confirmed_on_a_hold_is_rejected(self, manager: ReservationManager) -> None:
        held = manager.hold(_hold_request(0, 2, 4))

        with pytest.raises(DomainError):
            manager.cancel_confirmed(reservation_id=held.id)


class TestExpireSweep:
    def test_expired_hold_gives_its_seats_back(
        self,
        manager: ReservationManager,
        reservation_repo: InMemoryReservationRepoImpl,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        now: datetime,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))

        assert manager.expire_sweep(trip_id='T1', now=now + timedelta(minutes=10)) == 0
        assert manager.expire_sweep(trip_id='T1', now=now + timedelta(minutes=11)) == 1

        stored = reservation_repo.get_by_id(reservation_id=held.id)
        assert stored is not None
        assert stored.state is ReservationState.EXPIRED
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]

    def test_confirmed_reservation_is_not_expired(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        now: datetime,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        manager.confirm(reservation_id=held.id, now=now + timedelta(minutes=5))

        assert manager.expire_sweep(trip_id='T1', now=now + timedelta(hours=1)) == 0
        assert _booked(ledger_store, trip_repo) == [4, 4, 0]

    def test_release_after_expiry_is_a_no_op(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        now: datetime,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        manager.expire_sweep(trip_id='T1', now=now + timedelta(minutes=11))

        released = manager.release(reservation_id=held.id)

        assert released.state is ReservationState.EXPIRED
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]

    def test_one_broken_reservation_does_not_stop_the_sweep(
        self,
        manager: ReservationManager,
        reservation_repo: InMemoryReservationRepoImpl,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        now: datetime,
    ) -> None:
        held = manager.hold(_hold_request(0, 2, 4))
        # Written behind the ledger's back: releasing it underflows leg 2
        reservation_repo.add(
            reservation=Reservation.hold(
                trip_id='T1',
                origin_index=2,
                destination_index=3,
                seat_count=3,
                hold_expiry=now + timedelta(minutes=1),
                now=now,
                fare_amount=Decimal('12.50'),
            )
        )

        expired = manager.expire_sweep(trip_id='T1', now=now + timedelta(minutes=11))

        assert expired == 1
        stored = reservation_repo.get_by_id(reservation_id=held.id)
        assert stored is not None
        assert stored.state is ReservationState.EXPIRED
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]

    def test_sweep_all_isolates_failing_trips(
        self,
        manager: ReservationManager,
        reservation_repo: InMemoryReservationRepoImpl,
        now: datetime,
    ) -> None:
        manager.hold(_hold_request(0, 2, 4))
        reservation_repo.add(
            reservation=Reservation.hold(
                trip_id='GHOST',
                origin_index=0,
                destination_index=1,
                seat_count=1,
                hold_expiry=now,
                now=now,
                fare_amount=Decimal('12.50'),
            )
        )

        results = manager.expire_sweep_all(now=now + timedelta(minutes=11))

        assert results == {'T1': 1}

    def test_sweep_all_drops_ledgers_of_sailed_trips(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
        trip: TripInstance,
        now: datetime,
    ) -> None:
        departing = TripInstance(
            id='T-early',
            route_id='R-ABCD',
            vessel_capacity=10,
            departure_at=now + timedelta(hours=1),
        )
        trip_repo.add(trip=departing)
        manager.hold(
            HoldRequest(trip_id='T-early', origin_index=0, destination_index=3, seat_count=2)
        )
        sailed_ledger = ledger_store.get(trip=departing)
        t1_ledger = ledger_store.get(trip=trip)

        manager.expire_sweep_all(now=now + timedelta(hours=2))

        rebuilt = ledger_store.get(trip=departing)
        assert rebuilt is not sailed_ledger
        assert rebuilt.snapshot() == [0, 0, 0]
        assert ledger_store.get(trip=trip) is t1_ledger


class TestChangeCapacity:
    def test_capacity_change_before_any_reservation(
        self,
        manager: ReservationManager,
        ledger_store: TripLedgerStore,
        trip_repo: InMemoryTripRepoImpl,
    ) -> None:
        assert _booked(ledger_store, trip_repo) == [0, 0, 0]

        updated = manager.change_capacity(trip_id='T1', new_capacity=20)

        assert updated.vessel_capacity == 20
        assert ledger_store.get(trip=updated).available_seats(0, 3) == 20

    def test_capacity_is_locked_after_a_hold(self, manager: ReservationManager) -> None:
        manager.hold(_hold_request(0, 1, 1))

        with pytest.raises(CapacityLocked):
            manager.change_capacity(trip_id='T1', new_capacity=20)
