"""
Reservation Manager - Hold / Confirm / Release / Expire state machine

Capacity is enforced through the trip's leg ledger. The ledger mutation and
the reservation state write for one trip always happen together under the
trip lock, so two holds can never both pass the capacity check on a leg.
On the SQL store the trip lock is a Kvrocks lock shared by every worker
process, and the ledger is re-derived from committed rows inside it.

Lock order: trip lock, then reservation row lock. Confirm never touches the
ledger and takes the row lock only; a sweep holding the trip lock still
serialises with it on the row lock and observes the CONFIRMED state.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
import time
from typing import Optional

from opentelemetry import trace

from src.platform.concurrency.i_keyed_lock import IKeyedLock
from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError, DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.ferry_booking.app.dto.hold_dto import HoldRequest
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_ledger_store import ITripLedgerStore
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import (
    InsufficientCapacity,
    InvalidSeatCount,
    LedgerInvariantViolation,
    ReservationNotFound,
    ReservationNotHeld,
    TripNotFound,
)
from src.service.ferry_booking.domain.entity.reservation_entity import Reservation
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState
from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReservationManager:
    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        trip_repo: ITripRepo,
        route_catalog_repo: IRouteCatalogRepo,
        ledger_store: ITripLedgerStore,
        trip_locks: IKeyedLock,
        row_locks: IKeyedLock,
        default_hold_ttl_seconds: int = settings.DEFAULT_HOLD_TTL_SECONDS,
        max_hold_ttl_seconds: int = settings.MAX_HOLD_TTL_SECONDS,
        max_seats_per_hold: int = settings.MAX_SEATS_PER_HOLD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.trip_repo = trip_repo
        self.route_catalog_repo = route_catalog_repo
        self.ledger_store = ledger_store
        self.trip_locks = trip_locks
        self.row_locks = row_locks
        self.default_hold_ttl_seconds = default_hold_ttl_seconds
        self.max_hold_ttl_seconds = max_hold_ttl_seconds
        self.max_seats_per_hold = max_seats_per_hold
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    # ========== Hold ==========

    @Logger.io
    def hold(self, request: HoldRequest, *, now: Optional[datetime] = None) -> Reservation:
        """
        Place a time-limited hold on a segment

        Raises:
            InvalidRange: segment outside the route or not bookable at its stops
            InvalidSeatCount: seat_count <= 0 or above MAX_SEATS_PER_HOLD
            InsufficientCapacity: a covered leg lacks seats; the ledger is unchanged
            TripNotBookable: trip cancelled, departed or past its departure time
        """
        started = time.perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.hold',
            attributes={
                'trip.id': request.trip_id,
                'segment.origin': request.origin_index,
                'segment.destination': request.destination_index,
                'seat.count': request.seat_count,
            },
        ):
            try:
                reservation, replayed = self._hold(request, now=now or self.clock())
            except InsufficientCapacity:
                self._record_hold(request, 'insufficient_capacity', started)
                raise
            except CustomBaseError:
                self._record_hold(request, 'rejected', started)
                raise

        self._record_hold(request, 'replayed' if replayed else 'held', started)
        return reservation

    def _hold(self, request: HoldRequest, *, now: datetime) -> tuple[Reservation, bool]:
        trip_id = request.trip_id
        origin, destination = request.origin_index, request.destination_index
        seat_count = request.seat_count

        with self.trip_locks.hold(trip_id):
            trip = self._get_trip(trip_id)
            catalog = self.route_catalog_repo.get_catalog(route_id=trip.route_id)
            catalog.route.validate_segment(origin, destination)
            if seat_count <= 0:
                raise InvalidSeatCount(seat_count)
            if seat_count > self.max_seats_per_hold:
                raise InvalidSeatCount(
                    seat_count, f'at most {self.max_seats_per_hold} seats per hold'
                )
            ttl = self._resolve_hold_ttl(request.hold_ttl_seconds)

            if request.idempotency_key:
                existing = self.reservation_repo.get_by_idempotency_key(
                    trip_id=trip_id, idempotency_key=request.idempotency_key
                )
                if existing:
                    if not existing.matches_request(
                        origin_index=origin, destination_index=destination, seat_count=seat_count
                    ):
                        raise DomainError(
                            f'Idempotency key {request.idempotency_key!r} was already used '
                            'for a different segment or seat count'
                        )
                    Logger.base.info(
                        f'🔁 [HOLD] Replayed {existing.id} for key {request.idempotency_key}'
                    )
                    return existing, True

            trip.ensure_bookable(now=now)
            fare_amount = catalog.fare_for(trip, origin, destination) * seat_count

            ledger = self.ledger_store.get(trip=trip)
            ledger_started = time.perf_counter()
            ledger.reserve(origin, destination, seat_count)
            metrics.record_ledger_operation(
                operation='reserve',
                backend=ledger.backend,
                duration=time.perf_counter() - ledger_started,
            )

            reservation = Reservation.hold(
                trip_id=trip_id,
                origin_index=origin,
                destination_index=destination,
                seat_count=seat_count,
                hold_expiry=trip.cap_hold_expiry(now + timedelta(seconds=ttl)),
                now=now,
                fare_amount=fare_amount,
                idempotency_key=request.idempotency_key,
            )
            try:
                self.reservation_repo.add(reservation=reservation)
            except Exception:
                ledger.release(origin, destination, seat_count)
                raise
            booked = ledger.snapshot()

        metrics.update_leg_utilisation(
            trip_id=trip_id, booked=booked, capacity=trip.vessel_capacity
        )
        Logger.base.info(
            f'🎫 [HOLD] {reservation.id} trip={trip_id} [{origin}, {destination}) '
            f'x{seat_count} until {reservation.hold_expiry:%H:%M:%S} booked={booked}'
        )
        return reservation, False

    def _resolve_hold_ttl(self, hold_ttl_seconds: Optional[int]) -> int:
        if hold_ttl_seconds is None:
            return self.default_hold_ttl_seconds
        if not 0 < hold_ttl_seconds <= self.max_hold_ttl_seconds:
            raise DomainError(
                f'hold_ttl_seconds must be between 1 and {self.max_hold_ttl_seconds}'
            )
        return hold_ttl_seconds

    def _record_hold(self, request: HoldRequest, result: str, started: float) -> None:
        metrics.record_hold(
            trip_id=request.trip_id,
            result=result,
            seat_count=request.seat_count,
            duration=time.perf_counter() - started,
        )

    # ========== Confirm ==========

    @Logger.io
    def confirm(self, *, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
        """
        HELD and unexpired -> CONFIRMED; CONFIRMED is returned unchanged

        Raises:
            ReservationNotHeld: RELEASED, EXPIRED, or HELD past its expiry
        """
        now = now or self.clock()
        with self.tracer.start_as_current_span(
            'use_case.confirm', attributes={'reservation.id': reservation_id}
        ):
            with self.row_locks.hold(reservation_id):
                current = self._get_reservation(reservation_id)
                confirmed = current.confirm(now=now)
                if confirmed is current:
                    return current
                self._compare_and_set(current, confirmed)

        Logger.base.info(f'✅ [CONFIRM] {reservation_id} trip={confirmed.trip_id}')
        return confirmed

    # ========== Release / Cancel ==========

    @Logger.io
    def release(self, *, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
        """
        HELD -> RELEASED, returning its seats; RELEASED/EXPIRED are returned unchanged

        Raises:
            CannotReleaseConfirmed: the reservation is CONFIRMED
        """
        return self._return_seats(
            reservation_id=reservation_id,
            now=now or self.clock(),
            transition=lambda reservation, at: reservation.release(now=at),
            span_name='use_case.release',
            tag='RELEASE',
        )

    @Logger.io
    def cancel_confirmed(
        self, *, reservation_id: str, now: Optional[datetime] = None
    ) -> Reservation:
        """
        CONFIRMED -> RELEASED, returning its seats; refunds stay with the payment side

        Raises:
            DomainError: the reservation is still HELD (release it instead)
            ReservationNotHeld: the reservation EXPIRED
        """
        return self._return_seats(
            reservation_id=reservation_id,
            now=now or self.clock(),
            transition=lambda reservation, at: reservation.cancel_confirmed(now=at),
            span_name='use_case.cancel_confirmed',
            tag='CANCEL',
        )

    def _return_seats(
        self,
        *,
        reservation_id: str,
        now: datetime,
        transition: Callable[[Reservation, datetime], Reservation],
        span_name: str,
        tag: str,
    ) -> Reservation:
        trip_id = self._get_reservation(reservation_id).trip_id
        with self.tracer.start_as_current_span(
            span_name, attributes={'reservation.id': reservation_id, 'trip.id': trip_id}
        ):
            with self.trip_locks.hold(trip_id), self.row_locks.hold(reservation_id):
                current = self._get_reservation(reservation_id)
                updated = transition(current, now)
                if updated is current:
                    return current

                trip = self._get_trip(trip_id)
                # Load before the state write so a rebuild still counts these seats
                ledger = self.ledger_store.get(trip=trip)
                self._compare_and_set(current, updated)
                self._release_seats(ledger, current)
                booked = ledger.snapshot()

        metrics.update_leg_utilisation(
            trip_id=trip_id, booked=booked, capacity=trip.vessel_capacity
        )
        Logger.base.info(f'🔓 [{tag}] {reservation_id} trip={trip_id} booked={booked}')
        return updated

    # ========== Expiry ==========

    @Logger.io
    def expire_sweep(self, *, trip_id: str, now: Optional[datetime] = None) -> int:
        """
        Expire every HELD reservation of the trip with hold_expiry < now

        Each candidate is re-checked under the trip and row locks; one failing
        reservation is logged and skipped, the rest are still reclaimed.

        Returns:
            Number of reservations expired
        """
        now = now or self.clock()
        with self.tracer.start_as_current_span(
            'use_case.expire_sweep', attributes={'trip.id': trip_id}
        ):
            trip = self._get_trip(trip_id)
            candidates = self.reservation_repo.list_expired_holds(trip_id=trip_id, now=now)
            expired_count = 0
            for candidate in candidates:
                try:
                    if self._expire_one(trip, candidate.id, now=now):
                        expired_count += 1
                except Exception as e:
                    metrics.record_sweep_failure(trip_id=trip_id, error_type=type(e).__name__)
                    if isinstance(e, CustomBaseError):
                        Logger.base.error(f'⚠️ [SWEEP] Skipped {candidate.id}: {e}')
                    else:
                        Logger.base.exception(f'⚠️ [SWEEP] Skipped {candidate.id}: {e}')

        metrics.record_expired(trip_id=trip_id, count=expired_count)
        if expired_count:
            Logger.base.info(f'⏰ [SWEEP] trip={trip_id} expired {expired_count} hold(s)')
        return expired_count

    def _expire_one(self, trip: TripInstance, reservation_id: str, *, now: datetime) -> bool:
        with self.trip_locks.hold(trip.id), self.row_locks.hold(reservation_id):
            current = self.reservation_repo.get_by_id(reservation_id=reservation_id)
            # Confirmed or released since the scan
            if current is None or not current.is_expired_at(now):
                return False
            ledger = self.ledger_store.get(trip=trip)
            expired = current.expire(now=now)
            if not self.reservation_repo.update_if_state(
                reservation=expired, expected_state=ReservationState.HELD
            ):
                return False
            metrics.record_transition(
                trip_id=trip.id, from_state=current.state, to_state=expired.state
            )
            self._release_seats(ledger, current)
        return True

    @Logger.io
    def expire_sweep_all(self, *, now: Optional[datetime] = None) -> dict[str, int]:
        """
        Run expire_sweep for every trip that has HELD reservations, then drop the
        cached ledgers of trips that have sailed

        Returns:
            {trip_id: expired count} for the trips swept successfully
        """
        now = now or self.clock()
        started = time.perf_counter()
        results: dict[str, int] = {}
        for trip_id in self.reservation_repo.list_trip_ids_with_holds():
            try:
                results[trip_id] = self.expire_sweep(trip_id=trip_id, now=now)
            except Exception as e:
                metrics.record_sweep_failure(trip_id=trip_id, error_type=type(e).__name__)
                Logger.base.error(f'❌ [SWEEP] trip={trip_id} failed: {e}')
        self.ledger_store.evict_departed(now=now)
        metrics.sweep_duration.observe(time.perf_counter() - started)
        return results

    # ========== Trip administration ==========

    @Logger.io
    def change_capacity(self, *, trip_id: str, new_capacity: int) -> TripInstance:
        """
        Raises:
            CapacityLocked: the trip already has reservations
        """
        with self.trip_locks.hold(trip_id):
            trip = self._get_trip(trip_id)
            updated = trip.change_capacity(
                new_capacity=new_capacity,
                has_reservations=self.reservation_repo.exists_for_trip(trip_id=trip_id),
            )
            self.trip_repo.update(trip=updated)
            self.ledger_store.invalidate(trip_id=trip_id)
        Logger.base.info(f'🚢 [TRIP] {trip_id} capacity {trip.vessel_capacity} -> {new_capacity}')
        return updated

    # ========== Helpers ==========

    def _get_trip(self, trip_id: str) -> TripInstance:
        trip = self.trip_repo.get_by_id(trip_id=trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    def _get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def _compare_and_set(self, current: Reservation, updated: Reservation) -> None:
        if not self.reservation_repo.update_if_state(
            reservation=updated, expected_state=current.state
        ):
            latest = self._get_reservation(current.id)
            raise ReservationNotHeld(current.id, latest.state, 'changed concurrently')
        metrics.record_transition(
            trip_id=current.trip_id, from_state=current.state, to_state=updated.state
        )

    def _release_seats(self, ledger: ILegLedger, reservation: Reservation) -> None:
        try:
            ledger.release(
                reservation.origin_index, reservation.destination_index, reservation.seat_count
            )
        except LedgerInvariantViolation as e:
            Logger.base.critical(
                f'🚨 [LEDGER] trip={reservation.trip_id} reservation={reservation.id}: {e}'
            )
            self.ledger_store.invalidate(trip_id=reservation.trip_id)
            raise
