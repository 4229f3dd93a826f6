"""
Trip Ledger Store

Keeps one live leg ledger per trip in memory. A ledger is rebuilt from the
trip's HELD and CONFIRMED reservations the first time it is needed (after a
restart, a capacity change or an invalidation), then updated in place by
the reservation manager under the trip lock.

With ``cache_ledgers=False`` (the SQL store, shared by several worker
processes) nothing is kept: every ``get`` rebuilds from committed rows, so a
holder of the cross-process trip lock always counts the other workers' writes.

Only scheduled trips are cached; a cancelled or departed trip is rebuilt on
demand, and ``evict_departed`` drops cached ledgers once their sailing time
has passed.
"""

from datetime import datetime
import threading
import time
from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_ledger_store import ITripLedgerStore
from src.service.ferry_booking.domain.booking_errors import (
    InsufficientCapacity,
    LedgerInvariantViolation,
)
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.trip_status import TripStatus
from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger
from src.service.ferry_booking.domain.leg_ledger.leg_ledger_factory import LegLedgerFactory


class _CachedLedger:
    __slots__ = ('ledger', 'departure_at')

    def __init__(self, ledger: ILegLedger, departure_at: Optional[datetime]) -> None:
        self.ledger = ledger
        self.departure_at = departure_at


class TripLedgerStore(ITripLedgerStore):
    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        route_catalog_repo: IRouteCatalogRepo,
        ledger_factory: LegLedgerFactory,
        cache_ledgers: bool = True,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.route_catalog_repo = route_catalog_repo
        self.ledger_factory = ledger_factory
        self.cache_ledgers = cache_ledgers
        self._guard = threading.Lock()
        self._ledgers: dict[str, _CachedLedger] = {}

    def get(self, *, trip: TripInstance) -> ILegLedger:
        cacheable = self.cache_ledgers and trip.status is TripStatus.SCHEDULED
        with self._guard:
            cached = self._ledgers.get(trip.id) if cacheable else self._ledgers.pop(trip.id, None)
        if cacheable and cached is not None:
            return cached.ledger

        ledger = self._rebuild(trip)
        if cacheable:
            with self._guard:
                # Callers hold the trip lock, so nobody else built this trip meanwhile
                self._ledgers[trip.id] = _CachedLedger(ledger, trip.departure_at)
        return ledger

    def invalidate(self, *, trip_id: str) -> None:
        with self._guard:
            self._ledgers.pop(trip_id, None)
        Logger.base.info(f'♻️ [LEDGER] trip={trip_id} ledger dropped, next access rebuilds it')

    def evict_departed(self, *, now: datetime) -> int:
        with self._guard:
            departed = [
                trip_id
                for trip_id, cached in self._ledgers.items()
                if cached.departure_at is not None and cached.departure_at <= now
            ]
            for trip_id in departed:
                del self._ledgers[trip_id]
        if departed:
            Logger.base.info(f'🧹 [LEDGER] Evicted ledgers of departed trips {departed}')
        return len(departed)

    def _rebuild(self, trip: TripInstance) -> ILegLedger:
        started = time.perf_counter()
        route = self.route_catalog_repo.get_catalog(route_id=trip.route_id).route
        ledger = self.ledger_factory.create(
            capacity=trip.vessel_capacity, leg_count=route.leg_count
        )
        active = self.reservation_repo.list_active_by_trip(trip_id=trip.id)
        for reservation in active:
            try:
                ledger.reserve(
                    reservation.origin_index, reservation.destination_index, reservation.seat_count
                )
            except InsufficientCapacity as e:
                message = (
                    f'Active reservations of trip {trip.id} exceed capacity '
                    f'{trip.vessel_capacity} at reservation {reservation.id}'
                )
                Logger.base.critical(f'🚨 [LEDGER] {message}')
                raise LedgerInvariantViolation(message) from e

        metrics.record_ledger_operation(
            operation='rebuild', backend=ledger.backend, duration=time.perf_counter() - started
        )
        log = Logger.base.info if self.cache_ledgers else Logger.base.debug
        log(
            f'📒 [LEDGER] trip={trip.id} rebuilt from {len(active)} active reservation(s): '
            f'{ledger.snapshot()}'
        )
        return ledger

