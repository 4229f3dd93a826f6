from typing import Optional

from opentelemetry import trace

from src.platform.concurrency.i_keyed_lock import IKeyedLock
from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_ledger_store import ITripLedgerStore
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import TripNotFound
from src.service.ferry_booking.domain.value_object.segment_offer import SegmentOffer


class ListSegmentsUseCase:
    def __init__(
        self,
        *,
        trip_repo: ITripRepo,
        route_catalog_repo: IRouteCatalogRepo,
        ledger_store: ITripLedgerStore,
        trip_locks: IKeyedLock,
    ) -> None:
        self.trip_repo = trip_repo
        self.route_catalog_repo = route_catalog_repo
        self.ledger_store = ledger_store
        self.trip_locks = trip_locks
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    def execute(self, *, trip_id: str, min_seats: Optional[int] = None) -> list[SegmentOffer]:
        with self.tracer.start_as_current_span(
            'use_case.list_segments', attributes={'trip.id': trip_id}
        ):
            # Read under the trip lock so availability reflects the latest hold
            with self.trip_locks.hold(trip_id):
                trip = self.trip_repo.get_by_id(trip_id=trip_id)
                if trip is None:
                    raise TripNotFound(trip_id)
                catalog = self.route_catalog_repo.get_catalog(route_id=trip.route_id)
                ledger = self.ledger_store.get(trip=trip)
                return catalog.list_segments(trip=trip, ledger=ledger, min_seats=min_seats)
