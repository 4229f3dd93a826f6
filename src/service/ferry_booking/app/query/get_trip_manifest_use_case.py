"""
Trip Manifest Query

Per-stop boarding and alighting counts for the crew, plus the seats
occupied on each leg.
"""

from src.platform.concurrency.i_keyed_lock import IKeyedLock
from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.dto.manifest_dto import StopManifest, TripManifest
from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_ledger_store import ITripLedgerStore
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import TripNotFound
from src.service.ferry_booking.domain.enum.reservation_state import ReservationState


class GetTripManifestUseCase:
    def __init__(
        self,
        *,
        trip_repo: ITripRepo,
        reservation_repo: IReservationRepo,
        route_catalog_repo: IRouteCatalogRepo,
        ledger_store: ITripLedgerStore,
        trip_locks: IKeyedLock,
    ) -> None:
        self.trip_repo = trip_repo
        self.reservation_repo = reservation_repo
        self.route_catalog_repo = route_catalog_repo
        self.ledger_store = ledger_store
        self.trip_locks = trip_locks

    @Logger.io
    def execute(self, *, trip_id: str, include_held: bool = False) -> TripManifest:
        """
        Args:
            trip_id: Trip to report on
            include_held: Count unconfirmed holds as well as CONFIRMED reservations
        """
        with self.trip_locks.hold(trip_id):
            trip = self.trip_repo.get_by_id(trip_id=trip_id)
            if trip is None:
                raise TripNotFound(trip_id)
            route = self.route_catalog_repo.get_catalog(route_id=trip.route_id).route
            reservations = self.reservation_repo.list_active_by_trip(trip_id=trip_id)
            booked = self.ledger_store.get(trip=trip).snapshot()

        counted = {ReservationState.CONFIRMED}
        if include_held:
            counted.add(ReservationState.HELD)

        boarding = [0] * route.stop_count
        alighting = [0] * route.stop_count
        for reservation in reservations:
            if reservation.state in counted:
                boarding[reservation.origin_index] += reservation.seat_count
                alighting[reservation.destination_index] += reservation.seat_count

        stops = []
        onboard = 0
        for stop in route.stops:
            index = stop.sequence_index
            onboard += boarding[index] - alighting[index]
            stops.append(
                StopManifest(
                    sequence_index=index,
                    stop_id=stop.id,
                    name=stop.name,
                    boarding=boarding[index],
                    alighting=alighting[index],
                    onboard_after=onboard,
                )
            )

        return TripManifest(
            trip_id=trip.id,
            route_id=route.id,
            vessel_capacity=trip.vessel_capacity,
            include_held=include_held,
            stops=stops,
            booked=booked,
        )
