import threading

from src.platform.exception.exceptions import ConflictError
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import TripNotFound
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance


class InMemoryTripRepoImpl(ITripRepo):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._trips: dict[str, TripInstance] = {}

    def add(self, *, trip: TripInstance) -> TripInstance:
        with self._lock:
            if trip.id in self._trips:
                raise ConflictError(f'Trip {trip.id} already exists')
            self._trips[trip.id] = trip
        return trip

    def get_by_id(self, *, trip_id: str) -> TripInstance | None:
        with self._lock:
            return self._trips.get(trip_id)

    def update(self, *, trip: TripInstance) -> TripInstance:
        with self._lock:
            if trip.id not in self._trips:
                raise TripNotFound(trip.id)
            self._trips[trip.id] = trip
        return trip
