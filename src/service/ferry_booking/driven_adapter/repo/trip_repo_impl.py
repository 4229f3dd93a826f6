from collections.abc import Callable
from contextlib import AbstractContextManager
from decimal import Decimal

from sqlalchemy.orm import Session

from src.platform.database.db_setting import as_utc
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import TripNotFound
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.trip_status import TripStatus
from src.service.ferry_booking.driven_adapter.model.trip_model import TripModel


def _encode_overrides(overrides: dict[tuple[int, int], Decimal]) -> dict[str, str]:
    return {
        f'{origin}-{destination}': str(price) for (origin, destination), price in overrides.items()
    }


def _decode_overrides(raw: dict[str, str] | None) -> dict[tuple[int, int], Decimal]:
    decoded = {}
    for key, price in (raw or {}).items():
        origin, destination = key.split('-')
        decoded[(int(origin), int(destination))] = Decimal(price)
    return decoded


class TripRepoImpl(ITripRepo):
    def __init__(self, session_factory: Callable[..., AbstractContextManager[Session]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_trip: TripModel) -> TripInstance:
        return TripInstance(
            id=db_trip.id,
            route_id=db_trip.route_id,
            vessel_capacity=db_trip.vessel_capacity,
            status=TripStatus(db_trip.status),
            departure_at=as_utc(db_trip.departure_at),
            fare_multiplier=Decimal(db_trip.fare_multiplier),
            fare_overrides=_decode_overrides(db_trip.fare_overrides),
        )

    @Logger.io
    def add(self, *, trip: TripInstance) -> TripInstance:
        with self.session_factory() as session:
            if session.get(TripModel, trip.id) is not None:
                raise ConflictError(f'Trip {trip.id} already exists')
            session.add(
                TripModel(
                    id=trip.id,
                    route_id=trip.route_id,
                    vessel_capacity=trip.vessel_capacity,
                    status=trip.status.value,
                    departure_at=trip.departure_at,
                    fare_multiplier=trip.fare_multiplier,
                    fare_overrides=_encode_overrides(trip.fare_overrides),
                )
            )
        return trip

    def get_by_id(self, *, trip_id: str) -> TripInstance | None:
        with self.session_factory() as session:
            db_trip = session.get(TripModel, trip_id)
            return self._to_entity(db_trip) if db_trip else None

    @Logger.io
    def update(self, *, trip: TripInstance) -> TripInstance:
        with self.session_factory() as session:
            db_trip = session.get(TripModel, trip.id)
            if db_trip is None:
                raise TripNotFound(trip.id)
            db_trip.vessel_capacity = trip.vessel_capacity
            db_trip.status = trip.status.value
            db_trip.departure_at = trip.departure_at
            db_trip.fare_multiplier = trip.fare_multiplier
            db_trip.fare_overrides = _encode_overrides(trip.fare_overrides)
        return trip
