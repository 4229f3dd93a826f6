"""
Seed Data Loader

Loads route reference data and trip records from a JSON file at startup.
Route and trip administration lives outside this service; this is how
their output reaches the booking engine.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo
from src.service.ferry_booking.domain.booking_errors import ConfigurationError
from src.service.ferry_booking.domain.entity.route_entity import RouteDefinition, Stop
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.stop_type import StopType
from src.service.ferry_booking.domain.enum.trip_status import TripStatus
from src.service.ferry_booking.domain.value_object.segment_fare import (
    FareTable,
    SegmentFare,
    generate_linear_fares,
)


class StopSeed(BaseModel):
    id: str
    name: str
    stop_type: StopType = StopType.BOTH


class FareSeed(BaseModel):
    origin_index: int
    destination_index: int
    price: Decimal


class RouteSeed(BaseModel):
    id: str
    name: str = ''
    stops: list[StopSeed]  # In sailing order
    base_fare_per_leg: Optional[Decimal] = None  # Generates fares when `fares` is empty
    fares: list[FareSeed] = []


class TripSeed(BaseModel):
    id: str
    route_id: str
    vessel_capacity: int
    status: TripStatus = TripStatus.SCHEDULED
    departure_at: Optional[datetime] = None
    fare_multiplier: Decimal = Decimal('1')
    fare_overrides: list[FareSeed] = []


class SeedData(BaseModel):
    routes: list[RouteSeed] = Field(default_factory=list)
    trips: list[TripSeed] = Field(default_factory=list)


class SeedDataLoader:
    def __init__(self, *, route_catalog_repo: IRouteCatalogRepo, trip_repo: ITripRepo) -> None:
        self.route_catalog_repo = route_catalog_repo
        self.trip_repo = trip_repo

    @Logger.io
    def load_file(self, path: str | Path) -> SeedData:
        data = SeedData.model_validate_json(Path(path).read_text(encoding='utf-8'))
        self.load(data)
        return data

    def load(self, data: SeedData) -> None:
        for route_seed in data.routes:
            route = RouteDefinition.create(
                id=route_seed.id,
                name=route_seed.name,
                stops=[
                    Stop(id=stop.id, sequence_index=index, name=stop.name, stop_type=stop.stop_type)
                    for index, stop in enumerate(route_seed.stops)
                ],
            )
            self.route_catalog_repo.register(
                route=route, fare_table=self._fare_table(route, route_seed)
            )

        for trip_seed in data.trips:
            catalog = self.route_catalog_repo.get_catalog(route_id=trip_seed.route_id)
            trip = TripInstance(
                id=trip_seed.id,
                route_id=trip_seed.route_id,
                vessel_capacity=trip_seed.vessel_capacity,
                status=trip_seed.status,
                departure_at=trip_seed.departure_at,
                fare_multiplier=trip_seed.fare_multiplier,
                fare_overrides={
                    (fare.origin_index, fare.destination_index): fare.price
                    for fare in trip_seed.fare_overrides
                },
            )
            catalog.validate_trip(trip)
            # Trips persisted by an earlier run keep their stored state
            if self.trip_repo.get_by_id(trip_id=trip.id) is None:
                self.trip_repo.add(trip=trip)

        Logger.base.info(
            f'🌱 [SEED] Loaded {len(data.routes)} route(s) and {len(data.trips)} trip(s)'
        )

    @staticmethod
    def _fare_table(route: RouteDefinition, route_seed: RouteSeed) -> FareTable:
        if route_seed.fares:
            return FareTable.from_fares(
                SegmentFare(
                    origin_index=fare.origin_index,
                    destination_index=fare.destination_index,
                    price=fare.price,
                )
                for fare in route_seed.fares
            )
        if route_seed.base_fare_per_leg is None:
            raise ConfigurationError(f'Route {route.id} needs fares or base_fare_per_leg')
        return generate_linear_fares(route, route_seed.base_fare_per_leg)
