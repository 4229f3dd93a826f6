"""
Segment Catalog

Bookable (origin, destination) pairs of a route with their fares. All
route and fare validation happens in ``build``; a built catalog never
raises ConfigurationError at query time.
"""

from decimal import Decimal
from typing import Optional

from src.service.ferry_booking.domain.booking_errors import ConfigurationError
from src.service.ferry_booking.domain.entity.route_entity import RouteDefinition
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.enum.trip_status import TripStatus
from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger
from src.service.ferry_booking.domain.value_object.segment_fare import FareTable, to_money
from src.service.ferry_booking.domain.value_object.segment_offer import SegmentOffer


class SegmentCatalog:
    def __init__(self, *, route: RouteDefinition, fares: dict[tuple[int, int], Decimal]) -> None:
        self.route = route
        self._fares = fares

    @classmethod
    def build(cls, *, route: RouteDefinition, fare_table: FareTable) -> 'SegmentCatalog':
        bookable = set(route.bookable_pairs())

        unknown = sorted(set(fare_table.prices) - bookable)
        if unknown:
            raise ConfigurationError(f'Route {route.id} has fares for non-bookable pairs {unknown}')

        missing = sorted(bookable - set(fare_table.prices))
        if missing:
            raise ConfigurationError(f'Route {route.id} is missing fares for {missing}')

        negative = sorted(pair for pair, price in fare_table.prices.items() if price < 0)
        if negative:
            raise ConfigurationError(f'Route {route.id} has negative fares for {negative}')

        return cls(route=route, fares={pair: fare_table.prices[pair] for pair in sorted(bookable)})

    def validate_trip(self, trip: TripInstance) -> None:
        """Trip-level fare data is checked when the trip is registered"""
        if trip.route_id != self.route.id:
            raise ConfigurationError(f'Trip {trip.id} does not sail route {self.route.id}')
        for pair, price in trip.fare_overrides.items():
            if pair not in self._fares:
                raise ConfigurationError(f'Trip {trip.id} overrides non-bookable pair {pair}')
            if price < 0:
                raise ConfigurationError(f'Trip {trip.id} has a negative override for {pair}')

    def fare_for(self, trip: TripInstance, origin: int, destination: int) -> Decimal:
        """Effective per-seat fare: (trip override or route fare) x trip multiplier"""
        self.route.validate_segment(origin, destination)
        base = trip.fare_overrides.get((origin, destination), self._fares[(origin, destination)])
        return to_money(base * trip.fare_multiplier)

    def list_segments(
        self, *, trip: TripInstance, ledger: ILegLedger, min_seats: Optional[int] = None
    ) -> list[SegmentOffer]:
        """
        Args:
            trip: Trip whose fares and status apply
            ledger: The trip's leg ledger
            min_seats: Drop pairs with fewer available seats

        Returns:
            Offers ordered by (origin, destination)
        """
        bookable = trip.status is TripStatus.SCHEDULED
        stops = self.route.stops
        offers = []
        for origin, destination in self._fares:
            available = ledger.available_seats(origin, destination) if bookable else 0
            if min_seats is not None and available < min_seats:
                continue
            offers.append(
                SegmentOffer(
                    origin_index=origin,
                    destination_index=destination,
                    origin_name=stops[origin].name,
                    destination_name=stops[destination].name,
                    fare=self.fare_for(trip, origin, destination),
                    available_seats=available,
                )
            )
        return offers
