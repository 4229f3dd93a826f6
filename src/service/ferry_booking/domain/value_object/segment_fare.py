from collections.abc import Iterable, Iterator, Mapping
from decimal import ROUND_HALF_UP, Decimal

import attrs

from src.service.ferry_booking.domain.booking_errors import ConfigurationError
from src.service.ferry_booking.domain.entity.route_entity import RouteDefinition


CENT = Decimal('0.01')


def to_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@attrs.frozen
class SegmentFare:
    origin_index: int
    destination_index: int
    price: Decimal = attrs.field(converter=Decimal)

    @property
    def pair(self) -> tuple[int, int]:
        return self.origin_index, self.destination_index


@attrs.frozen
class FareTable:
    """Flat per-pair fare table: one price per (origin, destination)"""

    prices: Mapping[tuple[int, int], Decimal]

    @classmethod
    def from_fares(cls, fares: Iterable[SegmentFare]) -> 'FareTable':
        prices: dict[tuple[int, int], Decimal] = {}
        for fare in fares:
            if fare.pair in prices:
                raise ConfigurationError(f'Duplicate fare for segment {fare.pair}')
            prices[fare.pair] = fare.price
        return cls(prices=prices)

    def price_for(self, origin: int, destination: int) -> Decimal | None:
        return self.prices.get((origin, destination))

    def __iter__(self) -> Iterator[SegmentFare]:
        for (origin, destination), price in sorted(self.prices.items()):
            yield SegmentFare(origin_index=origin, destination_index=destination, price=price)

    def __len__(self) -> int:
        return len(self.prices)


def generate_linear_fares(route: RouteDefinition, base_fare_per_leg: Decimal) -> FareTable:
    """
    Build a fare table pricing each bookable segment by the number of legs it crosses

    Args:
        route: Route whose bookable pairs get a fare
        base_fare_per_leg: Price of a single leg

    Returns:
        FareTable with ``base_fare_per_leg * (destination - origin)`` per pair
    """
    base = Decimal(base_fare_per_leg)
    if base <= 0:
        raise ConfigurationError(f'base_fare_per_leg must be positive, got {base}')
    return FareTable(
        prices={
            (origin, destination): to_money(base * (destination - origin))
            for origin, destination in route.bookable_pairs()
        }
    )
