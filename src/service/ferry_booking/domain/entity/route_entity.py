from collections.abc import Iterator, Sequence

import attrs

from src.service.ferry_booking.domain.booking_errors import ConfigurationError, InvalidRange
from src.service.ferry_booking.domain.enum.stop_type import StopType


@attrs.frozen
class Stop:
    id: str
    sequence_index: int
    name: str = ''
    stop_type: StopType = StopType.BOTH


@attrs.frozen
class RouteDefinition:
    """
    Ordered ports of call for a route; immutable reference data

    Leg i spans stop i to stop i + 1, so a route with N stops has N - 1 legs.
    """

    id: str
    name: str
    stops: tuple[Stop, ...]

    @classmethod
    def create(cls, *, id: str, name: str = '', stops: Sequence[Stop]) -> 'RouteDefinition':
        if len(stops) < 2:
            raise ConfigurationError(f'Route {id} needs at least 2 stops, got {len(stops)}')

        ordered = tuple(sorted(stops, key=lambda stop: stop.sequence_index))
        indices = [stop.sequence_index for stop in ordered]
        if indices != list(range(len(ordered))):
            raise ConfigurationError(
                f'Route {id} stop indices must be unique and contiguous from 0, got {indices}'
            )

        if len({stop.id for stop in ordered}) != len(ordered):
            raise ConfigurationError(f'Route {id} has duplicate stop ids')

        route = cls(id=id, name=name or id, stops=ordered)
        if not any(True for _ in route.bookable_pairs()):
            raise ConfigurationError(f'Route {id} has no bookable segment')
        return route

    @property
    def stop_count(self) -> int:
        return len(self.stops)

    @property
    def leg_count(self) -> int:
        return len(self.stops) - 1

    def is_bookable(self, origin: int, destination: int) -> bool:
        if not 0 <= origin < destination < self.stop_count:
            return False
        return (
            self.stops[origin].stop_type.allows_boarding
            and self.stops[destination].stop_type.allows_alighting
        )

    def bookable_pairs(self) -> Iterator[tuple[int, int]]:
        """All (origin, destination) pairs in (origin, destination) order"""
        for origin in range(self.stop_count - 1):
            for destination in range(origin + 1, self.stop_count):
                if self.is_bookable(origin, destination):
                    yield origin, destination

    def validate_segment(self, origin: int, destination: int) -> None:
        if not 0 <= origin < destination < self.stop_count:
            raise InvalidRange(
                origin,
                destination,
                f'route {self.id} requires 0 <= origin < destination < {self.stop_count}',
            )
        if not self.stops[origin].stop_type.allows_boarding:
            raise InvalidRange(origin, destination, f'no boarding at {self.stops[origin].name}')
        if not self.stops[destination].stop_type.allows_alighting:
            raise InvalidRange(
                origin, destination, f'no alighting at {self.stops[destination].name}'
            )
