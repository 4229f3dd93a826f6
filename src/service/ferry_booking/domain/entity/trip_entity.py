from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs

from src.platform.exception.exceptions import DomainError
from src.service.ferry_booking.domain.booking_errors import (
    CapacityLocked,
    ConfigurationError,
    TripNotBookable,
)
from src.service.ferry_booking.domain.enum.trip_status import TripStatus


def _positive_capacity(instance: 'TripInstance', attribute: attrs.Attribute, value: int) -> None:
    if value <= 0:
        raise ConfigurationError(
            f'Trip {instance.id} vessel_capacity must be positive, got {value}'
        )


@attrs.frozen
class TripInstance:
    """A scheduled sailing of a route; the scope of one leg ledger"""

    id: str
    route_id: str
    vessel_capacity: int = attrs.field(validator=_positive_capacity)
    status: TripStatus = TripStatus.SCHEDULED
    departure_at: Optional[datetime] = None
    fare_multiplier: Decimal = attrs.field(default=Decimal('1'), converter=Decimal)
    fare_overrides: dict[tuple[int, int], Decimal] = attrs.field(factory=dict)

    @fare_multiplier.validator
    def _check_multiplier(self, attribute: attrs.Attribute, value: Decimal) -> None:
        if value <= 0:
            raise ConfigurationError(f'Trip {self.id} fare_multiplier must be positive')

    def ensure_bookable(self, *, now: datetime) -> None:
        if self.status is not TripStatus.SCHEDULED:
            raise TripNotBookable(self.id, f'status is {self.status}')
        if self.departure_at is not None and self.departure_at <= now:
            raise TripNotBookable(self.id, 'already departed')

    def cap_hold_expiry(self, expiry: datetime) -> datetime:
        """Holds never outlive the sailing"""
        if self.departure_at is not None and self.departure_at < expiry:
            return self.departure_at
        return expiry

    def change_capacity(self, *, new_capacity: int, has_reservations: bool) -> 'TripInstance':
        if new_capacity <= 0:
            raise DomainError(f'vessel_capacity must be positive, got {new_capacity}')
        if has_reservations:
            raise CapacityLocked(self.id)
        return attrs.evolve(self, vessel_capacity=new_capacity)

    def with_status(self, status: TripStatus) -> 'TripInstance':
        return attrs.evolve(self, status=status)
