"""
Leg Ledger Interface

Booked-seat counter per leg of one trip. Leg i spans stop i to stop i + 1;
a segment [origin, destination) covers legs origin .. destination - 1.

Invariant: 0 <= booked[i] <= capacity for every leg, and no operation
leaves a partial update behind.
"""

from abc import ABC, abstractmethod

from src.service.ferry_booking.domain.booking_errors import (
    InsufficientCapacity,
    InvalidRange,
    InvalidSeatCount,
    LedgerInvariantViolation,
)


class ILegLedger(ABC):
    backend: str = ''

    def __init__(self, *, capacity: int, leg_count: int) -> None:
        if capacity <= 0 or leg_count <= 0:
            raise ValueError('capacity and leg_count must be positive')
        self.capacity = capacity
        self.leg_count = leg_count

    def available_seats(self, origin: int, destination: int) -> int:
        """capacity - max(booked[origin:destination])"""
        self._check_range(origin, destination)
        return self.capacity - self._max_booked(origin, destination)

    def reserve(self, origin: int, destination: int, seat_count: int) -> None:
        """
        Increment every leg of [origin, destination) by seat_count, or nothing

        Raises:
            InsufficientCapacity: when any covered leg has fewer than seat_count seats left
        """
        self._check_range(origin, destination)
        self._check_seat_count(seat_count)
        available = self.capacity - self._max_booked(origin, destination)
        if available < seat_count:
            raise InsufficientCapacity(
                origin=origin, destination=destination, requested=seat_count, available=available
            )
        self._add(origin, destination, seat_count)

    def release(self, origin: int, destination: int, seat_count: int) -> None:
        """
        Decrement every leg of [origin, destination) by seat_count

        Raises:
            LedgerInvariantViolation: when a covered leg would go negative
        """
        self._check_range(origin, destination)
        self._check_seat_count(seat_count)
        lowest = self._min_booked(origin, destination)
        if lowest < seat_count:
            raise LedgerInvariantViolation(
                f'Releasing {seat_count} seats on [{origin}, {destination}) '
                f'would drive a leg below zero (lowest booked {lowest})'
            )
        self._add(origin, destination, -seat_count)

    @abstractmethod
    def snapshot(self) -> list[int]:
        """Copy of booked[0 .. leg_count - 1]"""
        pass

    @abstractmethod
    def _max_booked(self, origin: int, destination: int) -> int:
        pass

    @abstractmethod
    def _min_booked(self, origin: int, destination: int) -> int:
        pass

    @abstractmethod
    def _add(self, origin: int, destination: int, delta: int) -> None:
        pass

    def _check_range(self, origin: int, destination: int) -> None:
        if not 0 <= origin < destination <= self.leg_count:
            raise InvalidRange(
                origin,
                destination,
                f'ledger requires 0 <= origin < destination <= {self.leg_count}',
            )

    @staticmethod
    def _check_seat_count(seat_count: int) -> None:
        if seat_count <= 0:
            raise InvalidSeatCount(seat_count)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(capacity={self.capacity}, booked={self.snapshot()})'
