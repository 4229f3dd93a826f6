from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger


class ArrayLegLedger(ILegLedger):
    """Plain list of counters; O(legs) per query and update"""

    backend = 'array'

    def __init__(self, *, capacity: int, leg_count: int) -> None:
        super().__init__(capacity=capacity, leg_count=leg_count)
        self._booked = [0] * leg_count

    def snapshot(self) -> list[int]:
        return list(self._booked)

    def _max_booked(self, origin: int, destination: int) -> int:
        return max(self._booked[origin:destination])

    def _min_booked(self, origin: int, destination: int) -> int:
        return min(self._booked[origin:destination])

    def _add(self, origin: int, destination: int, delta: int) -> None:
        for leg in range(origin, destination):
            self._booked[leg] += delta
