from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger


class SegmentTreeLegLedger(ILegLedger):
    """
    Lazy range-add / range-max segment tree; O(log legs) per query and update

    Each node keeps the max and min of its span. A pending add is stored on
    the node and pushed to its children only when a query or update has to
    descend past it.
    """

    backend = 'segment_tree'

    def __init__(self, *, capacity: int, leg_count: int) -> None:
        super().__init__(capacity=capacity, leg_count=leg_count)
        size = 4 * leg_count
        self._max = [0] * size
        self._min = [0] * size
        self._lazy = [0] * size

    def snapshot(self) -> list[int]:
        return [self._max_booked(leg, leg + 1) for leg in range(self.leg_count)]

    def _max_booked(self, origin: int, destination: int) -> int:
        return self._query(1, 0, self.leg_count, origin, destination, want_max=True)

    def _min_booked(self, origin: int, destination: int) -> int:
        return self._query(1, 0, self.leg_count, origin, destination, want_max=False)

    def _add(self, origin: int, destination: int, delta: int) -> None:
        self._update(1, 0, self.leg_count, origin, destination, delta)

    # Nodes cover half-open spans [lo, hi)

    def _apply(self, node: int, delta: int) -> None:
        self._max[node] += delta
        self._min[node] += delta
        self._lazy[node] += delta

    def _push_down(self, node: int) -> None:
        if self._lazy[node]:
            self._apply(2 * node, self._lazy[node])
            self._apply(2 * node + 1, self._lazy[node])
            self._lazy[node] = 0

    def _update(self, node: int, lo: int, hi: int, origin: int, destination: int, delta: int):
        if destination <= lo or hi <= origin:
            return
        if origin <= lo and hi <= destination:
            self._apply(node, delta)
            return
        self._push_down(node)
        mid = (lo + hi) // 2
        self._update(2 * node, lo, mid, origin, destination, delta)
        self._update(2 * node + 1, mid, hi, origin, destination, delta)
        self._max[node] = max(self._max[2 * node], self._max[2 * node + 1])
        self._min[node] = min(self._min[2 * node], self._min[2 * node + 1])

    def _query(
        self, node: int, lo: int, hi: int, origin: int, destination: int, *, want_max: bool
    ) -> int:
        if origin <= lo and hi <= destination:
            return self._max[node] if want_max else self._min[node]
        self._push_down(node)
        mid = (lo + hi) // 2
        results = []
        if origin < mid:
            results.append(self._query(2 * node, lo, mid, origin, destination, want_max=want_max))
        if mid < destination:
            results.append(
                self._query(2 * node + 1, mid, hi, origin, destination, want_max=want_max)
            )
        return max(results) if want_max else min(results)
