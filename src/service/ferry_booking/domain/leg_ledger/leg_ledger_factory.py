from typing import Literal

from src.service.ferry_booking.domain.leg_ledger.array_leg_ledger import ArrayLegLedger
from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger
from src.service.ferry_booking.domain.leg_ledger.segment_tree_leg_ledger import (
    SegmentTreeLegLedger,
)


LegLedgerBackend = Literal['array', 'segment_tree']

_BACKENDS: dict[str, type[ILegLedger]] = {
    ArrayLegLedger.backend: ArrayLegLedger,
    SegmentTreeLegLedger.backend: SegmentTreeLegLedger,
}


class LegLedgerFactory:
    def __init__(self, *, backend: LegLedgerBackend = 'array') -> None:
        if backend not in _BACKENDS:
            raise ValueError(f'Unknown leg ledger backend: {backend}')
        self.backend = backend

    def create(self, *, capacity: int, leg_count: int) -> ILegLedger:
        return _BACKENDS[self.backend](capacity=capacity, leg_count=leg_count)
