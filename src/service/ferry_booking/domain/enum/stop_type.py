"""
Stop Type Enum

Whether passengers may board, alight, or both at a port of call.
"""

from enum import StrEnum


class StopType(StrEnum):
    PICKUP = 'pickup'
    DROPOFF = 'dropoff'
    BOTH = 'both'

    @property
    def allows_boarding(self) -> bool:
        return self in (StopType.PICKUP, StopType.BOTH)

    @property
    def allows_alighting(self) -> bool:
        return self in (StopType.DROPOFF, StopType.BOTH)
