"""
Hold DTOs

Request DTO for placing a hold on a trip segment.
"""

from typing import Optional

import attrs


@attrs.define
class HoldRequest:
    trip_id: str
    origin_index: int
    destination_index: int
    seat_count: int
    hold_ttl_seconds: Optional[int] = None  # None: DEFAULT_HOLD_TTL_SECONDS
    idempotency_key: Optional[str] = None  # Client retry key, unique per trip
