from decimal import Decimal

import attrs


@attrs.frozen
class SegmentOffer:
    """One row of the segment listing shown to the booking flow"""

    origin_index: int
    destination_index: int
    origin_name: str
    destination_name: str
    fare: Decimal
    available_seats: int
