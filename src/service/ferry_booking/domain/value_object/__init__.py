"""Ferry Booking Domain Value Objects"""

from src.service.ferry_booking.domain.value_object.segment_fare import FareTable, SegmentFare
from src.service.ferry_booking.domain.value_object.segment_offer import SegmentOffer

__all__ = ['FareTable', 'SegmentFare', 'SegmentOffer']
