"""Ferry Booking Domain Enums"""

from src.service.ferry_booking.domain.enum.reservation_state import ReservationState
from src.service.ferry_booking.domain.enum.stop_type import StopType
from src.service.ferry_booking.domain.enum.trip_status import TripStatus

__all__ = ['ReservationState', 'StopType', 'TripStatus']
