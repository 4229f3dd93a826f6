"""Application layer DTOs"""

from src.service.ferry_booking.app.dto.hold_dto import HoldRequest
from src.service.ferry_booking.app.dto.manifest_dto import StopManifest, TripManifest

__all__ = ['HoldRequest', 'StopManifest', 'TripManifest']
