"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.ferry_booking.driven_adapter.model.reservation_model import ReservationModel
from src.service.ferry_booking.driven_adapter.model.trip_model import TripModel

__all__ = ['ReservationModel', 'TripModel']
