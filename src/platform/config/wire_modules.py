"""Modules whose ``@inject`` endpoints are wired to the container at startup"""

from types import ModuleType

from src.service.ferry_booking.driving_adapter.http_controller import ferry_booking_controller


WIRE_MODULES: list[ModuleType] = [ferry_booking_controller]
