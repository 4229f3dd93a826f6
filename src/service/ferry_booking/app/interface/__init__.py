"""Application layer interfaces (Ports)"""

from src.service.ferry_booking.app.interface.i_reservation_repo import IReservationRepo
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.app.interface.i_trip_ledger_store import ITripLedgerStore
from src.service.ferry_booking.app.interface.i_trip_repo import ITripRepo

__all__ = ['IReservationRepo', 'IRouteCatalogRepo', 'ITripLedgerStore', 'ITripRepo']
