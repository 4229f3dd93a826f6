from abc import ABC, abstractmethod
from datetime import datetime

from src.service.ferry_booking.domain.entity.trip_entity import TripInstance
from src.service.ferry_booking.domain.leg_ledger.i_leg_ledger import ILegLedger


class ITripLedgerStore(ABC):
    """
    Live leg ledgers per trip

    Callers must hold the trip lock while using a returned ledger.
    """

    @abstractmethod
    def get(self, *, trip: TripInstance) -> ILegLedger:
        """
        Return the trip's ledger, rebuilding it from active reservations when not cached

        Raises:
            LedgerInvariantViolation: when active reservations exceed the vessel capacity
        """
        pass

    @abstractmethod
    def invalidate(self, *, trip_id: str) -> None:
        """Drop the cached ledger so the next ``get`` rebuilds it"""
        pass

    @abstractmethod
    def evict_departed(self, *, now: datetime) -> int:
        """Drop cached ledgers of trips whose departure_at <= now; returns how many"""
        pass
