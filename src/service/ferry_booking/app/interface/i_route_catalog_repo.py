from abc import ABC, abstractmethod

from src.service.ferry_booking.domain.entity.route_entity import RouteDefinition
from src.service.ferry_booking.domain.segment_catalog import SegmentCatalog
from src.service.ferry_booking.domain.value_object.segment_fare import FareTable


class IRouteCatalogRepo(ABC):
    """Route reference data and the segment catalog built from it"""

    @abstractmethod
    def register(self, *, route: RouteDefinition, fare_table: FareTable) -> SegmentCatalog:
        """
        Build and store the catalog for a route

        Raises:
            ConfigurationError: malformed route or fare data
        """
        pass

    @abstractmethod
    def get_catalog(self, *, route_id: str) -> SegmentCatalog:
        """
        Raises:
            ConfigurationError: when the route was never registered
        """
        pass
