import threading

from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.interface.i_route_catalog_repo import IRouteCatalogRepo
from src.service.ferry_booking.domain.booking_errors import ConfigurationError
from src.service.ferry_booking.domain.entity.route_entity import RouteDefinition
from src.service.ferry_booking.domain.segment_catalog import SegmentCatalog
from src.service.ferry_booking.domain.value_object.segment_fare import FareTable


class RouteCatalogRepoImpl(IRouteCatalogRepo):
    """Routes are reference data: catalogs are built once and kept in memory"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._catalogs: dict[str, SegmentCatalog] = {}

    @Logger.io
    def register(self, *, route: RouteDefinition, fare_table: FareTable) -> SegmentCatalog:
        catalog = SegmentCatalog.build(route=route, fare_table=fare_table)
        with self._lock:
            self._catalogs[route.id] = catalog
        Logger.base.info(
            f'🗺️ [CATALOG] Route {route.id} registered: {route.stop_count} stops, '
            f'{len(fare_table)} fares'
        )
        return catalog

    def get_catalog(self, *, route_id: str) -> SegmentCatalog:
        with self._lock:
            catalog = self._catalogs.get(route_id)
        if catalog is None:
            raise ConfigurationError(f'Route {route_id} has no segment catalog')
        return catalog
