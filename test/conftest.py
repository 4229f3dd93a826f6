"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module reads settings
- A four-stop route [A, B, C, D] with linear fares and a capacity-10 trip
- In-memory repositories, ledger store and a ReservationManager on a fixed clock
- A Kvrocks client double shared by DistributedLock instances

Architecture:
- Unit tests (test/**/unit/): build on these fixtures or replace collaborators with mocks
- Integration tests: SQLite-backed repositories, the FastAPI app, real threads
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings and the loguru sinks are configured at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['RESERVATION_STORE'] = 'memory'
    os.environ['LEG_LEDGER_BACKEND'] = 'array'
    os.environ['EXPIRE_SWEEP_ENABLED'] = 'false'
    os.environ.pop('SEED_DATA_FILE', None)


_early_setup_test_environment()

from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
import threading  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from src.platform.concurrency.keyed_lock_arena import KeyedLockArena  # noqa: E402
from src.service.ferry_booking.app.command.reservation_manager import (  # noqa: E402
    ReservationManager,
)
from src.service.ferry_booking.domain.entity.route_entity import (  # noqa: E402
    RouteDefinition,
    Stop,
)
from src.service.ferry_booking.domain.entity.trip_entity import TripInstance  # noqa: E402
from src.service.ferry_booking.domain.leg_ledger.leg_ledger_factory import (  # noqa: E402
    LegLedgerFactory,
)
from src.service.ferry_booking.domain.value_object.segment_fare import (  # noqa: E402
    generate_linear_fares,
)
from src.service.ferry_booking.driven_adapter.repo.reservation_repo_memory_impl import (  # noqa: E402
    InMemoryReservationRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.route_catalog_repo_impl import (  # noqa: E402
    RouteCatalogRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.trip_repo_memory_impl import (  # noqa: E402
    InMemoryTripRepoImpl,
)
from src.service.ferry_booking.driven_adapter.state.trip_ledger_store import (  # noqa: E402
    TripLedgerStore,
)


FIXED_NOW = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)
ROUTE_ID = 'R-ABCD'
TRIP_ID = 'T1'


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def route() -> RouteDefinition:
    """Stops A, B, C, D at indices 0..3, all allowing boarding and alighting"""
    return RouteDefinition.create(
        id=ROUTE_ID,
        name='Harbour Loop',
        stops=[
            Stop(id=f'S-{name}', sequence_index=index, name=name)
            for index, name in enumerate('ABCD')
        ],
    )


@pytest.fixture
def trip() -> TripInstance:
    return TripInstance(id=TRIP_ID, route_id=ROUTE_ID, vessel_capacity=10)


@pytest.fixture
def route_catalog_repo(route: RouteDefinition) -> RouteCatalogRepoImpl:
    repo = RouteCatalogRepoImpl()
    repo.register(route=route, fare_table=generate_linear_fares(route, Decimal('12.50')))
    return repo


@pytest.fixture
def trip_repo(trip: TripInstance) -> InMemoryTripRepoImpl:
    repo = InMemoryTripRepoImpl()
    repo.add(trip=trip)
    return repo


@pytest.fixture
def reservation_repo() -> InMemoryReservationRepoImpl:
    return InMemoryReservationRepoImpl()


@pytest.fixture(params=['array', 'segment_tree'])
def ledger_backend(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
def ledger_store(
    reservation_repo: InMemoryReservationRepoImpl,
    route_catalog_repo: RouteCatalogRepoImpl,
    ledger_backend: str,
) -> TripLedgerStore:
    return TripLedgerStore(
        reservation_repo=reservation_repo,
        route_catalog_repo=route_catalog_repo,
        ledger_factory=LegLedgerFactory(backend=ledger_backend),  # type: ignore[arg-type]
    )


@pytest.fixture
def manager(
    reservation_repo: InMemoryReservationRepoImpl,
    trip_repo: InMemoryTripRepoImpl,
    route_catalog_repo: RouteCatalogRepoImpl,
    ledger_store: TripLedgerStore,
) -> ReservationManager:
    return ReservationManager(
        reservation_repo=reservation_repo,
        trip_repo=trip_repo,
        route_catalog_repo=route_catalog_repo,
        ledger_store=ledger_store,
        trip_locks=KeyedLockArena(name='trip'),
        row_locks=KeyedLockArena(name='reservation'),
        default_hold_ttl_seconds=600,
        max_hold_ttl_seconds=3600,
        max_seats_per_hold=50,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def kvrocks() -> MagicMock:
    """
    Kvrocks client double: SET NX and the owner-checked release script over a dict

    Every DistributedLock built on it behaves like a worker process sharing one server.
    """
    keys: dict[str, str] = {}
    guard = threading.Lock()

    def set_key(key: str, value: str, nx: bool = False, px: int | None = None) -> bool | None:
        with guard:
            if nx and key in keys:
                return None
            keys[key] = value
            return True

    def release_script(script: str, numkeys: int, key: str, token: str) -> int:
        with guard:
            if keys.get(key) != token:
                return 0
            del keys[key]
            return 1

    client = MagicMock()
    client.set.side_effect = set_key
    client.eval.side_effect = release_script
    client.keys_held = keys
    return client
