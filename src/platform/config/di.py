"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.concurrency.keyed_lock_arena import KeyedLockArena
from src.platform.config.core_setting import Settings
from src.platform.database.db_setting import Database
from src.platform.state.distributed_lock import DistributedLock
from src.service.ferry_booking.app.command.reservation_manager import ReservationManager
from src.service.ferry_booking.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.ferry_booking.app.query.get_trip_manifest_use_case import (
    GetTripManifestUseCase,
)
from src.service.ferry_booking.app.query.list_segments_use_case import ListSegmentsUseCase
from src.service.ferry_booking.domain.leg_ledger.leg_ledger_factory import LegLedgerFactory
from src.service.ferry_booking.driven_adapter.repo.reservation_repo_impl import (
    ReservationRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.reservation_repo_memory_impl import (
    InMemoryReservationRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.route_catalog_repo_impl import (
    RouteCatalogRepoImpl,
)
from src.service.ferry_booking.driven_adapter.repo.seed_data_loader import SeedDataLoader
from src.service.ferry_booking.driven_adapter.repo.trip_repo_impl import TripRepoImpl
from src.service.ferry_booking.driven_adapter.repo.trip_repo_memory_impl import (
    InMemoryTripRepoImpl,
)
from src.service.ferry_booking.driven_adapter.state.trip_ledger_store import TripLedgerStore
from src.service.ferry_booking.driving_adapter.scheduler.expiry_sweeper import ExpirySweeper


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (only touched when RESERVATION_STORE=sql)
    database = providers.Singleton(
        Database, url=config_service.provided.DATABASE_URL, echo=config_service.provided.DB_ECHO
    )

    # Repositories: RESERVATION_STORE picks the backing store
    reservation_repo = providers.Selector(
        config_service.provided.RESERVATION_STORE,
        memory=providers.Singleton(InMemoryReservationRepoImpl),
        sql=providers.Singleton(ReservationRepoImpl, session_factory=database.provided.session),
    )
    trip_repo = providers.Selector(
        config_service.provided.RESERVATION_STORE,
        memory=providers.Singleton(InMemoryTripRepoImpl),
        sql=providers.Singleton(TripRepoImpl, session_factory=database.provided.session),
    )
    route_catalog_repo = providers.Singleton(RouteCatalogRepoImpl)

    # Seat inventory
    leg_ledger_factory = providers.Singleton(
        LegLedgerFactory, backend=config_service.provided.LEG_LEDGER_BACKEND
    )
    # The SQL store is shared by worker processes: ledgers are re-derived per operation
    ledger_store = providers.Selector(
        config_service.provided.RESERVATION_STORE,
        memory=providers.Singleton(
            TripLedgerStore,
            reservation_repo=reservation_repo,
            route_catalog_repo=route_catalog_repo,
            ledger_factory=leg_ledger_factory,
            cache_ledgers=True,
        ),
        sql=providers.Singleton(
            TripLedgerStore,
            reservation_repo=reservation_repo,
            route_catalog_repo=route_catalog_repo,
            ledger_factory=leg_ledger_factory,
            cache_ledgers=False,
        ),
    )

    # Locks: ledger lock per trip, row lock per reservation.
    # In-process for the memory store, Kvrocks-backed across processes for the SQL store.
    trip_locks = providers.Selector(
        config_service.provided.RESERVATION_STORE,
        memory=providers.Singleton(KeyedLockArena, name='trip'),
        sql=providers.Singleton(
            DistributedLock,
            name='trip',
            ttl_seconds=config_service.provided.LOCK_TTL_SECONDS,
            wait_timeout_seconds=config_service.provided.LOCK_WAIT_TIMEOUT_SECONDS,
            retry_interval_seconds=config_service.provided.LOCK_RETRY_INTERVAL_SECONDS,
        ),
    )
    row_locks = providers.Selector(
        config_service.provided.RESERVATION_STORE,
        memory=providers.Singleton(KeyedLockArena, name='reservation'),
        sql=providers.Singleton(
            DistributedLock,
            name='reservation',
            ttl_seconds=config_service.provided.LOCK_TTL_SECONDS,
            wait_timeout_seconds=config_service.provided.LOCK_WAIT_TIMEOUT_SECONDS,
            retry_interval_seconds=config_service.provided.LOCK_RETRY_INTERVAL_SECONDS,
        ),
    )

    # Use cases
    reservation_manager = providers.Singleton(
        ReservationManager,
        reservation_repo=reservation_repo,
        trip_repo=trip_repo,
        route_catalog_repo=route_catalog_repo,
        ledger_store=ledger_store,
        trip_locks=trip_locks,
        row_locks=row_locks,
        default_hold_ttl_seconds=config_service.provided.DEFAULT_HOLD_TTL_SECONDS,
        max_hold_ttl_seconds=config_service.provided.MAX_HOLD_TTL_SECONDS,
        max_seats_per_hold=config_service.provided.MAX_SEATS_PER_HOLD,
    )
    list_segments_use_case = providers.Singleton(
        ListSegmentsUseCase,
        trip_repo=trip_repo,
        route_catalog_repo=route_catalog_repo,
        ledger_store=ledger_store,
        trip_locks=trip_locks,
    )
    get_trip_manifest_use_case = providers.Singleton(
        GetTripManifestUseCase,
        trip_repo=trip_repo,
        reservation_repo=reservation_repo,
        route_catalog_repo=route_catalog_repo,
        ledger_store=ledger_store,
        trip_locks=trip_locks,
    )
    get_reservation_use_case = providers.Singleton(
        GetReservationUseCase, reservation_repo=reservation_repo
    )

    seed_data_loader = providers.Singleton(
        SeedDataLoader, route_catalog_repo=route_catalog_repo, trip_repo=trip_repo
    )

    # Background expiry sweeper (started by main.py lifespan)
    expiry_sweeper = providers.Singleton(
        ExpirySweeper,
        reservation_manager=reservation_manager,
        interval_seconds=config_service.provided.EXPIRE_SWEEP_INTERVAL_SECONDS,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
