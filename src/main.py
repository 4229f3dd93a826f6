"""
Production FastAPI Application

Booking engine HTTP API plus the background expiry sweeper.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import SERVICE_NAME, create_app
from src.platform.config.di import cleanup, container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.constant.path import BASE_DIR
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Ferry Service] Starting up...')
    setup()
    config = container.config_service()

    tracing = TracingConfig(service_name=SERVICE_NAME)
    tracing.setup()
    Logger.base.info('📊 [Ferry Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ferry Service] Dependency injection wired')

    if config.RESERVATION_STORE == 'sql':
        database = container.database()
        database.create_tables()
        tracing.instrument_sqlalchemy(engine=database.engine)
        Logger.base.info('🗄️  [Ferry Service] Database tables ready + instrumented')
        # Trip locks must exclude every worker process sharing the database
        tracing.instrument_redis()
        kvrocks_client.initialize()

    if config.SEED_DATA_FILE:
        seed_path = Path(config.SEED_DATA_FILE)
        if not seed_path.is_absolute():
            seed_path = BASE_DIR / seed_path
        container.seed_data_loader().load_file(seed_path)

    sweeper = container.expiry_sweeper()
    if config.EXPIRE_SWEEP_ENABLED:
        sweeper.start()

    Logger.base.info(
        f'✅ [Ferry Service] Ready (ledger={config.LEG_LEDGER_BACKEND}, '
        f'store={config.RESERVATION_STORE})'
    )

    yield

    Logger.base.info('🛑 [Ferry Service] Shutting down...')
    sweeper.stop()

    if config.RESERVATION_STORE == 'sql':
        kvrocks_client.disconnect()
        container.database().dispose()

    tracing.shutdown()
    Logger.base.info('📊 [Ferry Service] Tracing shutdown complete')

    container.unwire()
    cleanup()
    Logger.base.info('👋 [Ferry Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
