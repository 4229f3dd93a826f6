"""
FastAPI application factory

Shared by ``src.main`` and the HTTP tests: routers, CORS, exception
handlers, tracing instrumentation, ``/health`` and ``/metrics``. The caller
supplies the lifespan, which owns wiring and the expiry sweeper.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.ferry_booking.driving_adapter.http_controller.ferry_booking_controller import (
    reservation_router,
    trip_router,
)


SERVICE_NAME = 'ferry-booking-service'


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
) -> FastAPI:
    """
    Args:
        lifespan: Startup/shutdown context manager
        title_suffix: Appended to the OpenAPI title, e.g. " (Test)"
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description='Multi-stop ferry segment booking and seat inventory',
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Instrument before routes are mounted
    TracingConfig(service_name=SERVICE_NAME).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['GET', 'POST'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    app.include_router(trip_router, prefix='/api/trips', tags=['trip'])
    app.include_router(reservation_router, prefix='/api/reservations', tags=['reservation'])

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        return {'status': 'healthy', 'service': SERVICE_NAME}

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus scrape endpoint"""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
