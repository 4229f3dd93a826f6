"""
OpenTelemetry tracing

Use cases open their own spans (``use_case.hold``, ``use_case.expire_sweep``,
...) through ``trace.get_tracer(__name__)``; this module installs the
provider those tracers report to and instruments FastAPI, SQLAlchemy and the
Kvrocks lock client.
Without an OTLP endpoint or console export the spans are simply dropped.
"""

import os
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from src.platform.config.core_setting import settings


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name='ferry-booking-service')
        tracing.setup()
        ...
        tracing.shutdown()
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool | None = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        if enable_console is None:
            enable_console = os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        self.enable_console = enable_console
        self._provider: TracerProvider | None = None

    def _resource(self) -> Resource:
        return Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                'deployment.environment': os.getenv('DEPLOY_ENV', 'local_dev'),
                'ferry.ledger_backend': settings.LEG_LEDGER_BACKEND,
                'ferry.reservation_store': settings.RESERVATION_STORE,
            }
        )

    def setup(self) -> None:
        """Install the global tracer provider; call once at startup"""
        # Error traces are kept by tail sampling in the collector, not here
        self._provider = TracerProvider(resource=self._resource(), sampler=ALWAYS_ON)
        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: FastAPI, excluded_urls: str = 'health,metrics') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        SQLAlchemyInstrumentor().instrument(engine=engine)

    def instrument_redis(self) -> None:
        RedisInstrumentor().instrument()

    def shutdown(self) -> None:
        """Flush pending spans"""
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
