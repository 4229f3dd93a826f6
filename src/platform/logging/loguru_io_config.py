"""
Loguru sink configuration

Imported once for its side effects: replaces loguru's default sink with the
IO format, adds rotating files when DEBUG is on, sends CRITICAL records
(ledger invariant violations) to their own alert file, and routes stdlib
``logging`` through loguru.
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context, get_thread_label


SENSITIVE_KEYWORDS = {
    'password',
    'token',
    'card_number',
    'payment_reference',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    THREAD = 'thread_label'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


def _default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.THREAD: '',
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
    }


def _stamp_thread(record: Any) -> None:
    record['extra'][ExtraField.THREAD] = get_thread_label()


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        f'<m>{{extra[{ExtraField.THREAD}]:<14.14}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


def _configure_sinks() -> 'LoguruLogger':
    loguru_logger.remove()
    bound = loguru_logger.bind(**_default_extra()).patch(_stamp_thread)
    min_level = 'DEBUG' if settings.DEBUG else 'INFO'

    # enqueue=True serialises writes from request workers and the sweeper thread
    bound.add(sys.stdout, format=io_log_format, level=min_level, enqueue=True)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    bound.add(
        LOG_DIR / 'ledger_alerts.log',
        format=io_log_format,
        level='CRITICAL',
        rotation='10 MB',
        retention='30 days',
        enqueue=True,
    )

    if settings.DEBUG:
        hour = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
        bound.add(
            LOG_DIR / f'{hour}.log',
            format=io_log_format,
            level=min_level,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
        )
    return bound


custom_logger = _configure_sinks()


class InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records (uvicorn, sqlalchemy, ...) into loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        # sqlalchemy echoes every statement at INFO; keep it out unless DEBUG
        if record.name.startswith('sqlalchemy') and not settings.DEBUG:
            return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        custom_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
