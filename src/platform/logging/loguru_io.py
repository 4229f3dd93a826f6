"""
Logger facade

``Logger.base`` is the bound loguru logger for free-form records.
``Logger.io`` decorates use cases, repositories and endpoints: arguments and
return values are logged at DEBUG, and an exception is logged exactly once
on its way up (domain errors at ERROR, anything else with a traceback).

The booking engine runs on worker threads, so per-call state (call target,
chain start time) is kept in a fresh dict per invocation, never on the
decorator instance.
"""

from functools import wraps
import time
import types
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io_config import ExtraField, call_depth_var, custom_logger
from src.platform.logging.loguru_io_utils import (
    build_call_target_func_path,
    get_chain_start_time,
    reset_call_depth,
    should_mask_keyword,
    truncate_content,
)

_F = TypeVar('_F', bound=Callable[..., Any])


class LoguruIO:
    def __init__(
        self, custom_logger: 'LoguruLogger', *, reraise: bool = True, truncate: bool = True
    ) -> None:
        self._custom_logger = custom_logger
        self.reraise = reraise
        self.truncate = truncate
        self.call_target = ''
        self.depth = 2  # Skip the wrapper frame

    def _bound(self, extra: dict[str, Any]) -> 'LoguruLogger':
        return self._custom_logger.bind(**extra).opt(depth=self.depth)

    def enter(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
        call_depth_var.set(call_depth_var.get() + 1)
        extra = {
            ExtraField.CALL_TARGET: self.call_target,
            ExtraField.CHAIN_START_TIME: get_chain_start_time(),
        }
        if settings.DEBUG:  # Formatting is skipped when DEBUG records are dropped anyway
            self._bound(extra).debug(
                f'args: {self.mask_sensitive(args)}, kwargs: {self.mask_sensitive(kwargs)}'
            )
        return extra

    def leave(self, extra: dict[str, Any], return_value: Any, started: float) -> None:
        if settings.DEBUG:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._bound(extra).debug(
                f'return ({elapsed_ms:.2f}ms): {self.mask_sensitive(return_value)}'
            )

    def fail(self, extra: dict[str, Any], e: Exception) -> None:
        # Nested decorated calls see the same exception; only the innermost logs it
        if getattr(e, '_has_logged', False):
            return
        try:
            e._has_logged = True  # type: ignore[attr-defined]
        except AttributeError:
            pass
        if isinstance(e, CustomBaseError):
            self._bound(extra).error(f'{type(e).__name__}[{e.status_code}]: {e}')
        else:
            self._bound(extra).exception(f'{type(e).__name__}: {e}')

    def mask_sensitive(self, data: Any) -> Any:
        if isinstance(data, dict):
            masked: Any = {
                key: self.mask_sensitive(should_mask_keyword(key, value))
                for key, value in data.items()
            }
        elif isinstance(data, list | tuple):
            masked = type(data)(self.mask_sensitive(item) for item in data)
        else:
            masked = data
        return truncate_content(masked) if self.truncate else masked

    def _hide_from_traceback(self, func: Callable[..., Any]) -> Callable[..., Any]:
        func.__code__ = func.__code__.replace(  # type: ignore[attr-defined]
            co_filename=cast(types.FunctionType, self._custom_logger.catch).__code__.co_filename
        )
        return func

    def __call__(self, func: _F) -> _F:
        self.call_target = build_call_target_func_path(func)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            extra = self.enter(args, kwargs)
            try:
                return_value = func(*args, **kwargs)
            except Exception as e:
                self.fail(extra, e)
                if self.reraise:
                    raise
                return None
            else:
                self.leave(extra, return_value, started)
                return return_value
            finally:
                reset_call_depth()

        return cast(_F, self._hide_from_traceback(wrapper))


_P = ParamSpec('_P')
_T = TypeVar('_T')


class Logger:
    base = custom_logger

    @overload
    @staticmethod
    def io(func: Callable[_P, _T]) -> Callable[_P, _T]: ...

    @overload
    @staticmethod
    def io(func: None = ..., *, reraise: bool = ..., truncate: bool = ...) -> LoguruIO: ...

    @staticmethod
    def io(
        func: Callable[_P, _T] | None = None, *, reraise: bool = True, truncate: bool = True
    ) -> Callable[_P, _T] | LoguruIO:
        decorator = LoguruIO(custom_logger=custom_logger, reraise=reraise, truncate=truncate)
        return decorator(func) if func else decorator
