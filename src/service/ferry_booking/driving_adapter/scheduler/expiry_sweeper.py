"""
Expiry Sweeper

Background thread that calls ``expire_sweep_all`` every interval so
abandoned holds give their seats back. ``stop`` wakes the thread
immediately instead of waiting out the interval.
"""

import threading
from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.service.ferry_booking.app.command.reservation_manager import ReservationManager


class ExpirySweeper:
    def __init__(self, *, reservation_manager: ReservationManager, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError('interval_seconds must be positive')
        self.reservation_manager = reservation_manager
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='expiry-sweeper', daemon=True)
        self._thread.start()
        Logger.base.info(f'⏰ [SWEEPER] Started, interval={self.interval_seconds}s')

    def stop(self, *, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        Logger.base.info('🛑 [SWEEPER] Stopped')

    def run_once(self) -> dict[str, int]:
        try:
            return self.reservation_manager.expire_sweep_all()
        except Exception as e:
            # A failing pass must not kill the thread; the next tick retries
            Logger.base.exception(f'❌ [SWEEPER] Sweep pass failed: {e}')
            return {}

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
