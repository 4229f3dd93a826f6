"""
Distributed Lock using Kvrocks (Redis)

Exclusive lock per key shared by every worker process, built on SET NX PX.
Release runs a Lua script so a holder only ever deletes its own lock.

Threads of one process first queue on an in-process lock for the same key,
so at most one thread per process polls Kvrocks for a given key.
"""

from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
import time
from typing import Optional
from uuid import uuid4

from redis import Redis

from src.platform.concurrency.i_keyed_lock import IKeyedLock
from src.platform.concurrency.keyed_lock_arena import KeyedLockArena
from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ServiceUnavailableError
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client


# Delete the key only while it still carries our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockAcquireTimeout(ServiceUnavailableError):
    def __init__(self, key: str, waited_seconds: float) -> None:
        super().__init__(f'Could not acquire lock {key} within {waited_seconds:.2f}s')
        self.key = key


class DistributedLock(IKeyedLock):
    def __init__(
        self,
        *,
        name: str,
        ttl_seconds: float = settings.LOCK_TTL_SECONDS,
        wait_timeout_seconds: float = settings.LOCK_WAIT_TIMEOUT_SECONDS,
        retry_interval_seconds: float = settings.LOCK_RETRY_INTERVAL_SECONDS,
        client_provider: Callable[[], Redis] = kvrocks_client.get_client,
    ) -> None:
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.wait_timeout_seconds = wait_timeout_seconds
        self.retry_interval_seconds = retry_interval_seconds
        self._client_provider = client_provider
        self._local = KeyedLockArena(name=name)

    def lock_key(self, key: Hashable) -> str:
        return f'lock:{self.name}:{key}'

    def acquire_lock(self, *, key: str, ttl_ms: int) -> Optional[str]:
        """
        Try once to take the lock

        Returns:
            The ownership token when acquired, None when another holder has it
        """
        token = str(uuid4())
        # SET key token NX PX ttl: only set if absent, expire after ttl
        if self._client_provider().set(key, token, nx=True, px=ttl_ms):
            Logger.base.debug(f'🔒 [LOCK] Acquired lock: {key} (ttl={ttl_ms}ms)')
            return token
        return None

    def release_lock(self, *, key: str, token: str) -> bool:
        result = self._client_provider().eval(RELEASE_SCRIPT, 1, key, token)  # type: ignore
        if result:
            Logger.base.debug(f'🔓 [LOCK] Released lock: {key}')
            return True
        Logger.base.error(
            f'⚠️ [LOCK] {key} expired before release (held longer than {self.ttl_seconds}s)'
        )
        return False

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """
        Usage:
            with trip_locks.hold(trip_id):
                ledger.reserve(...)

        Raises:
            LockAcquireTimeout: another holder kept the key past LOCK_WAIT_TIMEOUT_SECONDS
        """
        lock_key = self.lock_key(key)
        with self._local.hold(key):
            token = self._acquire(lock_key)
            try:
                yield
            finally:
                self.release_lock(key=lock_key, token=token)

    def _acquire(self, lock_key: str) -> str:
        ttl_ms = int(self.ttl_seconds * 1000)
        started = time.monotonic()
        while True:
            token = self.acquire_lock(key=lock_key, ttl_ms=ttl_ms)
            if token is not None:
                return token
            waited = time.monotonic() - started
            if waited >= self.wait_timeout_seconds:
                Logger.base.warning(f'⏳ [LOCK] Gave up on {lock_key} after {waited:.2f}s')
                raise LockAcquireTimeout(lock_key, waited)
            time.sleep(self.retry_interval_seconds)

    def __repr__(self) -> str:
        return f'DistributedLock(name={self.name!r}, ttl={self.ttl_seconds}s)'
