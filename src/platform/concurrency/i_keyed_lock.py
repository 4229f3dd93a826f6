from abc import ABC, abstractmethod
from collections.abc import Hashable
from contextlib import AbstractContextManager


class IKeyedLock(ABC):
    """Exclusive lock per key (trip id, reservation id)"""

    name: str

    @abstractmethod
    def hold(self, key: Hashable) -> AbstractContextManager[None]:
        """Block until the lock for ``key`` is acquired; release it when the block exits"""
        pass
