from concurrent.futures import ThreadPoolExecutor
import threading
import time

from src.platform.concurrency.keyed_lock_arena import KeyedLockArena


class TestKeyedLockArena:
    def test_entries_are_dropped_after_release(self) -> None:
        arena = KeyedLockArena(name='trip')

        with arena.hold('T1'):
            assert arena.active_keys() == 1
        assert arena.active_keys() == 0

    def test_different_keys_do_not_block_each_other(self) -> None:
        arena = KeyedLockArena(name='trip')

        with arena.hold('T1'), arena.hold('T2'):
            assert arena.active_keys() == 2

    def test_same_key_is_mutually_exclusive(self) -> None:
        arena = KeyedLockArena(name='trip')
        inside = 0
        max_inside = 0
        counter_lock = threading.Lock()

        def critical_section() -> None:
            nonlocal inside, max_inside
            with arena.hold('T1'):
                with counter_lock:
                    inside += 1
                    max_inside = max(max_inside, inside)
                time.sleep(0.001)
                with counter_lock:
                    inside -= 1

        with ThreadPoolExecutor(max_workers=8) as executor:
            for future in [executor.submit(critical_section) for _ in range(40)]:
                future.result()

        assert max_inside == 1
        assert arena.active_keys() == 0

    def test_lock_is_released_when_the_block_raises(self) -> None:
        arena = KeyedLockArena(name='reservation')

        try:
            with arena.hold('R1'):
                raise RuntimeError('boom')
        except RuntimeError:
            pass

        assert arena.active_keys() == 0
        with arena.hold('R1'):
            pass
