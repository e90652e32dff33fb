from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from gigqueue.domain.review.locks import KeyedLocks


def test_locks_are_dropped_once_no_caller_holds_them() -> None:
    locks = KeyedLocks()

    with locks.holding([("venue", "the snug stoke"), ("artist", "band a")]):
        assert len(locks) == 2
        with locks.holding([("venue", "the snug stoke")]):
            assert len(locks) == 2
        assert len(locks) == 2

    assert len(locks) == 0


def test_lock_is_dropped_when_the_body_raises() -> None:
    locks = KeyedLocks()

    try:
        with locks.holding([("venue", "the snug stoke")]):
            raise RuntimeError("apply failed")
    except RuntimeError:
        pass

    assert len(locks) == 0


def test_holders_of_the_same_key_run_one_at_a_time() -> None:
    locks = KeyedLocks()
    guard = threading.Lock()
    active: list[int] = []
    overlaps: list[int] = []

    def work(index: int) -> None:
        with locks.holding([("venue", "the snug stoke")]):
            with guard:
                active.append(index)
                overlaps.append(len(active))
            time.sleep(0.005)
            with guard:
                active.remove(index)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(work, range(8)))

    assert max(overlaps) == 1
    assert len(locks) == 0
