"""Deduplicating work queue with per-key exclusivity and delayed adds."""

import heapq
import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Hashable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class WorkQueue:
    """
    Thread-safe queue of keys awaiting reconciliation.

    A key is either pending (queued), in processing (handed out by `get`
    and not yet `done`), or both when it was added again while being
    processed. In the last case `done` puts it back on the queue, so a
    key is never handed to two workers at once.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the queue.

        Args:
            clock: Monotonic time source used for delayed adds
        """
        self._clock = clock
        self._queue: Deque[Hashable] = deque()
        self._dirty: Set[Hashable] = set()
        self._processing: Set[Hashable] = set()
        self._waiting: List[Tuple[float, int, Hashable]] = []
        self._deadlines: Dict[Hashable, float] = {}
        self._counter = 0
        self._shutting_down = False
        self._cond = threading.Condition(threading.RLock())

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    def add(self, key: Hashable) -> None:
        """Queue a key, collapsing it with an identical pending key."""
        with self._cond:
            self._add(key)

    def _add(self, key: Hashable) -> None:
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.append(key)
        self._cond.notify()

    def add_after(self, key: Hashable, seconds: float) -> None:
        """
        Queue a key once `seconds` have elapsed.

        If the key is already waiting, the earlier deadline wins.
        """
        with self._cond:
            if self._shutting_down:
                return
            if seconds <= 0:
                self._add(key)
                return

            ready_at = self._clock() + seconds
            current = self._deadlines.get(key)
            if current is not None and current <= ready_at:
                return

            self._deadlines[key] = ready_at
            self._counter += 1
            heapq.heappush(self._waiting, (ready_at, self._counter, key))
            # A waiting get() may need to wake earlier than planned
            self._cond.notify_all()

    def scheduled(self, key: Hashable) -> Optional[float]:
        """Return the clock time at which a delayed key becomes ready."""
        with self._cond:
            return self._deadlines.get(key)

    def is_processing(self, key: Hashable) -> bool:
        with self._cond:
            return key in self._processing

    def _promote_ready(self) -> Optional[float]:
        """Move due delayed keys onto the queue; return seconds to the next."""
        now = self._clock()
        while self._waiting:
            ready_at, _, key = self._waiting[0]
            if self._deadlines.get(key) != ready_at:
                # Superseded by an earlier deadline
                heapq.heappop(self._waiting)
                continue
            if ready_at > now:
                return ready_at - now
            heapq.heappop(self._waiting)
            del self._deadlines[key]
            self._add(key)
        return None

    def get(self, timeout: Optional[float] = None) -> Optional[Hashable]:
        """
        Take the next key and mark it as in processing.

        Args:
            timeout: Maximum seconds to block (None blocks indefinitely)

        Returns:
            The key, or None on timeout or after shutdown
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._cond:
            while True:
                next_ready = self._promote_ready()

                if self._queue:
                    key = self._queue.popleft()
                    self._processing.add(key)
                    self._dirty.discard(key)
                    return key

                if self._shutting_down:
                    return None

                wait = next_ready
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    wait = remaining if wait is None else min(wait, remaining)

                self._cond.wait(wait)

    def done(self, key: Hashable) -> None:
        """Finish processing a key, re-queueing it if it was added meanwhile."""
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                self._cond.notify()

    def shutdown(self) -> None:
        """Stop accepting keys and release every blocked `get`."""
        with self._cond:
            self._shutting_down = True
            self._waiting.clear()
            self._deadlines.clear()
            self._cond.notify_all()
        logger.debug("Work queue shut down")

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down
