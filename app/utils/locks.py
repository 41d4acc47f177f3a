import threading
from collections import defaultdict
from contextlib import contextmanager


class KeyedLock:
    """Mutual exclusion per key (application id, check id) within one process"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = defaultdict(threading.Lock)
        self._holders = defaultdict(int)

    @contextmanager
    def hold(self, key):
        with self._guard:
            lock = self._locks[key]
            self._holders[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    # Nobody waiting on this key any more
                    del self._holders[key]
                    del self._locks[key]
