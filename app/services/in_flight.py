import threading
from contextlib import contextmanager


class InFlightError(Exception):
    def __init__(self, key: str):
        super().__init__(f"Request already in progress: {key}")
        self.key = key


class InFlightGuard:
    """
    At most one outstanding mutation per key.

    Keys are chosen by the caller: one per coupon slot, one per cart line,
    so edits to different lines still run side by side.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._held = set()

    def acquire(self, key: str) -> None:
        with self._lock:
            if key in self._held:
                raise InFlightError(key)
            self._held.add(key)

    def release(self, key: str) -> None:
        with self._lock:
            self._held.discard(key)

    def is_held(self, key: str) -> bool:
        with self._lock:
            return key in self._held

    @contextmanager
    def hold(self, key: str):
        self.acquire(key)
        try:
            yield
        finally:
            self.release(key)

    def clear(self) -> None:
        with self._lock:
            self._held.clear()


def coupon_slot_key(session_id: str) -> str:
    return f"coupon:{session_id}"


def cart_item_key(session_id: str, item_id: str) -> str:
    return f"cart-item:{session_id}:{item_id}"
