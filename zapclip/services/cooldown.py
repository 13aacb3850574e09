"""Per-broadcaster cooldown gate held in process memory."""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict


class CooldownGate:
    """Grant at most one clip request per broadcaster per cooldown window.

    Entries live only while their window is active. The check and the grant
    happen under one lock, so concurrent callers for the same broadcaster can
    never both be admitted.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, broadcaster_id: str, window_seconds: float) -> bool:
        with self._lock:
            now = self._clock()
            expires_at = self._expires_at.get(broadcaster_id)
            if expires_at is not None and expires_at > now:
                return False
            self._expires_at[broadcaster_id] = now + window_seconds
            return True

    def remaining(self, broadcaster_id: str) -> int:
        """Whole seconds left on the active window, rounded up; 0 when free."""
        with self._lock:
            expires_at = self._expires_at.get(broadcaster_id)
            if expires_at is None:
                return 0
            left = expires_at - self._clock()
            if left <= 0:
                del self._expires_at[broadcaster_id]
                return 0
            return math.ceil(left)


__all__ = ["CooldownGate"]
