"""Per-client fixed window request rate limiting."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Final

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS: Final[int] = 10
DEFAULT_WINDOW_SECONDS: Final[float] = 60.0


@dataclass(slots=True)
class ClientWindow:
    """Admission count for one client within its current window."""

    client_key: str
    count: int
    window_reset_at: float


class FixedWindowRateLimiter:
    """Admit at most ``max_requests`` per client in each fixed window.

    Windows start at a client's first admitted request and are reset lazily on
    the next access after they expire. Entries for idle clients are never
    evicted, so memory grows with the number of distinct client keys.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, ClientWindow] = {}
        self._lock = threading.Lock()

    def check_and_record(self, client_key: str) -> bool:
        """Return ``True`` and count the request if *client_key* has quota left."""

        with self._lock:
            now = self._clock()
            window = self._windows.get(client_key)
            if window is None or now >= window.window_reset_at:
                self._windows[client_key] = ClientWindow(
                    client_key=client_key,
                    count=1,
                    window_reset_at=now + self.window_seconds,
                )
                return True
            if window.count < self.max_requests:
                window.count += 1
                return True

        LOGGER.warning("Rate limit exceeded for client %s", client_key)
        return False

    def retry_after(self, client_key: str) -> float:
        """Seconds until *client_key*'s current window resets (0 when none is active)."""

        with self._lock:
            window = self._windows.get(client_key)
            if window is None:
                return 0.0
            return max(0.0, window.window_reset_at - self._clock())

    def snapshot(self, client_key: str) -> ClientWindow | None:
        with self._lock:
            window = self._windows.get(client_key)
            if window is None:
                return None
            return ClientWindow(window.client_key, window.count, window.window_reset_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


__all__ = [
    "ClientWindow",
    "DEFAULT_MAX_REQUESTS",
    "DEFAULT_WINDOW_SECONDS",
    "FixedWindowRateLimiter",
]
