"""Per-client request limiting for the HTTP boundary."""
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Allow ``max_requests`` per client in each fixed window.

    Tracked clients are bounded by ``max_clients``: when a new client would
    exceed it, expired windows are evicted first, then the least recently
    started window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 3600.0,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            max_requests: Requests allowed per client per window
            window_seconds: Window length in seconds
            max_clients: Maximum number of clients tracked at once
            clock: Monotonic time source, injectable for tests
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._windows: OrderedDict[str, _Window] = OrderedDict()
        self._lock = threading.Lock()

    def allow(self, client_id: str) -> bool:
        """Record one request for ``client_id`` and report whether it may proceed."""
        with self._lock:
            now = self._clock()
            window = self._windows.get(client_id)

            if window is None or now >= window.reset_at:
                if window is None:
                    self._make_room(now)
                else:
                    del self._windows[client_id]
                self._windows[client_id] = _Window(count=1, reset_at=now + self.window_seconds)
                return True

            if window.count >= self.max_requests:
                logger.warning(f"[RATE] {client_id} - Limit of {self.max_requests} requests reached")
                return False

            window.count += 1
            return True

    def retry_after(self, client_id: str) -> float:
        """Seconds until ``client_id`` may send again (0 if it may now)."""
        with self._lock:
            window = self._windows.get(client_id)
            if window is None or window.count < self.max_requests:
                return 0.0
            return max(0.0, window.reset_at - self._clock())

    def evict_expired(self) -> int:
        """Drop every window that has ended; returns how many were dropped."""
        with self._lock:
            return self._evict_expired(self._clock())

    def _evict_expired(self, now: float) -> int:
        expired = [client_id for client_id, window in self._windows.items() if now >= window.reset_at]
        for client_id in expired:
            del self._windows[client_id]
        return len(expired)

    def _make_room(self, now: float) -> None:
        if len(self._windows) < self.max_clients:
            return
        evicted = self._evict_expired(now)
        while len(self._windows) >= self.max_clients:
            self._windows.popitem(last=False)
            evicted += 1
        logger.debug(f"[RATE] Evicted {evicted} client window(s)")

    @property
    def stats(self) -> dict:
        """Get current limiter statistics."""
        with self._lock:
            return {
                "tracked_clients": len(self._windows),
                "max_clients": self.max_clients,
                "max_requests": self.max_requests,
                "window_seconds": self.window_seconds,
            }
