"""Per-domain request throttle: fixed delay plus random jitter."""

from __future__ import annotations

import random
import time
from threading import Lock
from typing import Callable, Dict
from urllib.parse import urlparse


class DomainThrottle:
    """Space out requests to the same host by ``delay + uniform(0, jitter)`` seconds.

    The gap runs from the later of the reserved slot and the last ``release``.
    """

    def __init__(
        self,
        delay: float = 2.0,
        jitter: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.delay = max(0.0, delay)
        self.jitter = max(0.0, jitter)
        self._clock = clock
        self._sleep = sleep
        self._last_request: Dict[str, float] = {}
        self._lock = Lock()

    def wait(self, url: str) -> float:
        """Block until ``url``'s host may be requested again; return the pause taken."""

        host = (urlparse(url).hostname or "").lower()
        with self._lock:
            now = self._clock()
            last = self._last_request.get(host)
            pause = 0.0
            if last is not None:
                gap = self.delay + (random.uniform(0.0, self.jitter) if self.jitter else 0.0)
                pause = max(0.0, last + gap - now)
            # Reserve the slot before sleeping so concurrent callers queue up behind it
            self._last_request[host] = now + pause
        if pause:
            self._sleep(pause)
        return pause

    def release(self, url: str) -> None:
        """Restamp ``url``'s host once its response has arrived."""

        host = (urlparse(url).hostname or "").lower()
        with self._lock:
            now = self._clock()
            self._last_request[host] = max(now, self._last_request.get(host, now))

    def reset(self) -> None:
        with self._lock:
            self._last_request.clear()


__all__ = ["DomainThrottle"]
