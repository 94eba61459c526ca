"""Request and thread counters for a WSGI application."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any

SAMPLE_EVERY = 100


class Metrics:
    """Counts handled requests and samples the thread count every 100 requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._threads = 0

    def wrap(self, app: Callable[..., Iterable[bytes]]) -> Callable[..., Iterable[bytes]]:
        """Return ``app`` wrapped so that every request is counted."""

        def counted(environ: dict[str, Any], start_response: Callable[..., Any]):
            result = app(environ, start_response)
            with self._lock:
                self._requests += 1
                if self._requests % SAMPLE_EVERY == 0:
                    self._threads = threading.active_count()
            return result

        return counted

    def snapshot(self) -> dict[str, int]:
        """Return the current counter values."""
        with self._lock:
            return {"goroutines": self._threads, "requests": self._requests}