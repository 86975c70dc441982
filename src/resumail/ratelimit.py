# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

WINDOW_SECONDS = 15 * 60
API_LIMIT = 30
LOGIN_LIMIT = 10


@dataclass
class _Window:
    start: float
    count: int


class FixedWindowLimiter:
    """In-memory fixed-window counter keyed by client identifier."""

    def __init__(self, limit: int, window_seconds: int = WINDOW_SECONDS, *, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, _Window] = {}

    def hit(self, identifier: str) -> bool:
        """Count one request. False once the limit is exceeded for the window."""
        key = hashlib.sha256((identifier or "unknown").encode("utf-8")).hexdigest()
        now = self._clock()
        with self._lock:
            w = self._windows.get(key)
            if w is None or now - w.start >= self.window_seconds:
                self._windows[key] = _Window(start=now, count=1)
                self._prune(now)
                return True
            if w.count >= self.limit:
                return False
            w.count += 1
            return True

    def _prune(self, now: float) -> None:
        stale = [k for k, w in self._windows.items() if now - w.start >= self.window_seconds]
        for k in stale:
            del self._windows[k]
