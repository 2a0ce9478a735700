#!/usr/bin/env python3
"""Utility functions for github-to-gitea."""

import threading
import time
from collections import deque
from typing import Deque, Optional

import requests

from logging_utils import Logger


class RateLimiter:
    """Sliding one-minute window that paces calls to a single API."""

    WINDOW_S = 60.0

    def __init__(self, label: str, max_requests_per_minute: int) -> None:
        if max_requests_per_minute < 1:
            raise ValueError("max_requests_per_minute must be at least 1")
        self.label = label
        self.max_requests = max_requests_per_minute
        self._sent: Deque[float] = deque()
        self._lock = threading.Lock()

    def wait_if_needed(self) -> float:
        """Block until another request fits in the window; return seconds waited."""
        waited = 0.0
        with self._lock:
            now = time.monotonic()
            self._expire(now)
            if len(self._sent) >= self.max_requests:
                delay = self._sent[0] + self.WINDOW_S - now
                if delay > 0:
                    Logger.warn(
                        f"{self.label}: {self.max_requests} requests/min reached, "
                        f"pausing {delay:.1f}s"
                    )
                    time.sleep(delay)
                    waited = delay
                now = time.monotonic()
                self._expire(now)
            self._sent.append(now)
        return waited

    def _expire(self, now: float) -> None:
        while self._sent and self._sent[0] <= now - self.WINDOW_S:
            self._sent.popleft()


def response_detail(response: requests.Response, limit: int = 500) -> str:
    """Return a short, single-line excerpt of a response body for diagnostics."""
    text = (response.text or "").strip().replace("\n", " ")
    if len(text) > limit:
        text = text[:limit] + "..."
    return text or (response.reason or "")


def truncate(text: Optional[str], limit: int = 500) -> str:
    """Collapse whitespace and cap the length of process output."""
    collapsed = " ".join((text or "").split())
    if len(collapsed) > limit:
        return collapsed[:limit] + "..."
    return collapsed
