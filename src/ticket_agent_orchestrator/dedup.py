"""
Deduplication of inbound ticket events.

Ticketing webhooks may be delivered more than once; processed event ids are
remembered for a limited time so a retry does not start a second run.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Any

from .config import DEFAULT_DEDUP_MAX_EVENTS, DEFAULT_DEDUP_TTL_SECONDS


class EventDeduplicator:
    """TTL and size bounded record of processed event ids."""

    def __init__(self, ttl_seconds: float = DEFAULT_DEDUP_TTL_SECONDS, max_events: int = DEFAULT_DEDUP_MAX_EVENTS,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_events = max_events
        self._clock = clock
        self._events: "OrderedDict[str, float]" = OrderedDict()
        self._lock = threading.Lock()
        self._duplicates = 0

    def _evict(self, now: float) -> None:
        # Oldest first; insertion order equals processing order
        while self._events:
            processed_at = next(iter(self._events.values()))
            if now - processed_at < self.ttl_seconds and len(self._events) <= self.max_events:
                break
            self._events.popitem(last=False)

    def is_duplicate(self, event_id: str) -> bool:
        with self._lock:
            self._evict(self._clock())
            return event_id in self._events

    def mark_processed(self, event_id: str) -> None:
        with self._lock:
            now = self._clock()
            self._events.pop(event_id, None)
            self._events[event_id] = now
            self._evict(now)

    def check_and_mark(self, event_id: str) -> bool:
        """Atomically test an event id and record it. Returns True for duplicates."""
        with self._lock:
            now = self._clock()
            self._evict(now)
            if event_id in self._events:
                self._duplicates += 1
                return True
            self._events[event_id] = now
            self._evict(now)
            return False

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            self._evict(self._clock())
            return {
                "tracked_events": len(self._events),
                "duplicates_dropped": self._duplicates,
                "ttl_seconds": self.ttl_seconds,
                "max_events": self.max_events
            }
