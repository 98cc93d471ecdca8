"""
In-memory store for completed logins waiting to be picked up (correlation token -> access token).
Written by /redirected/ after the code exchange, read by /check_callback.
Entries expire after a fixed TTL; expired entries are swept lazily on every create and lookup.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from acorn_login.config import HANDOFF_CONSUME_ON_READ, HANDOFF_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingHandoff:
    correlation_token: str
    access_token: str = field(repr=False)
    expires_at: float

    def expired(self, now: float) -> bool:
        return self.expires_at <= now


class HandoffStore:
    """
    Insertion-ordered list of pending handoffs guarded by a lock.
    Duplicate correlation tokens are allowed; lookups return the oldest match.
    """

    def __init__(
        self,
        ttl_seconds: float = HANDOFF_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        consume_on_read: bool = False,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.consume_on_read = consume_on_read
        self._clock = clock
        self._entries: list[PendingHandoff] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def create(self, correlation_token: str, access_token: str) -> PendingHandoff:
        """Store a handoff that expires ttl_seconds from now."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            handoff = PendingHandoff(
                correlation_token=correlation_token,
                access_token=access_token,
                expires_at=now + self.ttl_seconds,
            )
            self._entries.append(handoff)
            pending = len(self._entries)
        logger.info("Stored login handoff (now %d pending)", pending)
        return handoff

    def sweep_expired(self, now: float | None = None) -> int:
        """Drop entries whose expiry is at or before now. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock() if now is None else now)

    def find_by_correlation_token(self, correlation_token: str) -> str | None:
        """Access token of the oldest live handoff for correlation_token, or None."""
        with self._lock:
            self._sweep(self._clock())
            for i, handoff in enumerate(self._entries):
                if handoff.correlation_token == correlation_token:
                    if self.consume_on_read:
                        del self._entries[i]
                    return handoff.access_token
        return None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _sweep(self, now: float) -> int:
        # caller holds self._lock
        old_count = len(self._entries)
        self._entries[:] = [h for h in self._entries if not h.expired(now)]
        new_count = len(self._entries)
        if old_count != new_count:
            logger.info("Removed expired login handoffs: %d -> %d", old_count, new_count)
        return old_count - new_count


store = HandoffStore(consume_on_read=HANDOFF_CONSUME_ON_READ)
