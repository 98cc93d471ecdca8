"""
Opt-in throttle for GET /check_callback, keyed by client address.
Each key keeps the monotonic times of its recent polls; keys with no polls left in the
window are dropped so idle addresses do not accumulate.
"""
import math
import threading
import time
from collections import deque

_recent: dict[str, deque[float]] = {}
_lock = threading.Lock()
WINDOW_SECONDS = 60


def _prune(key: str, now: float, window_seconds: float) -> deque[float] | None:
    # caller holds _lock
    polls = _recent.get(key)
    if polls is None:
        return None
    while polls and polls[0] <= now - window_seconds:
        polls.popleft()
    if not polls:
        del _recent[key]
        return None
    return polls


def check_and_consume(key: str, limit: int, window_seconds: float = WINDOW_SECONDS) -> tuple[bool, int | None]:
    """
    Record one poll for key unless it already made `limit` polls within the window.
    Returns (allowed, retry_after_seconds); limit <= 0 means unlimited and records nothing.
    """
    if limit <= 0:
        return True, None
    now = time.monotonic()
    with _lock:
        polls = _prune(key, now, window_seconds)
        if polls is not None and len(polls) >= limit:
            return False, max(1, math.ceil(polls[0] + window_seconds - now))
        _recent.setdefault(key, deque()).append(now)
        return True, None


def tracked_keys() -> int:
    """Number of addresses currently holding polls inside the window (after pruning all keys)."""
    now = time.monotonic()
    with _lock:
        for key in list(_recent):
            _prune(key, now, WINDOW_SECONDS)
        return len(_recent)


def reset() -> None:
    with _lock:
        _recent.clear()
