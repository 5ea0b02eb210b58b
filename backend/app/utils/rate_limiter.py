"""
Simple fixed-window rate limiter, keyed per client IP and route.
Counts are per process; it throttles brute-force attempts on PIN and OTP
endpoints and is not a security boundary on its own. Only short-lived
counters live here; nothing that must outlive a window is kept in memory.
"""
import logging
import threading
import time
from typing import Dict, Tuple

from fastapi import Request, HTTPException

logger = logging.getLogger(__name__)

# {(ip, path): (window_start, count, window)}
_rate_limit_store: Dict[Tuple[str, str], Tuple[float, int, int]] = {}
_lock = threading.Lock()

# Seconds between sweeps of expired windows
SWEEP_INTERVAL = 60
_last_sweep = 0.0


def _evict_expired(now: float) -> None:
    """Drop counters whose window has ended. Caller holds ``_lock``."""
    global _last_sweep
    if now - _last_sweep < SWEEP_INTERVAL:
        return
    expired = [key for key, (start, _, window) in _rate_limit_store.items() if now - start > window]
    for key in expired:
        del _rate_limit_store[key]
    _last_sweep = now


def rate_limit(requests: int, window: int):
    """
    Dependency for rate limiting.
    Example: Depends(rate_limit(requests=5, window=60))
    """
    def limiter(request: Request):
        ip = request.client.host if request.client else "unknown"
        key = (ip, request.url.path)
        now = time.time()

        with _lock:
            _evict_expired(now)
            last_ts, count, _ = _rate_limit_store.get(key, (now, 0, window))

            # Reset window if expired
            if now - last_ts > window:
                last_ts, count = now, 0

            if count >= requests:
                logger.warning("Rate limit exceeded for %s on %s", ip, request.url.path)
                raise HTTPException(
                    status_code=429,
                    detail=f"Rate limit exceeded. Try again in {int(window - (now - last_ts))} seconds.",
                )

            _rate_limit_store[key] = (last_ts, count + 1, window)
        return True

    return limiter


def reset_rate_limits():
    """Forget all counters."""
    global _last_sweep
    with _lock:
        _rate_limit_store.clear()
        _last_sweep = 0.0
