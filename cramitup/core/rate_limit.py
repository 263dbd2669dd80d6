import time
from collections import deque
from typing import Deque, Dict, Optional


class RateLimiter:
    """Sliding-window request counter keyed by client address."""

    def __init__(self, max_requests: int = 30, window_seconds: int = 15 * 60, message: str = ""):
        self.max = max_requests
        self.window = window_seconds
        self.message = message
        self.buckets: Dict[str, Deque[float]] = {}

    def _prune(self, key: str, now: float) -> Optional[Deque[float]]:
        bucket = self.buckets.get(key)
        if bucket is None:
            return None
        # drop old
        while bucket and now - bucket[0] > self.window:
            bucket.popleft()
        if not bucket:
            del self.buckets[key]
            return None
        return bucket

    def allow(self, key: str) -> bool:
        now = time.time()
        bucket = self._prune(key, now)
        if bucket is None:
            bucket = self.buckets[key] = deque()
        if len(bucket) >= self.max:
            return False
        bucket.append(now)
        return True

    def is_blocked(self, key: str) -> bool:
        """True when the key has used up its window, without counting a hit."""
        bucket = self._prune(key, time.time())
        return bucket is not None and len(bucket) >= self.max

    def retry_after(self, key: str) -> int:
        bucket = self._prune(key, time.time())
        if not bucket:
            return 0
        return max(0, int(self.window - (time.time() - bucket[0])) + 1)
