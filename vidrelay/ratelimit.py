import math
import threading
import time
from dataclasses import dataclass

RATE_LIMIT_WINDOW_MS = 60 * 1000
RATE_LIMIT_MAX_REQUESTS = 10
# Expired records are only swept once the store grows past this
SWEEP_THRESHOLD = 1000


@dataclass
class ClientRateRecord:
    count: int
    window_reset_at: int


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in_ms: int

    @property
    def reset_in_seconds(self):
        return math.ceil(self.reset_in_ms / 1000)


class RateLimitStore:
    """Where rate records live. Swap in a shared cache for multi-instance deployments."""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, record):
        raise NotImplementedError

    def sweep(self, now_ms):
        """Drop every record whose window closed before now_ms."""
        raise NotImplementedError

    def __len__(self):
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def get(self, key):
        return self._records.get(key)

    def set(self, key, record):
        with self._lock:
            self._records[key] = record

    def sweep(self, now_ms):
        with self._lock:
            snapshot = list(self._records.items())
            expired = [k for k, r in snapshot if now_ms > r.window_reset_at]
            for key in expired:
                self._records.pop(key, None)
        return len(expired)

    def __len__(self):
        return len(self._records)


class RateLimiter:
    """Fixed-window request counter per client."""

    def __init__(self, max_requests=RATE_LIMIT_MAX_REQUESTS, window_ms=RATE_LIMIT_WINDOW_MS,
                 store=None, clock=time.time, sweep_threshold=SWEEP_THRESHOLD):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.store = store if store is not None else MemoryRateLimitStore()
        self.clock = clock
        self.sweep_threshold = sweep_threshold

    def _now_ms(self):
        return int(self.clock() * 1000)

    def check(self, client_id):
        now = self._now_ms()

        if len(self.store) > self.sweep_threshold:
            self.store.sweep(now)

        record = self.store.get(client_id)
        if record is None or now > record.window_reset_at:
            self.store.set(client_id, ClientRateRecord(count=1, window_reset_at=now + self.window_ms))
            return RateLimitResult(True, self.max_requests - 1, self.window_ms)

        if record.count >= self.max_requests:
            return RateLimitResult(False, 0, record.window_reset_at - now)

        record.count += 1
        self.store.set(client_id, record)
        return RateLimitResult(True, self.max_requests - record.count, record.window_reset_at - now)
