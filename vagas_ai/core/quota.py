from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, NoReturn, Protocol

from vagas_ai.core.config import settings
from vagas_ai.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)

_MINUTE_MS = 60_000


@dataclass(frozen=True)
class QuotaPair:
    requests: int
    tokens: int


@dataclass(frozen=True)
class QuotaCheckResult:
    allowed: bool
    remaining: QuotaPair
    reset_time: QuotaPair
    limit: QuotaPair

    def retry_after_seconds(self, now_ms: int) -> int:
        waits = []
        if self.remaining.requests <= 0:
            waits.append(self.reset_time.requests - now_ms)
        if self.remaining.tokens <= 0:
            waits.append(self.reset_time.tokens - now_ms)
        if not waits:
            waits.append(self.reset_time.requests - now_ms)
        return max(0, -(-max(waits) // 1000))


class QuotaStorage(Protocol):
    def get_request_count(self, key: str, window_start: int) -> int: ...

    def increment_request(self, key: str, window_start: int, limit: int | None = None) -> int | None: ...

    def get_token_count(self, key: str, day_key: str) -> int: ...

    def increment_tokens(self, key: str, day_key: str, tokens: int) -> int: ...

    def clear(self) -> None: ...


class MemoryQuotaStorage:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: dict[tuple[str, int], int] = {}
        self._tokens: dict[tuple[str, str], int] = {}

    def _purge(self, window_start: int | None = None, day_key: str | None = None) -> None:
        if window_start is not None:
            for stale in [k for k in self._requests if k[1] < window_start]:
                del self._requests[stale]
        if day_key is not None:
            for stale in [k for k in self._tokens if k[1] < day_key]:
                del self._tokens[stale]

    def get_request_count(self, key: str, window_start: int) -> int:
        with self._lock:
            return self._requests.get((key, window_start), 0)

    def increment_request(self, key: str, window_start: int, limit: int | None = None) -> int | None:
        with self._lock:
            self._purge(window_start=window_start)
            value = self._requests.get((key, window_start), 0) + 1
            if limit is not None and value > limit:
                return None
            self._requests[(key, window_start)] = value
            return value

    def get_token_count(self, key: str, day_key: str) -> int:
        with self._lock:
            return self._tokens.get((key, day_key), 0)

    def increment_tokens(self, key: str, day_key: str, tokens: int) -> int:
        with self._lock:
            self._purge(day_key=day_key)
            value = self._tokens.get((key, day_key), 0) + tokens
            self._tokens[(key, day_key)] = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._requests.clear()
            self._tokens.clear()


class SqliteQuotaStorage:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quota_counters (
                    client_key TEXT NOT NULL,
                    bucket TEXT NOT NULL,
                    bucket_key TEXT NOT NULL,
                    value INTEGER NOT NULL,
                    PRIMARY KEY (client_key, bucket, bucket_key)
                );
                """
            )
            self._conn = conn
            return conn

    def _get(self, key: str, bucket: str, bucket_key: str) -> int:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute(
                """
                SELECT value FROM quota_counters
                WHERE client_key = ? AND bucket = ? AND bucket_key = ?
                """,
                (key, bucket, bucket_key),
            ).fetchone()
        return int(row[0]) if row else 0

    def _increment(
        self,
        key: str,
        bucket: str,
        bucket_key: str,
        amount: int,
        limit: int | None = None,
    ) -> int | None:
        conn = self._get_connection()
        with self._lock:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    "DELETE FROM quota_counters WHERE bucket = ? AND bucket_key < ?",
                    (bucket, bucket_key),
                )
                if limit is not None:
                    current = cursor.execute(
                        """
                        SELECT value FROM quota_counters
                        WHERE client_key = ? AND bucket = ? AND bucket_key = ?
                        """,
                        (key, bucket, bucket_key),
                    ).fetchone()
                    if (int(current[0]) if current else 0) + amount > limit:
                        conn.commit()
                        return None
                cursor.execute(
                    """
                    INSERT INTO quota_counters (client_key, bucket, bucket_key, value)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (client_key, bucket, bucket_key)
                    DO UPDATE SET value = value + excluded.value
                    """,
                    (key, bucket, bucket_key, amount),
                )
                row = cursor.execute(
                    """
                    SELECT value FROM quota_counters
                    WHERE client_key = ? AND bucket = ? AND bucket_key = ?
                    """,
                    (key, bucket, bucket_key),
                ).fetchone()
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return int(row[0])

    def get_request_count(self, key: str, window_start: int) -> int:
        return self._get(key, "requests", f"{window_start:015d}")

    def increment_request(self, key: str, window_start: int, limit: int | None = None) -> int | None:
        return self._increment(key, "requests", f"{window_start:015d}", 1, limit)

    def get_token_count(self, key: str, day_key: str) -> int:
        return self._get(key, "tokens", day_key)

    def increment_tokens(self, key: str, day_key: str, tokens: int) -> int:
        return self._increment(key, "tokens", day_key, tokens)

    def clear(self) -> None:
        conn = self._get_connection()
        with self._lock:
            conn.execute("DELETE FROM quota_counters")


def _window_start(now_ms: int) -> int:
    return (now_ms // _MINUTE_MS) * _MINUTE_MS


def _day_key(now_ms: int) -> str:
    return datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def _next_day_reset(now_ms: int) -> int:
    current = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    return int(midnight.timestamp() * 1000)


class QuotaTracker:
    """Per-key requests-per-minute and tokens-per-UTC-day budget."""

    def __init__(
        self,
        *,
        max_requests_per_min: int,
        max_tokens_per_day: int,
        storage: QuotaStorage | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests_per_min = max_requests_per_min
        self.max_tokens_per_day = max_tokens_per_day
        self._storage = storage or MemoryQuotaStorage()
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def check(self, key: str) -> QuotaCheckResult:
        now = self._now_ms()
        limit = QuotaPair(requests=self.max_requests_per_min, tokens=self.max_tokens_per_day)
        if not isinstance(key, str) or not key.strip():
            logger.warning("quota_check_invalid_key")
            return QuotaCheckResult(
                allowed=False,
                remaining=QuotaPair(requests=0, tokens=0),
                reset_time=QuotaPair(requests=now, tokens=now),
                limit=limit,
            )

        window_start = _window_start(now)
        request_count = self._storage.get_request_count(key, window_start)
        token_count = self._storage.get_token_count(key, _day_key(now))

        return QuotaCheckResult(
            allowed=request_count < self.max_requests_per_min and token_count < self.max_tokens_per_day,
            remaining=QuotaPair(
                requests=max(0, self.max_requests_per_min - request_count),
                tokens=max(0, self.max_tokens_per_day - token_count),
            ),
            reset_time=QuotaPair(requests=window_start + _MINUTE_MS, tokens=_next_day_reset(now)),
            limit=limit,
        )

    def consume_request(self, key: str) -> int:
        return self._storage.increment_request(key, _window_start(self._now_ms()))

    def consume_tokens(self, key: str, tokens: int) -> int:
        if tokens <= 0:
            return self._storage.get_token_count(key, _day_key(self._now_ms()))
        return self._storage.increment_tokens(key, _day_key(self._now_ms()), tokens)

    def ensure_allowed(self, key: str) -> QuotaCheckResult:
        result = self.check(key)
        if result.allowed:
            return result
        self._reject(result)

    def check_and_consume_request(self, key: str) -> QuotaCheckResult:
        """Reserve one request for ``key`` or raise ``RateLimitExceededError``.

        The request counter is tested and incremented in one storage step, so
        concurrent callers cannot both take the last slot of a window.
        """
        self.ensure_allowed(key)
        reserved = self._storage.increment_request(
            key, _window_start(self._now_ms()), self.max_requests_per_min
        )
        if reserved is None:
            self._reject(self.check(key))
        return self.check(key)

    def _reject(self, result: QuotaCheckResult) -> NoReturn:
        retry_after = result.retry_after_seconds(self._now_ms())
        if result.remaining.requests <= 0 and result.remaining.tokens <= 0:
            message = "Request and token limits exceeded"
        elif result.remaining.tokens <= 0:
            message = f"Daily token limit exceeded ({self.max_tokens_per_day} tokens/day)"
        else:
            message = f"Request rate limit exceeded ({self.max_requests_per_min} requests/minute)"
        logger.info("quota_exceeded retry_after=%s reason=%s", retry_after, message)
        raise RateLimitExceededError(retry_after, result, message)

    def clear(self) -> None:
        self._storage.clear()


@lru_cache(maxsize=1)
def get_quota_tracker() -> QuotaTracker:
    storage: QuotaStorage
    if settings.quota_db_path:
        storage = SqliteQuotaStorage(settings.quota_db_path)
    else:
        storage = MemoryQuotaStorage()
    return QuotaTracker(
        max_requests_per_min=settings.quota_max_requests_per_min,
        max_tokens_per_day=settings.quota_max_tokens_per_day,
        storage=storage,
    )
