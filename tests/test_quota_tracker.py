import sys
import tempfile
import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.core.errors import RateLimitExceededError
from vagas_ai.core.quota import MemoryQuotaStorage, QuotaTracker, SqliteQuotaStorage

# 2023-11-14 22:13:15 UTC, 15 seconds into a minute window.
START = 1_699_999_995.0


class FakeClock:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class QuotaTrackerContract:
    def make_storage(self):
        raise NotImplementedError

    def setUp(self):
        self.clock = FakeClock()
        self.tracker = QuotaTracker(
            max_requests_per_min=2,
            max_tokens_per_day=100,
            storage=self.make_storage(),
            clock=self.clock,
        )

    def test_fresh_key_is_allowed(self):
        result = self.tracker.check("1.2.3.4")
        self.assertTrue(result.allowed)
        self.assertEqual((result.remaining.requests, result.remaining.tokens), (2, 100))
        self.assertEqual((result.limit.requests, result.limit.tokens), (2, 100))

    def test_check_does_not_consume(self):
        self.tracker.check("1.2.3.4")
        self.tracker.check("1.2.3.4")
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.requests, 2)

    def test_request_window(self):
        self.tracker.consume_request("1.2.3.4")
        self.tracker.consume_request("1.2.3.4")
        result = self.tracker.check("1.2.3.4")
        self.assertFalse(result.allowed)
        self.assertEqual(result.remaining.requests, 0)

        with self.assertRaises(RateLimitExceededError) as ctx:
            self.tracker.ensure_allowed("1.2.3.4")
        self.assertEqual(ctx.exception.retry_after, 45)
        self.assertIn("requests/minute", str(ctx.exception))

        self.clock.now += 60
        self.assertTrue(self.tracker.check("1.2.3.4").allowed)

    def test_daily_tokens(self):
        self.tracker.consume_tokens("1.2.3.4", 60)
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.tokens, 40)
        self.tracker.consume_tokens("1.2.3.4", 40)

        with self.assertRaises(RateLimitExceededError) as ctx:
            self.tracker.ensure_allowed("1.2.3.4")
        self.assertEqual(ctx.exception.retry_after, 6405)
        self.assertIn("Daily token limit", str(ctx.exception))

        self.clock.now += 6405
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.tokens, 100)

    def test_zero_tokens_are_not_recorded(self):
        self.assertEqual(self.tracker.consume_tokens("1.2.3.4", 0), 0)
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.tokens, 100)

    def test_keys_are_independent(self):
        self.tracker.consume_request("a")
        self.tracker.consume_request("a")
        self.assertFalse(self.tracker.check("a").allowed)
        self.assertTrue(self.tracker.check("b").allowed)

    def test_blank_key_never_allowed(self):
        for key in ("", "   "):
            with self.subTest(key=key):
                self.assertFalse(self.tracker.check(key).allowed)

    def test_check_and_consume_reserves_a_request(self):
        result = self.tracker.check_and_consume_request("1.2.3.4")
        self.assertEqual(result.remaining.requests, 1)
        self.tracker.check_and_consume_request("1.2.3.4")
        with self.assertRaises(RateLimitExceededError) as ctx:
            self.tracker.check_and_consume_request("1.2.3.4")
        self.assertEqual(ctx.exception.retry_after, 45)
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.requests, 0)

    def test_check_and_consume_respects_token_budget(self):
        self.tracker.consume_tokens("1.2.3.4", 100)
        with self.assertRaises(RateLimitExceededError):
            self.tracker.check_and_consume_request("1.2.3.4")
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.requests, 2)

    def test_last_slot_goes_to_one_concurrent_caller(self):
        self.tracker.consume_request("1.2.3.4")
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                self.tracker.check_and_consume_request("1.2.3.4")
            except RateLimitExceededError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(attempt, range(workers)))

        self.assertEqual(outcomes.count(True), 1)
        self.assertEqual(self.tracker.check("1.2.3.4").remaining.requests, 0)

    def test_clear(self):
        self.tracker.consume_request("a")
        self.tracker.consume_tokens("a", 10)
        self.tracker.clear()
        result = self.tracker.check("a")
        self.assertEqual((result.remaining.requests, result.remaining.tokens), (2, 100))


class MemoryQuotaTrackerTests(QuotaTrackerContract, unittest.TestCase):
    def make_storage(self):
        return MemoryQuotaStorage()


class SqliteQuotaTrackerTests(QuotaTrackerContract, unittest.TestCase):
    def make_storage(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.db_path = str(Path(self._tmp.name) / "quota" / "quota.sqlite3")
        return SqliteQuotaStorage(self.db_path)

    def test_counts_survive_a_new_storage(self):
        self.tracker.consume_request("a")
        self.tracker.consume_tokens("a", 30)
        reopened = QuotaTracker(
            max_requests_per_min=2,
            max_tokens_per_day=100,
            storage=SqliteQuotaStorage(self.db_path),
            clock=self.clock,
        )
        result = reopened.check("a")
        self.assertEqual((result.remaining.requests, result.remaining.tokens), (1, 70))


if __name__ == "__main__":
    unittest.main()
