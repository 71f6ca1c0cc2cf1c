import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.ai.config import GenerationConfig
from vagas_ai.ai.invocation import (
    QuotaExhausted,
    Success,
    build_messages,
    invoke,
    is_quota_error,
    walk_fallback_chain,
)
from vagas_ai.ai.types import ChatMessage, TransportResponse
from vagas_ai.core.errors import FatalModelError, ModelsExhaustedError
from vagas_ai.schemas.job import TokenUsage


class StatusError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ScriptedTransport:
    """Each model maps to either a reply string or an exception to raise."""

    def __init__(self, script):
        self.script = script
        self.calls = []

    async def complete(self, request):
        self.calls.append(request)
        outcome = self.script[request.model]
        if isinstance(outcome, BaseException):
            raise outcome
        return TransportResponse(
            text=outcome,
            usage=TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
        )


GENERATION = GenerationConfig(temperature=0.1, max_tokens=256, top_p=0.95)


class QuotaClassificationTests(unittest.TestCase):
    def test_status_code_429(self):
        self.assertTrue(is_quota_error(StatusError("Too many requests", status_code=429)))

    def test_message_markers(self):
        self.assertTrue(is_quota_error(RuntimeError("HTTP 429 from upstream")))
        self.assertTrue(is_quota_error(RuntimeError("Resource has been exhausted (e.g. check quota).")))

    def test_other_errors(self):
        self.assertFalse(is_quota_error(StatusError("Bad request", status_code=400)))
        self.assertFalse(is_quota_error(ValueError("invalid api key")))


class BuildMessagesTests(unittest.TestCase):
    def test_string_prompt_with_system(self):
        messages = build_messages("hello", system_prompt="be brief")
        self.assertEqual([m.role for m in messages], ["system", "user"])

    def test_message_list_is_copied(self):
        original = [ChatMessage(role="user", content="hi")]
        messages = build_messages(original)
        self.assertEqual(messages, original)
        self.assertIsNot(messages, original)


class FallbackChainTests(unittest.IsolatedAsyncioTestCase):
    async def test_quota_error_falls_through_to_next_model(self):
        transport = ScriptedTransport({"A": StatusError("quota", status_code=429), "B": "ok"})
        result = await invoke("prompt", ["A", "B"], transport=transport, generation=GENERATION)
        self.assertEqual(result.model, "B")
        self.assertEqual(result.text, "ok")
        self.assertEqual(result.token_usage.total_tokens, 15)
        self.assertEqual([call.model for call in transport.calls], ["A", "B"])

    async def test_non_quota_error_stops_the_chain(self):
        transport = ScriptedTransport({"A": ValueError("invalid api key"), "B": "ok"})
        with self.assertRaises(FatalModelError) as ctx:
            await invoke("prompt", ["A", "B"], transport=transport, generation=GENERATION)
        self.assertEqual(ctx.exception.model, "A")
        self.assertIsInstance(ctx.exception.__cause__, ValueError)
        self.assertEqual([call.model for call in transport.calls], ["A"])

    async def test_all_models_exhausted(self):
        transport = ScriptedTransport(
            {"A": RuntimeError("429 too many"), "B": RuntimeError("quota exceeded for B")}
        )
        with self.assertRaises(ModelsExhaustedError) as ctx:
            await invoke("prompt", ["A", "B"], transport=transport, generation=GENERATION)
        self.assertEqual(ctx.exception.models, ["A", "B"])
        self.assertEqual(ctx.exception.last_error.model, "B")
        self.assertIn("quota exceeded for B", str(ctx.exception))

    async def test_walk_returns_tagged_outcomes(self):
        messages = build_messages("prompt")
        ok = await walk_fallback_chain(ScriptedTransport({"A": "done"}), messages, ["A"], GENERATION)
        self.assertIsInstance(ok, Success)
        self.assertEqual(ok.output.text, "done")

        exhausted = await walk_fallback_chain(
            ScriptedTransport({"A": RuntimeError("429")}), messages, ["A"], GENERATION
        )
        self.assertIsInstance(exhausted, QuotaExhausted)
        self.assertEqual(exhausted.models, ("A",))

    async def test_request_carries_generation_settings(self):
        transport = ScriptedTransport({"A": "ok"})
        await invoke("prompt", ["A"], transport=transport, generation=GENERATION, system_prompt="sys")
        payload = transport.calls[0].to_payload()
        self.assertEqual(payload["max_tokens"], 256)
        self.assertEqual(payload["messages"][0], {"role": "system", "content": "sys"})

    async def test_models_are_tried_sequentially(self):
        active = 0
        peak = 0

        class SlowTransport:
            async def complete(self, request):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                raise RuntimeError("429")

        with self.assertRaises(ModelsExhaustedError):
            await invoke("prompt", ["A", "B", "C"], transport=SlowTransport(), generation=GENERATION)
        self.assertEqual(peak, 1)


if __name__ == "__main__":
    unittest.main()
