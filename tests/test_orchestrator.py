import asyncio
import unittest

from tests.fakes import FakeClock, StubProvider, make_results
from websearch_mcp.errors import (
    AllProvidersFailed,
    InvalidArgument,
    ProviderHttpError,
    ProviderTransportError,
    SoftBlockDetected,
)
from websearch_mcp.orchestrator import ProviderOrchestrator, suspension_duration

_MINUTE = 60.0


class _SuffixEnhancer:
    def enhance(self, query: str) -> str:
        if "javascript" in query:
            return f"{query} (site:developer.mozilla.org)"
        return query


def _rate_limited() -> ProviderHttpError:
    return ProviderHttpError("Primary", 429, "Too Many Requests")


class SuspensionDurationTests(unittest.TestCase):
    def test_sequence_is_capped_at_six_times_base(self) -> None:
        minutes = [suspension_duration(n) / _MINUTE for n in range(1, 8)]
        self.assertEqual([20, 40, 80, 120, 120, 120, 120], minutes)

    def test_zero_count_has_no_duration(self) -> None:
        self.assertEqual(0.0, suspension_duration(0))


class ProviderOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.primary = StubProvider("Primary")
        self.secondary = StubProvider("Secondary")

    def _orchestrator(self, enhancer=None) -> ProviderOrchestrator:
        return ProviderOrchestrator(self.primary, self.secondary, enhancer, clock=self.clock)

    def _search(self, orchestrator: ProviderOrchestrator, query: str = "javascript error", **kwargs):
        return asyncio.run(orchestrator.execute_search(query, **kwargs))

    # -- primary path --

    def test_primary_success_is_labeled_primary(self) -> None:
        response = self._search(self._orchestrator())
        self.assertEqual("Primary", response.provider_used)
        self.assertEqual(3, response.total_results)
        self.assertEqual([], self.secondary.calls)
        self.assertIsNone(response.notice)

    def test_results_are_capped_at_max_results(self) -> None:
        self.primary = StubProvider("Primary", default=make_results(8))
        response = self._search(self._orchestrator(), max_results=5)
        self.assertEqual(5, response.total_results)
        self.assertEqual(5, len(response.results))

    def test_enhanced_query_is_annotated_and_sent(self) -> None:
        response = self._search(self._orchestrator(_SuffixEnhancer()))
        self.assertEqual(
            "javascript error (enhanced: javascript error (site:developer.mozilla.org))",
            response.query,
        )
        self.assertEqual("javascript error (site:developer.mozilla.org)", self.primary.calls[0][0])

    def test_date_filter_is_forwarded(self) -> None:
        self._search(self._orchestrator(), date_filter="y")
        self.assertEqual("y", self.primary.calls[0][2])

    # -- suspension on failure --

    def test_rate_limited_primary_suspends_and_falls_back(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited()])
        self.secondary = StubProvider("Secondary", default=make_results(4, "Secondary"))
        orchestrator = self._orchestrator()

        response = self._search(orchestrator)

        self.assertEqual("Secondary (fallback after Primary failure)", response.provider_used)
        self.assertEqual(4, response.total_results)
        status = orchestrator.suspension_status()
        self.assertTrue(status.suspended)
        self.assertEqual(1, status.suspension_count)
        self.assertAlmostEqual(20 * _MINUTE, status.remaining_seconds)
        self.assertIn("suspension #1", response.notice)

    def test_soft_block_follows_same_path_as_http_error(self) -> None:
        self.primary = StubProvider(
            "Primary", outcomes=[SoftBlockDetected("Primary", 12_000, "no result markers in response")]
        )
        orchestrator = self._orchestrator()

        response = self._search(orchestrator)

        self.assertEqual("Secondary (fallback after Primary failure)", response.provider_used)
        self.assertEqual(1, orchestrator.suspension_status().suspension_count)

    def test_timeout_counts_as_failure(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[ProviderTransportError("Primary", "timed out")])
        orchestrator = self._orchestrator()
        self._search(orchestrator)
        self.assertTrue(orchestrator.suspension_status().suspended)

    def test_genuine_empty_result_does_not_suspend(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[[]])
        orchestrator = self._orchestrator()

        response = self._search(orchestrator, query="xyzzy plugh")

        self.assertEqual("Primary", response.provider_used)
        self.assertEqual(0, response.total_results)
        self.assertEqual(0, orchestrator.suspension_status().suspension_count)
        self.assertEqual([], self.secondary.calls)

    # -- while suspended --

    def test_suspended_primary_is_not_called(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited()])
        orchestrator = self._orchestrator()
        self._search(orchestrator)
        self.assertEqual(1, len(self.primary.calls))

        for _ in range(3):
            self.clock.advance(5 * _MINUTE)
            response = self._search(orchestrator)
            self.assertEqual("Secondary (Primary suspended)", response.provider_used)

        self.assertEqual(1, len(self.primary.calls))
        self.assertEqual(4, len(self.secondary.calls))

    def test_primary_retried_after_suspension_expires(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited()])
        orchestrator = self._orchestrator()
        self._search(orchestrator)

        self.clock.advance(20 * _MINUTE)
        response = self._search(orchestrator)

        self.assertEqual("Primary", response.provider_used)
        self.assertEqual(2, len(self.primary.calls))

    def test_consecutive_suspensions_back_off_exponentially(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited() for _ in range(5)])
        orchestrator = self._orchestrator()

        durations = []
        for _ in range(5):
            self._search(orchestrator)
            status = orchestrator.suspension_status()
            durations.append(round(status.remaining_seconds / _MINUTE))
            self.clock.advance(status.remaining_seconds)

        self.assertEqual([20, 40, 80, 120, 120], durations)
        self.assertEqual(5, orchestrator.suspension_status().suspension_count)

    def test_success_resets_suspension_count(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited(), _rate_limited()])
        orchestrator = self._orchestrator()
        for _ in range(2):
            self._search(orchestrator)
            self.clock.advance(orchestrator.suspension_status().remaining_seconds)
        self.assertEqual(2, orchestrator.suspension_status().suspension_count)

        response = self._search(orchestrator)

        self.assertEqual("Primary", response.provider_used)
        self.assertEqual(0, orchestrator.suspension_status().suspension_count)

    def test_concurrent_failures_suspend_once(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited(), _rate_limited()])
        orchestrator = self._orchestrator()

        async def _run() -> None:
            await asyncio.gather(
                orchestrator.execute_search("first query"),
                orchestrator.execute_search("second query"),
            )

        asyncio.run(_run())

        self.assertEqual(1, orchestrator.suspension_status().suspension_count)

    # -- total failure --

    def test_both_providers_failing_raises(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited()])
        self.secondary = StubProvider("Secondary", outcomes=[ProviderHttpError("Secondary", 500, "Internal Server Error")])

        with self.assertRaises(AllProvidersFailed) as ctx:
            self._search(self._orchestrator())

        self.assertEqual(429, ctx.exception.primary_error.status)
        self.assertEqual(500, ctx.exception.secondary_error.status)

    def test_secondary_failure_while_suspended_raises(self) -> None:
        self.primary = StubProvider("Primary", outcomes=[_rate_limited()])
        self.secondary = StubProvider(
            "Secondary", outcomes=[make_results(1), ProviderTransportError("Secondary", "timed out")]
        )
        orchestrator = self._orchestrator()
        self._search(orchestrator)

        with self.assertRaises(AllProvidersFailed) as ctx:
            self._search(orchestrator)
        self.assertIsNone(ctx.exception.primary_error)

    # -- argument validation --

    def test_max_results_above_limit_rejected_before_network(self) -> None:
        with self.assertRaises(InvalidArgument):
            self._search(self._orchestrator(), max_results=51)
        self.assertEqual([], self.primary.calls)
        self.assertEqual([], self.secondary.calls)

    def test_empty_query_rejected(self) -> None:
        with self.assertRaises(InvalidArgument):
            self._search(self._orchestrator(), query="   ")

    def test_zero_max_results_rejected(self) -> None:
        with self.assertRaises(InvalidArgument):
            self._search(self._orchestrator(), max_results=0)

    def test_unknown_date_filter_rejected(self) -> None:
        with self.assertRaises(InvalidArgument):
            self._search(self._orchestrator(), date_filter="q")


if __name__ == "__main__":
    unittest.main()
