"""
Tests for the engine tracer decorator.
"""

from decimal import Decimal
from enum import Enum

from roster_engines.tracer import compute_input_fingerprint, traced_engine
from roster_kernel.domain.period import Period


class Colour(Enum):
    RED = "red"


class _Sample:

    @traced_engine("sample", "2.1", fingerprint_fields=("amount", "period"))
    def run(self, amount, period, note=None):
        return amount * 2


class TestComputeInputFingerprint:

    def test_deterministic(self):
        args = {"amount": Decimal("1.50"), "period": Period(2025, 1)}
        first = compute_input_fingerprint(("amount", "period"), args)
        second = compute_input_fingerprint(("amount", "period"), dict(args))
        assert first == second
        assert len(first) == 16

    def test_changes_with_input(self):
        first = compute_input_fingerprint(("amount",), {"amount": Decimal("1")})
        second = compute_input_fingerprint(("amount",), {"amount": Decimal("2")})
        assert first != second

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(
            ("x",), {"x": None},
        )

    def test_set_order_irrelevant(self):
        first = compute_input_fingerprint(("s",), {"s": frozenset({Colour.RED, "b", "a"})})
        second = compute_input_fingerprint(("s",), {"s": frozenset({"a", Colour.RED, "b"})})
        assert first == second


class TestTracedEngine:

    def test_emits_trace(self, captured_logs):
        assert _Sample().run(Decimal("2"), Period(2025, 1)) == Decimal("4")

        traces = [r for r in captured_logs() if r["message"] == "ROSTER_ENGINE_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["function"] == "_Sample.run"
        assert len(trace["input_fingerprint"]) == 16

    def test_positional_and_keyword_calls_fingerprint_alike(self, captured_logs):
        sample = _Sample()
        sample.run(Decimal("2"), Period(2025, 1))
        sample.run(amount=Decimal("2"), period=Period(2025, 1), note="ignored")

        traces = [r for r in captured_logs() if r["message"] == "ROSTER_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_preserves_name(self):
        assert _Sample.run.__name__ == "run"
