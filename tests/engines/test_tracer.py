"""Tests for the engine tracer decorator and input fingerprints."""

from datetime import date
from decimal import Decimal

from supply_engines.tracer import compute_input_fingerprint, traced_engine
from supply_kernel.domain.outcome import Outcome
from supply_kernel.exceptions import InvalidQuantityError


class TestInputFingerprint:

    def test_deterministic(self):
        args = {"start": date(2024, 1, 1), "end": date(2024, 1, 5)}
        assert compute_input_fingerprint(("start", "end"), args) == compute_input_fingerprint(
            ("start", "end"), dict(reversed(list(args.items()))),
        )

    def test_sensitive_to_values(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("1.00")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("1.01")})
        assert a != b
        assert len(a) == 16

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(
            ("x",), {"x": None},
        )


class TestTracedEngine:

    def test_positional_arguments_fingerprinted(self, captured_logs):
        @traced_engine("demo", "2.0", fingerprint_fields=("quantity",))
        def check(quantity):
            if quantity < 0:
                return Outcome.failure(InvalidQuantityError(quantity, "cannot be negative"))
            return Outcome.success(quantity)

        check(5)
        check(quantity=5)
        check(-1)

        traces = [r for r in captured_logs() if r["message"] == "SUPPLY_ENGINE_TRACE"]
        assert [t["engine_version"] for t in traces] == ["2.0", "2.0", "2.0"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert traces[2]["outcome_code"] == "INVALID_QUANTITY"
        assert traces[0]["function"].endswith("check")

    def test_wraps_preserves_name(self):
        @traced_engine("demo", "1.0")
        def compute():
            return 1

        assert compute.__name__ == "compute"
        assert compute() == 1
