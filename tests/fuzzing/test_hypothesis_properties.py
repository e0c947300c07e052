"""
Hypothesis-based property tests for the pure domain and engine layers.

Properties checked:
- Line item set totals do not depend on insertion order
- Duplicate variant keys never change a set
- Period status is exactly one of not-started / active / ended
- Conflict detection is symmetric and agrees with closed-interval overlap
- Reconciliation recommendations follow the received quantities
- Discounted prices stay within [0, original]
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from supply_engines.periods import PeriodConflictDetector, PeriodStatus, period_status
from supply_engines.reconciliation import (
    RECOMMEND_COMPLETED,
    RECOMMEND_PARTIALLY_RECEIVED,
    ReceiptReconciler,
)
from supply_kernel.domain.intervals import intervals_overlap
from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemSet,
    OrderLineItem,
    VariantKey,
)
from supply_modules.discounts.models import DiscountPeriod, discounted_price

FUZZ_SETTINGS = settings(max_examples=150, suppress_health_check=[HealthCheck.too_slow])

BASE_DAY = date(2024, 1, 1)

prices = st.decimals(
    min_value=Decimal("0.00"), max_value=Decimal("99999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
days = st.integers(min_value=0, max_value=120).map(lambda n: BASE_DAY + timedelta(days=n))


@composite
def order_lines(draw, min_size=1, max_size=8):
    """Distinct-variant order lines."""
    keys = draw(
        st.lists(
            st.tuples(
                st.sampled_from(["TSHIRT", "HOODIE", "CAP"]),
                st.sampled_from(["RED", "BLUE", "BLACK"]),
                st.sampled_from(["S", "M", "L", "XL"]),
            ),
            min_size=min_size,
            max_size=max_size,
            unique=True,
        )
    )
    return [
        OrderLineItem(
            VariantKey(*key),
            draw(st.integers(min_value=1, max_value=500)),
            draw(prices),
        )
        for key in keys
    ]


@composite
def closed_ranges(draw):
    start = draw(days)
    length = draw(st.integers(min_value=0, max_value=40))
    return start, start + timedelta(days=length)


def _period(start, end, name="p") -> DiscountPeriod:
    return DiscountPeriod(id=name, start_date=start, end_date=end, description="fuzzed period")


class TestLineItemSetProperties:

    @given(lines=order_lines(), seed=st.randoms())
    @FUZZ_SETTINGS
    def test_total_independent_of_order(self, lines, seed):
        shuffled = list(lines)
        seed.shuffle(shuffled)

        a = LineItemSet.from_items(lines).unwrap()
        b = LineItemSet.from_items(shuffled).unwrap()

        assert a.total() == b.total()
        assert a.total_quantity() == b.total_quantity()
        assert a.total() == sum((line.line_total for line in lines), Decimal("0"))

    @given(lines=order_lines(), pick=st.integers(min_value=0), quantity=st.integers(1, 99))
    @FUZZ_SETTINGS
    def test_duplicate_key_leaves_set_unchanged(self, lines, pick, quantity):
        line_set = LineItemSet.from_items(lines).unwrap()
        before = line_set.items()
        target = lines[pick % len(lines)]

        outcome = line_set.add(OrderLineItem(target.key, quantity, Decimal("1.00")))

        assert outcome.error_code == "DUPLICATE_VARIANT"
        assert line_set.items() == before


class TestPeriodProperties:

    @given(now=days, window=closed_ranges())
    @FUZZ_SETTINGS
    def test_status_partitions_the_calendar(self, now, window):
        start, end = window
        status = period_status(now, start, end)

        if now < start:
            assert status == PeriodStatus.NOT_STARTED
        elif now > end:
            assert status == PeriodStatus.ENDED
        else:
            assert status == PeriodStatus.ACTIVE

    @given(first=closed_ranges(), second=closed_ranges())
    @FUZZ_SETTINGS
    def test_conflict_symmetric_and_matches_overlap(self, first, second):
        detector = PeriodConflictDetector()

        forward = detector.check(*first, [_period(*second, name="second")])
        backward = detector.check(*second, [_period(*first, name="first")])
        expected = intervals_overlap(first[0], first[1], second[0], second[1])

        assert forward.ok is backward.ok
        assert forward.ok is not expected
        if expected:
            assert forward.error.overlap_start == backward.error.overlap_start
            assert forward.error.overlap_end == backward.error.overlap_end

    @given(window=closed_ranges())
    @FUZZ_SETTINGS
    def test_excluded_period_never_conflicts_with_itself(self, window):
        detector = PeriodConflictDetector()
        period = _period(*window, name="self")

        assert detector.check(*window, [period], exclude_id="self").ok


class TestReconciliationProperties:

    @given(lines=order_lines(), data=st.data())
    @FUZZ_SETTINGS
    def test_recommendation_follows_quantities(self, lines, data):
        ordered = LineItemSet.from_items(lines).unwrap()
        received = {
            line.key: data.draw(st.integers(min_value=0, max_value=line.quantity + 5))
            for line in lines
        }
        receipt = LineItemSet.from_items(
            GoodsReceiptLineItem(key, qty, Decimal("1.00")) for key, qty in received.items()
        ).unwrap()

        outcome = ReceiptReconciler().reconcile(ordered, [receipt])
        result = outcome.unwrap()

        if all(received[line.key] >= line.quantity for line in lines):
            assert result.recommended_status == RECOMMEND_COMPLETED
        elif any(received.values()):
            assert result.recommended_status == RECOMMEND_PARTIALLY_RECEIVED
        else:
            assert result.recommended_status is None
        over = [line for line in lines if received[line.key] > line.quantity]
        assert len(outcome.warnings) == len(over)

    @given(lines=order_lines(), splits=st.integers(min_value=1, max_value=4))
    @FUZZ_SETTINGS
    def test_split_receipts_sum_like_one(self, lines, splits):
        ordered = LineItemSet.from_items(lines).unwrap()
        single = LineItemSet.from_items(
            GoodsReceiptLineItem(line.key, line.quantity, line.unit_price) for line in lines
        ).unwrap()
        parts = []
        for index in range(splits):
            parts.append(
                LineItemSet.from_items(
                    GoodsReceiptLineItem(
                        line.key,
                        line.quantity // splits + (line.quantity % splits if index == 0 else 0),
                        line.unit_price,
                    )
                    for line in lines
                ).unwrap()
            )

        whole = ReceiptReconciler().reconcile(ordered, [single]).unwrap()
        split = ReceiptReconciler().reconcile(ordered, parts).unwrap()

        assert split.received_quantity == whole.received_quantity
        assert split.received_total == whole.received_total
        assert split.recommended_status == RECOMMEND_COMPLETED


class TestDiscountProperties:

    @given(price=prices, percent=st.integers(min_value=1, max_value=99))
    @FUZZ_SETTINGS
    def test_discounted_price_bounded(self, price, percent):
        result = discounted_price(price, percent)

        assert Decimal("0") <= result <= price
        assert result == result.quantize(Decimal("0.01"))
