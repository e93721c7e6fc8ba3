"""
Tests for FIFO lot tracking.
"""

from datetime import date
from decimal import Decimal

from lotbook.portfolio.lots import EPSILON, LotTracker


class TestApplyBuy:
    """Tests for LotTracker.apply_buy."""

    def test_buy_opens_lot_with_fees_in_cost(self):
        """Test that purchase fees are folded into the lot's total cost."""
        tracker = LotTracker()
        lot = tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("1"), date(2023, 1, 1))

        assert lot.remaining_quantity == Decimal("10")
        assert lot.remaining_total_cost == Decimal("101")
        assert lot.acquisition_date == date(2023, 1, 1)
        assert lot.average_cost == Decimal("10.1")

    def test_buys_append_to_tail(self):
        """Test that lots queue in purchase order."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("0"), date(2023, 1, 1))
        tracker.apply_buy("AAA", Decimal("5"), Decimal("20"), Decimal("0"), date(2023, 2, 1))

        lots = tracker.lots_for("AAA")
        assert [lot.acquisition_date for lot in lots] == [date(2023, 1, 1), date(2023, 2, 1)]
        assert tracker.open_quantity("AAA") == Decimal("15")

    def test_tickers_are_independent(self):
        """Test that each ticker has its own queue."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("0"), date(2023, 1, 1))
        tracker.apply_buy("BBB", Decimal("3"), Decimal("50"), Decimal("0"), date(2023, 1, 1))

        tracker.apply_sell("AAA", Decimal("10"), Decimal("10"))

        assert tracker.lots_for("AAA") == []
        assert tracker.open_quantity("BBB") == Decimal("3")


class TestApplySell:
    """Tests for LotTracker.apply_sell."""

    def test_fifo_consumes_oldest_lot_first(self):
        """Test that a sell matches against the oldest lot only when it suffices."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("0"), date(2023, 1, 1))
        tracker.apply_buy("AAA", Decimal("10"), Decimal("20"), Decimal("0"), date(2023, 2, 1))

        delta = tracker.apply_sell("AAA", Decimal("10"), Decimal("25"))

        # Realized against the $10 lot only
        assert delta == Decimal("150")
        lots = tracker.lots_for("AAA")
        assert len(lots) == 1
        assert lots[0].remaining_quantity == Decimal("10")
        assert lots[0].remaining_total_cost == Decimal("200")

    def test_sell_spanning_lots(self):
        """Test a sell that empties one lot and partially consumes the next."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("100"), Decimal("10"), Decimal("5"), date(2024, 1, 3))
        tracker.apply_buy("AAA", Decimal("50"), Decimal("14"), Decimal("5"), date(2024, 2, 1))

        delta = tracker.apply_sell("AAA", Decimal("120"), Decimal("16"), Decimal("6"))

        # 100 * (16 - 10.05) + 20 * (16 - 14.1)
        assert delta == Decimal("633")
        lots = tracker.lots_for("AAA")
        assert len(lots) == 1
        assert lots[0].remaining_quantity == Decimal("30")
        assert lots[0].remaining_total_cost == Decimal("423")

    def test_partial_sell_reduces_cost_at_lot_average(self):
        """Test that remaining cost shrinks by average cost times units taken."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("1"), date(2023, 1, 1))

        delta = tracker.apply_sell("AAA", Decimal("4"), Decimal("12"), Decimal("0.5"))

        assert delta == Decimal("7.6")
        lot = tracker.lots_for("AAA")[0]
        assert lot.remaining_quantity == Decimal("6")
        assert lot.remaining_total_cost == Decimal("60.6")
        assert lot.average_cost == Decimal("10.1")

    def test_sell_fees_not_applied(self):
        """Test that sell fees do not change the realized delta."""
        with_fees = LotTracker()
        without_fees = LotTracker()
        for tracker in (with_fees, without_fees):
            tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("0"), date(2023, 1, 1))

        assert with_fees.apply_sell("AAA", Decimal("5"), Decimal("11"), Decimal("3")) == \
            without_fees.apply_sell("AAA", Decimal("5"), Decimal("11"), Decimal("0"))

    def test_oversell_with_no_lots_is_zero_cost_disposal(self):
        """Test that selling with nothing held realizes the full proceeds."""
        tracker = LotTracker()

        delta = tracker.apply_sell("AAA", Decimal("5"), Decimal("30"))

        assert delta == Decimal("150")
        assert tracker.lots_for("AAA") == []

    def test_oversell_beyond_open_lots(self):
        """Test that the excess over held units is realized at zero cost."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("3"), Decimal("10"), Decimal("0"), date(2023, 1, 1))

        delta = tracker.apply_sell("AAA", Decimal("5"), Decimal("12"))

        # 3 * (12 - 10) + 2 * 12
        assert delta == Decimal("30")
        assert tracker.lots_for("AAA") == []
        assert tracker.open_quantity("AAA") == Decimal("0")

    def test_dust_below_epsilon_removes_lot(self):
        """Test that a lot left with less than epsilon is dropped."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("1"), Decimal("10"), Decimal("0"), date(2023, 1, 1))

        tracker.apply_sell("AAA", Decimal("1") - EPSILON / 2, Decimal("10"))

        assert tracker.lots_for("AAA") == []

    def test_sale_at_cost_realizes_nothing(self):
        """Test that selling everything at average cost realizes zero."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("3"), Decimal("7"), Decimal("0"), date(2023, 1, 1))
        tracker.apply_buy("AAA", Decimal("2"), Decimal("7"), Decimal("0"), date(2023, 1, 5))

        assert tracker.apply_sell("AAA", Decimal("5"), Decimal("7")) == Decimal("0")


class TestSnapshot:
    """Tests for LotTracker.snapshot."""

    def test_snapshot_is_a_copy(self):
        """Test that mutating the tracker does not change an earlier snapshot."""
        tracker = LotTracker()
        tracker.apply_buy("AAA", Decimal("10"), Decimal("10"), Decimal("0"), date(2023, 1, 1))

        snapshot = tracker.snapshot()
        tracker.apply_sell("AAA", Decimal("4"), Decimal("10"))

        assert snapshot["AAA"][0].remaining_quantity == Decimal("10")
        assert tracker.lots_for("AAA")[0].remaining_quantity == Decimal("6")

    def test_lots_for_unknown_ticker(self):
        """Test that an unknown ticker has no lots and is not added."""
        tracker = LotTracker()

        assert tracker.lots_for("ZZZ") == []
        assert "ZZZ" not in tracker.snapshot()
