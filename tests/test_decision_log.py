"""
Tests for the decision log.
"""

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

from lotbook.logging.decision_log import DecisionLogger, DecimalEncoder, get_logger
from lotbook.models import ActionType, AppConfig, PortfolioState, TransactionType
from lotbook.portfolio.holdings import calculate_totals, summarize
from lotbook.portfolio.valuation import compute

from conftest import tx


class TestDecisionLogger:
    """Tests for DecisionLogger."""

    def test_entries_are_appended(self, sample_state: PortfolioState, temp_output_dir: Path):
        """Test that each call writes one JSON line."""
        logger = DecisionLogger(temp_output_dir / "logs" / "decision_log.jsonl")

        logger.log_asset_upserted(sample_state.assets["AAA"], created=True)
        logger.log_price_set("AAA", Decimal("15"), None)
        logger.log_undo_applied(2)

        lines = logger.log_path.read_text().splitlines()
        assert len(lines) == 3
        assert json.loads(lines[1])["details"] == {"price": "15", "previous_price": None}

    def test_read_log(self, temp_output_dir: Path):
        logger = DecisionLogger(temp_output_dir / "decision_log.jsonl")
        entry = tx("AAA", TransactionType.BUY, date(2024, 1, 3), "10", "12.5", "1")

        logger.log_transaction_added(entry, log_size=4)
        logger.log_transaction_removed(entry, index=0)

        entries = logger.read_log()
        assert [e.action_type for e in entries] == [
            ActionType.TRANSACTION_ADDED,
            ActionType.TRANSACTION_REMOVED,
        ]
        assert entries[0].ticker == "AAA"
        assert entries[0].details["unit_price"] == "12.5"
        assert entries[0].details["log_size"] == 4
        assert entries[1].details["index"] == 0

    def test_summary_and_export(self, sample_state: PortfolioState, temp_output_dir: Path):
        logger = DecisionLogger(temp_output_dir / "decision_log.jsonl")
        computed = compute(sample_state)
        rows = summarize(computed, sample_state.assets, sample_state.prices)

        logger.log_summary_calculated(rows, calculate_totals(rows, computed))
        logger.log_state_exported(temp_output_dir / "h.csv", len(rows))
        logger.log_config_loaded(AppConfig(), None)

        summary = logger.filter_by_action_type(ActionType.SUMMARY_CALCULATED)[0]
        assert summary.details["num_positions"] == 2
        assert Decimal(summary.details["cash"]) == Decimal("91022.5")
        assert logger.filter_by_action_type(ActionType.STATE_EXPORTED)[0].details["num_rows"] == 2
        assert logger.filter_by_action_type(ActionType.CONFIG_LOADED)[0].details["config_path"] is None

    def test_filter_by_ticker(self, sample_state: PortfolioState, temp_output_dir: Path):
        logger = DecisionLogger(temp_output_dir / "decision_log.jsonl")
        logger.log_price_set("AAA", Decimal("1"), None)
        logger.log_price_set("BBB", Decimal("2"), Decimal("1"))
        logger.log_price_set("AAA", Decimal("3"), Decimal("1"))

        assert len(logger.filter_by_ticker("AAA")) == 2
        assert logger.filter_by_ticker("BBB")[0].details["previous_price"] == "1"

    def test_missing_file_reads_empty(self, temp_output_dir: Path):
        assert DecisionLogger(temp_output_dir / "none.jsonl").read_log() == []


class TestGlobalLogger:
    """Tests for the module-level helpers."""

    def test_get_logger_reinitializes_with_path(self, temp_output_dir: Path):
        first = temp_output_dir / "first.jsonl"
        second = temp_output_dir / "second.jsonl"

        get_logger(first).log_price_set("AAA", Decimal("1.50"), None)
        logger = get_logger(second)
        logger.log_undo_applied(0)

        assert logger.log_path == second
        assert get_logger() is logger
        assert len(DecisionLogger(first).read_log()) == 1
        assert [e.action_type for e in logger.read_log()] == [ActionType.UNDO_APPLIED]

    def test_decimal_encoder(self):
        text = json.dumps({"a": Decimal("0.1"), "d": date(2024, 1, 2)}, cls=DecimalEncoder)

        assert json.loads(text) == {"a": "0.1", "d": "2024-01-02"}

