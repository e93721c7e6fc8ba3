"""
Tests for CSV import and export.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from lotbook.data.loaders import (
    DataLoadError,
    load_transactions,
    save_holdings_summary,
    save_transactions,
)
from lotbook.data.schemas import HOLDINGS_SUMMARY_SCHEMA, TRANSACTIONS_SCHEMA
from lotbook.models import PortfolioState, Transaction, TransactionType
from lotbook.portfolio.holdings import summarize
from lotbook.portfolio.valuation import compute


class TestTransactionsCsv:
    """Tests for load_transactions and save_transactions."""

    def test_save_and_load(self, sample_state: PortfolioState, temp_output_dir: Path):
        """Test that an exported log imports back identically."""
        path = save_transactions(sample_state.transactions, temp_output_dir / "tx.csv")

        loaded = load_transactions(path)

        assert loaded == sample_state.transactions

    def test_columns_follow_schema(self, sample_state: PortfolioState, temp_output_dir: Path):
        path = save_transactions(sample_state.transactions, temp_output_dir / "tx.csv")

        df = pd.read_csv(path, dtype=str)

        assert df.columns.tolist() == TRANSACTIONS_SCHEMA.all_columns

    def test_optional_columns(self, temp_output_dir: Path):
        """Test a minimal file with blank optional cells."""
        path = temp_output_dir / "tx.csv"
        path.write_text(
            "date,ticker,type,quantity,unit_price\n"
            "2024-01-02,CASH,DEPOSIT,1000,\n"
            "2024-01-03,AAA,buy,10,12.345678901\n"
        )

        loaded = load_transactions(path)

        assert loaded[0].type == TransactionType.DEPOSIT
        assert loaded[0].unit_price == Decimal("0")
        assert loaded[1].type == TransactionType.BUY
        assert loaded[1].date == date(2024, 1, 3)
        assert loaded[1].unit_price == Decimal("12.345678901")
        assert loaded[1].fees == Decimal("0")
        assert loaded[1].note == ""

    def test_missing_required_column(self, temp_output_dir: Path):
        path = temp_output_dir / "tx.csv"
        path.write_text("date,ticker,quantity\n2024-01-02,AAA,1\n")

        with pytest.raises(DataLoadError, match="type"):
            load_transactions(path)

    def test_bad_row_reports_line(self, temp_output_dir: Path):
        """Test that the failing line number is reported."""
        path = temp_output_dir / "tx.csv"
        path.write_text(
            "date,ticker,type,quantity\n"
            "2024-01-02,CASH,DEPOSIT,1000\n"
            "2024-01-03,AAA,SWAP,10\n"
        )

        with pytest.raises(DataLoadError, match="line 3"):
            load_transactions(path)

    def test_missing_file(self, temp_output_dir: Path):
        with pytest.raises(DataLoadError, match="not found"):
            load_transactions(temp_output_dir / "none.csv")


class TestHoldingsExport:
    """Tests for save_holdings_summary."""

    def test_export(self, sample_state: PortfolioState, temp_output_dir: Path):
        """Test the holdings file and the sibling cash file."""
        computed = compute(sample_state)
        rows = summarize(computed, sample_state.assets, sample_state.prices)

        holdings_path, cash_path = save_holdings_summary(
            rows, computed.cash, temp_output_dir / "out" / "holdings.csv"
        )

        assert cash_path == temp_output_dir / "out" / "holdings_cash.csv"

        df = pd.read_csv(holdings_path)
        assert df.columns.tolist() == HOLDINGS_SUMMARY_SCHEMA.all_columns
        assert df["ticker"].tolist() == ["BBB", "AAA"]
        assert df.loc[0, "category"] == "ETF"
        assert df.loc[0, "market_value"] == pytest.approx(4410.0)
        assert df.loc[1, "quantity"] == pytest.approx(30.0)
        assert df.loc[1, "realized_pnl"] == pytest.approx(652.0)

        cash_df = pd.read_csv(cash_path)
        assert cash_df["cash"].tolist() == [pytest.approx(91022.5)]

    def test_empty_export_has_header(self, temp_output_dir: Path):
        holdings_path, _ = save_holdings_summary([], Decimal("0"), temp_output_dir / "h.csv")

        df = pd.read_csv(holdings_path)

        assert df.empty
        assert df.columns.tolist() == HOLDINGS_SUMMARY_SCHEMA.all_columns

    def test_tiny_quantities_keep_precision(self, temp_output_dir: Path):
        """Test that sub-cent crypto positions are exported unrounded."""
        state = PortfolioState(
            prices={"BTC": Decimal("2")},
            transactions=[
                Transaction(
                    ticker="BTC",
                    type=TransactionType.BUY,
                    date=date(2024, 1, 1),
                    quantity=Decimal("0.00000012"),
                    unit_price=Decimal("1"),
                ),
            ],
        )
        computed = compute(state)
        rows = summarize(computed, state.assets, state.prices)

        holdings_path, cash_path = save_holdings_summary(
            rows, computed.cash, temp_output_dir / "h.csv"
        )

        row = pd.read_csv(holdings_path, dtype=str).iloc[0]
        assert row["quantity"] == "0.00000012"
        assert row["cost_basis"] == "0.00000012"
        assert row["market_value"] == "0.00000024"
        assert Decimal(row["unrealized_pnl_pct"]) == Decimal("100")
        assert pd.read_csv(cash_path, dtype=str)["cash"].tolist() == ["-0.00000012"]
