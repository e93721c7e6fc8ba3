"""
Pytest fixtures for the portfolio ledger tests.

Provides common test data and utilities used across test modules.
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from lotbook.models import (
    AppConfig,
    Asset,
    AssetCategory,
    PortfolioState,
    Transaction,
    TransactionType,
)


def tx(
    ticker: str,
    tx_type: TransactionType,
    on: date,
    quantity: str,
    unit_price: str = "0",
    fees: str = "0",
    note: str = "",
) -> Transaction:
    """Shorthand Transaction builder taking decimal strings."""
    return Transaction(
        ticker=ticker,
        type=tx_type,
        date=on,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        fees=Decimal(fees),
        note=note,
    )


@pytest.fixture
def sample_app_config(temp_output_dir: Path) -> AppConfig:
    """Create a sample application configuration for testing."""
    return AppConfig(
        state_file=str(temp_output_dir / "portfolio.json"),
        output_dir=str(temp_output_dir / "output"),
        default_currency="INR",
        undo_limit=5,
        color=False,
    )


@pytest.fixture
def sample_assets() -> dict[str, Asset]:
    """Create a small asset directory for testing."""
    return {
        "AAA": Asset(ticker="AAA", name="Alpha Industries", category=AssetCategory.STOCK, currency="INR"),
        "BBB": Asset(ticker="BBB", name="Beta Index Fund", category=AssetCategory.ETF, currency="INR"),
        "CCC": Asset(ticker="CCC", name="Gamma Coin", category=AssetCategory.CRYPTO, currency="USD"),
    }


@pytest.fixture
def sample_prices() -> dict[str, Decimal]:
    """Create current prices for the sample assets."""
    return {
        "AAA": Decimal("15"),
        "BBB": Decimal("220.50"),
        "CCC": Decimal("0.75"),
    }


@pytest.fixture
def end_to_end_state() -> PortfolioState:
    """Single-asset state with one buy and one partial sell."""
    return PortfolioState(
        assets={"AAA": Asset(ticker="AAA", name="AAA", category=AssetCategory.STOCK, currency="INR")},
        prices={"AAA": Decimal("15")},
        transactions=[
            tx("AAA", TransactionType.BUY, date(2023, 1, 1), "10", "10", "1"),
            tx("AAA", TransactionType.SELL, date(2023, 2, 1), "4", "12", "0.5"),
        ],
        realized={},
    )


@pytest.fixture
def sample_state(
    sample_assets: dict[str, Asset],
    sample_prices: dict[str, Decimal],
) -> PortfolioState:
    """Multi-asset state with cash events, trades and a dividend."""
    return PortfolioState(
        assets=dict(sample_assets),
        prices=dict(sample_prices),
        transactions=[
            tx("CASH", TransactionType.DEPOSIT, date(2024, 1, 2), "100000"),
            tx("AAA", TransactionType.BUY, date(2024, 1, 3), "100", "10", "5"),
            tx("BBB", TransactionType.BUY, date(2024, 1, 3), "20", "200", "10"),
            tx("AAA", TransactionType.BUY, date(2024, 2, 1), "50", "14", "5"),
            tx("CCC", TransactionType.BUY, date(2024, 2, 15), "1000", "1"),
            tx("AAA", TransactionType.SELL, date(2024, 3, 1), "120", "16", "6"),
            tx("BBB", TransactionType.DIVIDEND, date(2024, 3, 20), "42.50"),
            tx("CCC", TransactionType.SELL, date(2024, 4, 1), "1000", "0.80", "2"),
            tx("CASH", TransactionType.FEES, date(2024, 4, 30), "12"),
            tx("CASH", TransactionType.WITHDRAW, date(2024, 5, 1), "5000"),
        ],
        realized={"AAA": Decimal("25")},
    )


@pytest.fixture
def temp_output_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
