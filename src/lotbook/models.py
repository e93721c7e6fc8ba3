"""
Core data models for the portfolio ledger.

This module defines the fundamental data structures used throughout the system,
including assets, transactions, tax lots, the computed valuation snapshot and
holdings summary rows. All monetary and unit quantities use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


CASH_TICKER = "CASH"


class AssetCategory(Enum):
    """Closed set of asset categories."""
    STOCK = "Stock"
    ETF = "ETF"
    MUTUAL_FUND = "MutualFund"
    CRYPTO = "Crypto"
    BOND = "Bond"
    OTHER = "Other"

    @classmethod
    def parse(cls, text: Optional[str]) -> "AssetCategory":
        """
        Parse free-text user input into a category.

        Matching is case-insensitive and accepts a few common aliases.
        Anything unrecognized falls back to OTHER.

        Args:
            text: Raw category text (may be None or empty)

        Returns:
            Matching AssetCategory
        """
        if not text:
            return cls.OTHER
        key = text.strip().lower()
        return _CATEGORY_ALIASES.get(key, cls.OTHER)


_CATEGORY_ALIASES = {
    "stock": AssetCategory.STOCK,
    "etf": AssetCategory.ETF,
    "mutualfund": AssetCategory.MUTUAL_FUND,
    "mutual": AssetCategory.MUTUAL_FUND,
    "mf": AssetCategory.MUTUAL_FUND,
    "crypto": AssetCategory.CRYPTO,
    "bond": AssetCategory.BOND,
    "other": AssetCategory.OTHER,
}


class TransactionType(Enum):
    """Kinds of entries in the transaction log."""
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    FEES = "FEES"


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    ASSET_UPSERTED = "ASSET_UPSERTED"
    PRICE_SET = "PRICE_SET"
    TRANSACTION_ADDED = "TRANSACTION_ADDED"
    TRANSACTION_REMOVED = "TRANSACTION_REMOVED"
    UNDO_APPLIED = "UNDO_APPLIED"
    SUMMARY_CALCULATED = "SUMMARY_CALCULATED"
    STATE_EXPORTED = "STATE_EXPORTED"
    CONFIG_LOADED = "CONFIG_LOADED"


@dataclass(frozen=True)
class Asset:
    """
    A named holding identified by its ticker.

    Attributes:
        ticker: Unique key of the asset
        name: Display name
        category: Asset category
        currency: Currency code (informational only, no conversion)
    """
    ticker: str
    name: str
    category: AssetCategory = AssetCategory.STOCK
    currency: str = "INR"


@dataclass(frozen=True)
class Transaction:
    """
    Immutable entry in the transaction log.

    For DIVIDEND, DEPOSIT, WITHDRAW and FEES the quantity field holds the
    cash amount and unit_price is ignored. Pure cash events use the ticker
    CASH_TICKER.

    Attributes:
        ticker: Asset ticker, or CASH_TICKER for cash-ledger events
        type: Transaction type
        date: Trade/settlement date
        quantity: Units traded, or cash amount
        unit_price: Price per unit (BUY/SELL only)
        fees: Additional cost charged on the transaction
        note: Free-text note
    """
    ticker: str
    type: TransactionType
    date: date
    quantity: Decimal
    unit_price: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    note: str = ""

    @property
    def is_cash(self) -> bool:
        """True for pure cash-ledger events."""
        return self.ticker == CASH_TICKER


@dataclass
class Lot:
    """
    One unconsumed purchase tranche of an asset.

    Attributes:
        remaining_quantity: Units still held from this purchase
        remaining_total_cost: Cost (including purchase fees) of the remaining units
        acquisition_date: Date of the purchase
    """
    remaining_quantity: Decimal
    remaining_total_cost: Decimal
    acquisition_date: date

    @property
    def average_cost(self) -> Decimal:
        """Per-unit cost of the remaining units."""
        if self.remaining_quantity == Decimal("0"):
            return Decimal("0")
        return self.remaining_total_cost / self.remaining_quantity


@dataclass
class Computed:
    """
    Result of one valuation pass over the transaction log.

    Attributes:
        lots: Open lots per ticker, oldest first
        realized: Realized P&L per ticker (seed plus deltas)
        cash: Final cash balance
    """
    lots: dict[str, list[Lot]] = field(default_factory=dict)
    realized: dict[str, Decimal] = field(default_factory=dict)
    cash: Decimal = Decimal("0")


@dataclass
class HoldingSummary:
    """
    Aggregated view of one open position at current prices.

    Attributes:
        ticker: Asset ticker
        name: Asset display name
        category: Asset category
        currency: Asset currency code
        quantity: Total units across open lots
        average_cost: cost_basis / quantity
        market_price: Current price (0 if unknown)
        market_value: quantity * market_price
        cost_basis: Total remaining cost across open lots
        unrealized_pnl: market_value - cost_basis
        unrealized_pnl_pct: Unrealized P&L as percent of cost basis (0-100 scale)
        realized_pnl: Realized P&L from the computed snapshot
    """
    ticker: str
    name: str
    category: AssetCategory
    currency: str
    quantity: Decimal
    average_cost: Decimal
    market_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    realized_pnl: Decimal


@dataclass
class PortfolioTotals:
    """Portfolio-wide totals shown beneath the holdings summary."""
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    realized_pnl: Decimal
    cash: Decimal


@dataclass
class PortfolioState:
    """
    Complete input state of the valuation engine.

    Attributes:
        assets: Asset directory by ticker
        prices: Current price per ticker
        transactions: Transaction log in ascending date order
        realized: Seed realized P&L per ticker
    """
    assets: dict[str, Asset] = field(default_factory=dict)
    prices: dict[str, Decimal] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    realized: dict[str, Decimal] = field(default_factory=dict)

    def copy(self) -> "PortfolioState":
        """Shallow copy of every container; assets and transactions are immutable."""
        return PortfolioState(
            assets=dict(self.assets),
            prices=dict(self.prices),
            transactions=list(self.transactions),
            realized=dict(self.realized),
        )


@dataclass
class AppConfig:
    """
    Application configuration loaded from YAML.

    Attributes:
        state_file: Path of the JSON state document
        output_dir: Directory for exports and the decision log
        default_currency: Currency for implicitly created assets
        undo_limit: Maximum number of undo snapshots kept
        color: Whether CLI output is colorized
    """
    state_file: str = "portfolio.json"
    output_dir: str = "output"
    default_currency: str = "INR"
    undo_limit: int = 50
    color: bool = True


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        ticker: Ticker involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    ticker: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        ticker: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            ticker=ticker,
            details=details,
        )
