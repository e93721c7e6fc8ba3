"""
Mutating operations on the portfolio state.

Every operation validates its input at the boundary and returns a new
PortfolioState; the state passed in is left untouched, so callers can keep
earlier states as undo snapshots.
"""

from decimal import Decimal
from typing import Any, Optional

from lotbook.config import ConfigurationError, _parse_date, _parse_decimal
from lotbook.models import (
    CASH_TICKER,
    Asset,
    AssetCategory,
    PortfolioState,
    Transaction,
    TransactionType,
)


class ValidationError(Exception):
    """Raised when an operation is rejected because of malformed input."""
    pass


class UnknownTickerError(ValidationError):
    """Raised when an operation references a ticker with no asset."""
    pass


_CASH_TYPES = (
    TransactionType.DEPOSIT,
    TransactionType.WITHDRAW,
    TransactionType.FEES,
)


def normalize_ticker(ticker: str) -> str:
    """Strip surrounding whitespace; tickers are case-sensitive keys."""
    return (ticker or "").strip()


def add_or_update_asset(
    state: PortfolioState,
    ticker: str,
    name: Optional[str] = None,
    category: Optional[str | AssetCategory] = None,
    currency: Optional[str] = None,
    default_currency: str = "INR",
) -> PortfolioState:
    """
    Create an asset or replace an existing one in place.

    Args:
        state: Current portfolio state
        ticker: Asset ticker
        name: Display name (defaults to the ticker)
        category: Category enum or free text (unrecognized text maps to OTHER)
        currency: Currency code (defaults to default_currency)
        default_currency: Currency used when none is given

    Returns:
        New PortfolioState with the asset stored

    Raises:
        ValidationError: If the ticker is blank
    """
    ticker = normalize_ticker(ticker)
    if not ticker:
        raise ValidationError("Ticker cannot be empty")

    if isinstance(category, AssetCategory):
        parsed_category = category
    else:
        parsed_category = AssetCategory.parse(category)

    asset = Asset(
        ticker=ticker,
        name=(name or "").strip() or ticker,
        category=parsed_category,
        currency=(currency or "").strip().upper() or default_currency,
    )

    new_state = state.copy()
    new_state.assets[ticker] = asset
    return new_state


def ensure_asset(
    state: PortfolioState,
    ticker: str,
    default_currency: str = "INR",
) -> PortfolioState:
    """
    Create an implicit asset for a ticker seen for the first time.

    Args:
        state: Current portfolio state
        ticker: Asset ticker
        default_currency: Currency for the implicit asset

    Returns:
        New PortfolioState (unchanged contents if the asset already exists)
    """
    new_state = state.copy()
    if ticker not in new_state.assets:
        new_state.assets[ticker] = Asset(
            ticker=ticker,
            name=ticker,
            category=AssetCategory.STOCK,
            currency=default_currency,
        )
    return new_state


def set_price(
    state: PortfolioState,
    ticker: str,
    price: Any,
) -> PortfolioState:
    """
    Set the current market price of a known asset.

    Args:
        state: Current portfolio state
        ticker: Asset ticker
        price: New price (Decimal or parseable value)

    Returns:
        New PortfolioState with the price stored

    Raises:
        UnknownTickerError: If the ticker has no asset
        ValidationError: If the price is malformed or negative
    """
    ticker = normalize_ticker(ticker)
    if ticker not in state.assets:
        raise UnknownTickerError(f"Unknown ticker: {ticker}. Add the asset first.")

    parsed = _to_decimal(price, "price")

    new_state = state.copy()
    new_state.prices[ticker] = parsed
    return new_state


def make_transaction(
    ticker: str,
    tx_type: str | TransactionType,
    tx_date: Any,
    quantity: Any,
    unit_price: Any = "0",
    fees: Any = "0",
    note: str = "",
) -> Transaction:
    """
    Build a Transaction from raw user input.

    Args:
        ticker: Asset ticker or CASH
        tx_type: Transaction type name (case-insensitive) or enum
        tx_date: Date (YYYY-MM-DD string or date)
        quantity: Units, or cash amount for cash-style entries
        unit_price: Price per unit (BUY/SELL)
        fees: Transaction fees
        note: Optional note

    Returns:
        Transaction

    Raises:
        ValidationError: If any field cannot be parsed
    """
    if isinstance(tx_type, TransactionType):
        parsed_type = tx_type
    else:
        try:
            parsed_type = TransactionType(str(tx_type).strip().upper())
        except ValueError:
            valid = ", ".join(t.value for t in TransactionType)
            raise ValidationError(f"Unknown transaction type: {tx_type}. Expected one of {valid}")

    try:
        parsed_date = _parse_date(tx_date, "date")
    except ConfigurationError as e:
        raise ValidationError(str(e)) from e

    return Transaction(
        ticker=normalize_ticker(ticker),
        type=parsed_type,
        date=parsed_date,
        quantity=_to_decimal(quantity, "quantity"),
        unit_price=_to_decimal(unit_price if unit_price not in (None, "") else "0", "price"),
        fees=_to_decimal(fees if fees not in (None, "") else "0", "fees"),
        note=note or "",
    )


def validate_transaction(tx: Transaction) -> None:
    """
    Reject transactions the valuation engine cannot replay meaningfully.

    Args:
        tx: Transaction to check

    Raises:
        ValidationError: If the transaction is malformed
    """
    if not tx.ticker:
        raise ValidationError("Ticker cannot be empty")

    if tx.is_cash and tx.type not in _CASH_TYPES:
        raise ValidationError(
            f"{tx.type.value} is not allowed on {CASH_TICKER}; "
            f"use one of {', '.join(t.value for t in _CASH_TYPES)}"
        )

    for field_name in ("quantity", "unit_price", "fees"):
        value = getattr(tx, field_name)
        if not value.is_finite() or value < Decimal("0"):
            raise ValidationError(f"{field_name} must be a non-negative number, got {value}")

    if tx.type in (TransactionType.BUY, TransactionType.SELL) and tx.quantity <= Decimal("0"):
        raise ValidationError(f"{tx.type.value} quantity must be greater than zero")


def append_transaction(
    state: PortfolioState,
    tx: Transaction,
    default_currency: str = "INR",
) -> PortfolioState:
    """
    Append a transaction and keep the log sorted by date.

    The sort is stable, so same-day transactions keep their insertion order.
    The transaction's asset is created implicitly if it does not exist.

    Args:
        state: Current portfolio state
        tx: Transaction to append
        default_currency: Currency for an implicitly created asset

    Returns:
        New PortfolioState with the transaction in the log

    Raises:
        ValidationError: If the transaction is malformed
    """
    validate_transaction(tx)

    new_state = ensure_asset(state, tx.ticker, default_currency)
    new_state.transactions.append(tx)
    new_state.transactions.sort(key=lambda t: t.date)
    return new_state


def remove_transaction_at(state: PortfolioState, index: int) -> PortfolioState:
    """
    Delete the transaction at a zero-based position in the log.

    Date order is not re-validated.

    Args:
        state: Current portfolio state
        index: Zero-based position

    Returns:
        New PortfolioState without the transaction

    Raises:
        ValidationError: If the index is out of range
    """
    if index < 0 or index >= len(state.transactions):
        raise ValidationError(
            f"Invalid transaction index {index + 1}; "
            f"log has {len(state.transactions)} entries"
        )

    new_state = state.copy()
    del new_state.transactions[index]
    return new_state


def _to_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a non-negative decimal, mapping parse failures to ValidationError."""
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = _parse_decimal(value, field_name)
        except ConfigurationError as e:
            raise ValidationError(str(e)) from e

    if not parsed.is_finite() or parsed < Decimal("0"):
        raise ValidationError(f"{field_name} must be a non-negative number, got {value}")
    return parsed
