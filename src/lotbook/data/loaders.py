"""
Data loading and saving functions for CSV files.

Handles import of transaction logs and export of transaction logs and
holdings summaries.
"""

from decimal import Decimal
from pathlib import Path

import pandas as pd

from lotbook.data.schemas import (
    CASH_SCHEMA,
    FileSchema,
    HOLDINGS_SUMMARY_SCHEMA,
    TRANSACTIONS_SCHEMA,
)
from lotbook.models import HoldingSummary, Transaction
from lotbook.portfolio.book import ValidationError, make_transaction


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_transactions(file_path: str | Path) -> list[Transaction]:
    """
    Load a transaction log from CSV file.

    All columns are read as text so quantities, prices and fees keep their
    full decimal precision. Rows are returned in file order.

    Args:
        file_path: Path to CSV file with columns: date, ticker, type, quantity,
                   and optionally unit_price, fees, note

    Returns:
        List of Transaction objects

    Raises:
        DataLoadError: If file cannot be loaded or a row is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, TRANSACTIONS_SCHEMA)

    transactions = []
    for i, row in df.iterrows():
        try:
            transactions.append(
                make_transaction(
                    ticker=row["ticker"],
                    tx_type=row["type"],
                    tx_date=row["date"],
                    quantity=row["quantity"],
                    unit_price=row.get("unit_price", ""),
                    fees=row.get("fees", ""),
                    note=row.get("note", ""),
                )
            )
        except ValidationError as e:
            # Header is line 1
            raise DataLoadError(f"{file_path}, line {i + 2}: {e}")

    return transactions


def save_transactions(
    transactions: list[Transaction],
    output_path: str | Path,
) -> Path:
    """
    Save a transaction log to CSV file.

    Args:
        transactions: List of Transaction objects to save
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for tx in transactions:
        records.append({
            "date": tx.date.isoformat(),
            "ticker": tx.ticker,
            "type": tx.type.value,
            "quantity": str(tx.quantity),
            "unit_price": str(tx.unit_price),
            "fees": str(tx.fees),
            "note": tx.note,
        })

    df = pd.DataFrame(records, columns=TRANSACTIONS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def save_holdings_summary(
    summaries: list[HoldingSummary],
    cash: Decimal,
    output_path: str | Path,
) -> tuple[Path, Path]:
    """
    Save holdings summary rows to CSV, with the cash balance in a sibling file.

    Numbers are written as decimal strings so small quantities and costs
    keep their full precision.

    Args:
        summaries: Holdings summary rows
        cash: Cash ledger balance
        output_path: Path for output CSV file

    Returns:
        Tuple of (holdings path, cash path)
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for row in summaries:
        records.append({
            "ticker": row.ticker,
            "name": row.name,
            "category": row.category.value,
            "currency": row.currency,
            "quantity": _plain(row.quantity),
            "average_cost": _plain(row.average_cost),
            "market_price": _plain(row.market_price),
            "market_value": _plain(row.market_value),
            "cost_basis": _plain(row.cost_basis),
            "unrealized_pnl": _plain(row.unrealized_pnl),
            "unrealized_pnl_pct": _plain(row.unrealized_pnl_pct),
            "realized_pnl": _plain(row.realized_pnl),
        })

    df = pd.DataFrame(records, columns=HOLDINGS_SUMMARY_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    cash_path = output_path.with_name(f"{output_path.stem}_cash{output_path.suffix}")
    cash_df = pd.DataFrame([{"cash": _plain(cash)}], columns=CASH_SCHEMA.all_columns)
    cash_df.to_csv(cash_path, index=False)

    return output_path, cash_path


def _plain(value: Decimal) -> str:
    # Fixed-point text, never exponent notation
    return format(value, "f")


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file as text columns and validate against schema.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame with empty cells as ""

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    except Exception as e:
        raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    # Validate columns
    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
