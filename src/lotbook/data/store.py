"""
JSON persistence for the portfolio state.

The document layout is fixed and decoded strictly: a missing field, an
unknown field, an unparseable number or date, or an unknown enum value raises
StateLoadError instead of being skipped. Decimals are stored as strings so
quantities, prices and fees round-trip without loss.

Document layout:
    {
      "assets": [{"ticker", "name", "category", "currency"}, ...],
      "prices": {ticker: "price", ...},
      "realized": {ticker: "amount", ...},
      "transactions": [{"ticker", "type", "date", "quantity",
                        "unit_price", "fees", "note"}, ...]
    }
"""

import json
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from lotbook.models import (
    Asset,
    AssetCategory,
    PortfolioState,
    Transaction,
    TransactionType,
)
from lotbook.portfolio.history import UndoHistory, DEFAULT_UNDO_LIMIT
from lotbook.portfolio.valuation import ValuationError, compute


_TOP_LEVEL_FIELDS = {"assets", "prices", "realized", "transactions"}
_ASSET_FIELDS = {"ticker", "name", "category", "currency"}
_TRANSACTION_FIELDS = {"ticker", "type", "date", "quantity", "unit_price", "fees", "note"}


class StateLoadError(Exception):
    """Raised when a persisted state document is missing or corrupt."""
    pass


def state_to_dict(state: PortfolioState) -> dict[str, Any]:
    """
    Convert a state to its JSON-ready document form.

    Args:
        state: Portfolio state

    Returns:
        Dictionary following the document layout
    """
    return {
        "assets": [
            {
                "ticker": asset.ticker,
                "name": asset.name,
                "category": asset.category.value,
                "currency": asset.currency,
            }
            for asset in state.assets.values()
        ],
        "prices": {ticker: str(price) for ticker, price in state.prices.items()},
        "realized": {ticker: str(amount) for ticker, amount in state.realized.items()},
        "transactions": [
            {
                "ticker": tx.ticker,
                "type": tx.type.value,
                "date": tx.date.isoformat(),
                "quantity": str(tx.quantity),
                "unit_price": str(tx.unit_price),
                "fees": str(tx.fees),
                "note": tx.note,
            }
            for tx in state.transactions
        ],
    }


def state_from_dict(raw: Any) -> PortfolioState:
    """
    Decode a document into a PortfolioState.

    Args:
        raw: Parsed JSON document

    Returns:
        PortfolioState

    Raises:
        StateLoadError: If the document does not match the layout exactly
    """
    _check_fields(raw, _TOP_LEVEL_FIELDS, "state document")

    assets_raw = raw["assets"]
    if not isinstance(assets_raw, list):
        raise StateLoadError("'assets' must be a list")

    assets: dict[str, Asset] = {}
    for i, item in enumerate(assets_raw):
        where = f"assets[{i}]"
        _check_fields(item, _ASSET_FIELDS, where)
        ticker = _require_str(item["ticker"], f"{where}.ticker", allow_empty=False)
        if ticker in assets:
            raise StateLoadError(f"Duplicate asset ticker: {ticker}")
        try:
            category = AssetCategory(item["category"])
        except ValueError:
            raise StateLoadError(f"{where}.category: unknown category {item['category']!r}")
        assets[ticker] = Asset(
            ticker=ticker,
            name=_require_str(item["name"], f"{where}.name"),
            category=category,
            currency=_require_str(item["currency"], f"{where}.currency"),
        )

    transactions = []
    transactions_raw = raw["transactions"]
    if not isinstance(transactions_raw, list):
        raise StateLoadError("'transactions' must be a list")

    for i, item in enumerate(transactions_raw):
        where = f"transactions[{i}]"
        _check_fields(item, _TRANSACTION_FIELDS, where)
        try:
            tx_type = TransactionType(item["type"])
        except ValueError:
            raise StateLoadError(f"{where}.type: unknown transaction type {item['type']!r}")
        transactions.append(
            Transaction(
                ticker=_require_str(item["ticker"], f"{where}.ticker", allow_empty=False),
                type=tx_type,
                date=_decode_date(item["date"], f"{where}.date"),
                quantity=_decode_decimal(item["quantity"], f"{where}.quantity"),
                unit_price=_decode_decimal(item["unit_price"], f"{where}.unit_price"),
                fees=_decode_decimal(item["fees"], f"{where}.fees"),
                note=_require_str(item["note"], f"{where}.note"),
            )
        )

    return PortfolioState(
        assets=assets,
        prices=_decode_decimal_map(raw["prices"], "prices"),
        transactions=transactions,
        realized=_decode_decimal_map(raw["realized"], "realized"),
    )


def dumps_state(state: PortfolioState) -> str:
    """Serialize a state to a compact single-line JSON string."""
    return json.dumps(state_to_dict(state), separators=(",", ":"))


def loads_state(text: str) -> PortfolioState:
    """
    Parse a JSON string into a PortfolioState.

    Raises:
        StateLoadError: If the text is not valid JSON or not a valid document
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise StateLoadError(f"Invalid JSON: {e}")
    return state_from_dict(raw)


def save_state(state: PortfolioState, output_path: str | Path) -> Path:
    """
    Write a state document to disk.

    Args:
        state: Portfolio state
        output_path: Path for the JSON file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(state_to_dict(state), f, indent=2)
        f.write("\n")

    return output_path


def load_state(file_path: str | Path) -> PortfolioState:
    """
    Load and verify a state document.

    The transaction log is replayed once so a log the engine cannot process
    fails here, at load time, rather than later.

    Args:
        file_path: Path to the JSON file

    Returns:
        PortfolioState

    Raises:
        StateLoadError: If the file is missing, malformed or cannot be replayed
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise StateLoadError(f"State file not found: {file_path}")

    try:
        text = file_path.read_text()
    except OSError as e:
        raise StateLoadError(f"Failed to read state file {file_path}: {e}")

    state = loads_state(text)

    try:
        compute(state)
    except ValuationError as e:
        raise StateLoadError(f"State file {file_path} holds an invalid log: {e}")

    return state


def load_state_or_empty(file_path: str | Path) -> PortfolioState:
    """Load a state document, or start empty if the file does not exist yet."""
    if not Path(file_path).exists():
        return PortfolioState()
    return load_state(file_path)


def history_path_for(state_path: str | Path) -> Path:
    """Path of the undo-history file kept next to a state file."""
    state_path = Path(state_path)
    return state_path.with_name(state_path.name + ".history.jsonl")


def save_history(history: UndoHistory, output_path: str | Path) -> Path:
    """
    Write undo snapshots as JSONL, oldest first.

    Args:
        history: Undo history
        output_path: Path for the JSONL file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        for snapshot in history.snapshots:
            f.write(dumps_state(snapshot) + "\n")

    return output_path


def load_history(
    file_path: str | Path,
    limit: int = DEFAULT_UNDO_LIMIT,
) -> UndoHistory:
    """
    Read undo snapshots written by save_history.

    Args:
        file_path: Path to the JSONL file (may not exist)
        limit: Maximum snapshots to keep

    Returns:
        UndoHistory, empty if the file does not exist

    Raises:
        StateLoadError: If any line is not a valid state document
    """
    file_path = Path(file_path)
    snapshots = []
    if file_path.exists():
        with open(file_path, "r") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    snapshots.append(loads_state(line))
                except StateLoadError as e:
                    raise StateLoadError(f"{file_path}, line {line_no}: {e}")

    return UndoHistory(limit=limit, snapshots=snapshots)


def _check_fields(raw: Any, expected: set[str], where: str) -> None:
    if not isinstance(raw, dict):
        raise StateLoadError(f"{where} must be an object")
    missing = sorted(expected - set(raw))
    if missing:
        raise StateLoadError(f"{where} is missing fields: {missing}")
    extra = sorted(set(raw) - expected)
    if extra:
        raise StateLoadError(f"{where} has unknown fields: {extra}")


def _require_str(value: Any, where: str, allow_empty: bool = True) -> str:
    if not isinstance(value, str):
        raise StateLoadError(f"{where} must be a string")
    if not allow_empty and not value:
        raise StateLoadError(f"{where} cannot be empty")
    return value


def _decode_decimal(value: Any, where: str) -> Decimal:
    # Plain JSON numbers are accepted; bools are not numbers here
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise StateLoadError(f"{where} must be a number")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise StateLoadError(f"{where}: invalid number {value!r}")
    if not result.is_finite():
        raise StateLoadError(f"{where}: invalid number {value!r}")
    return result


def _decode_decimal_map(raw: Any, where: str) -> dict[str, Decimal]:
    if not isinstance(raw, dict):
        raise StateLoadError(f"'{where}' must be an object")
    return {
        str(key): _decode_decimal(value, f"{where}.{key}")
        for key, value in raw.items()
    }


def _decode_date(value: Any, where: str) -> date:
    if not isinstance(value, str):
        raise StateLoadError(f"{where} must be a YYYY-MM-DD string")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise StateLoadError(f"{where}: invalid date {value!r}")
