"""
Append-only decision logging for the portfolio ledger.

Every change to the portfolio state, and every computed summary, is logged
with a timestamp to support auditability and reproducibility.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from lotbook.models import (
    ActionType,
    AppConfig,
    Asset,
    DecisionLogEntry,
    HoldingSummary,
    PortfolioTotals,
    Transaction,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the decision logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """
        Write a decision log entry.

        Args:
            entry: DecisionLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "ticker": entry.ticker,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def log_asset_upserted(self, asset: Asset, created: bool) -> None:
        """
        Log creation or update of an asset.

        Args:
            asset: Asset as stored
            created: True if the ticker was new
        """
        details = {
            "created": created,
            "name": asset.name,
            "category": asset.category.value,
            "currency": asset.currency,
        }
        self._write(ActionType.ASSET_UPSERTED, asset.ticker, details)

    def log_price_set(
        self,
        ticker: str,
        price: Decimal,
        previous: Optional[Decimal],
    ) -> None:
        """
        Log a price update.

        Args:
            ticker: Asset ticker
            price: New price
            previous: Price before the update, if any
        """
        details = {
            "price": str(price),
            "previous_price": str(previous) if previous is not None else None,
        }
        self._write(ActionType.PRICE_SET, ticker, details)

    def log_transaction_added(self, tx: Transaction, log_size: int) -> None:
        """
        Log a transaction appended to the log.

        Args:
            tx: Transaction appended
            log_size: Number of transactions after the append
        """
        details = {
            "type": tx.type.value,
            "date": tx.date.isoformat(),
            "quantity": str(tx.quantity),
            "unit_price": str(tx.unit_price),
            "fees": str(tx.fees),
            "note": tx.note,
            "log_size": log_size,
        }
        self._write(ActionType.TRANSACTION_ADDED, tx.ticker, details)

    def log_transaction_removed(self, tx: Transaction, index: int) -> None:
        """
        Log deletion of a transaction.

        Args:
            tx: Transaction removed
            index: Zero-based position it occupied
        """
        details = {
            "index": index,
            "type": tx.type.value,
            "date": tx.date.isoformat(),
            "quantity": str(tx.quantity),
        }
        self._write(ActionType.TRANSACTION_REMOVED, tx.ticker, details)

    def log_undo_applied(self, remaining: int) -> None:
        """
        Log an undo.

        Args:
            remaining: Snapshots left in the history after the undo
        """
        self._write(ActionType.UNDO_APPLIED, None, {"remaining_snapshots": remaining})

    def log_summary_calculated(
        self,
        summaries: list[HoldingSummary],
        totals: PortfolioTotals,
    ) -> None:
        """
        Log a holdings summary computation.

        Args:
            summaries: Holdings rows produced
            totals: Portfolio totals
        """
        details = {
            "num_positions": len(summaries),
            "total_market_value": str(totals.market_value),
            "total_cost_basis": str(totals.cost_basis),
            "total_unrealized_pnl": str(totals.unrealized_pnl),
            "total_realized_pnl": str(totals.realized_pnl),
            "cash": str(totals.cash),
        }
        self._write(ActionType.SUMMARY_CALCULATED, None, details)

    def log_state_exported(self, output_path: str | Path, num_rows: int) -> None:
        """
        Log a CSV export.

        Args:
            output_path: File written
            num_rows: Number of rows exported
        """
        details = {"output_path": str(output_path), "num_rows": num_rows}
        self._write(ActionType.STATE_EXPORTED, None, details)

    def log_config_loaded(
        self,
        config: AppConfig,
        config_path: Optional[str],
    ) -> None:
        """
        Log configuration loading.

        Args:
            config: Loaded configuration
            config_path: Path to configuration file, None for defaults
        """
        details = {
            "config_path": config_path,
            "state_file": config.state_file,
            "output_dir": config.output_dir,
            "default_currency": config.default_currency,
            "undo_limit": config.undo_limit,
        }
        self._write(ActionType.CONFIG_LOADED, None, details)

    def _write(self, action_type: ActionType, ticker: Optional[str], details: dict) -> None:
        entry = DecisionLogEntry.create(
            action_type=action_type,
            ticker=ticker,
            details=details,
        )
        self.log(entry)

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        ticker=record.get("ticker"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_ticker(
        self,
        ticker: str,
    ) -> list[DecisionLogEntry]:
        """
        Get log entries for a specific ticker.

        Args:
            ticker: Ticker to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.ticker == ticker]

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[DecisionLogEntry]:
        """
        Get log entries of a specific action type.

        Args:
            action_type: Action type to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Get or create the global decision logger.

    Args:
        log_path: Optional path to initialize logger (required on first call)

    Returns:
        DecisionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "output/decision_log.jsonl"
        _global_logger = DecisionLogger(log_path)
    elif log_path is not None:
        # Allow reinitializing with new path
        _global_logger = DecisionLogger(log_path)

    return _global_logger
