"""
Data module for the portfolio ledger.

Provides JSON state persistence with undo history, and CSV import/export
of transactions and holdings summaries.
"""

from lotbook.data.loaders import (
    DataLoadError,
    load_transactions,
    save_transactions,
    save_holdings_summary,
)
from lotbook.data.store import (
    StateLoadError,
    save_state,
    load_state,
    load_state_or_empty,
    save_history,
    load_history,
    history_path_for,
)

__all__ = [
    "DataLoadError",
    "load_transactions",
    "save_transactions",
    "save_holdings_summary",
    "StateLoadError",
    "save_state",
    "load_state",
    "load_state_or_empty",
    "save_history",
    "load_history",
    "history_path_for",
]
