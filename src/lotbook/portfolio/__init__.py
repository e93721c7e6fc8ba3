"""
Portfolio module for the portfolio ledger.

Provides FIFO lot tracking, the cash ledger, the valuation engine,
holdings summaries, state mutations and undo history.
"""

from lotbook.portfolio.lots import LotTracker, EPSILON
from lotbook.portfolio.cash import CashLedger, cash_effect
from lotbook.portfolio.valuation import compute, ValuationError
from lotbook.portfolio.holdings import (
    summarize,
    calculate_totals,
    calculate_portfolio_return,
)
from lotbook.portfolio.book import (
    add_or_update_asset,
    ensure_asset,
    set_price,
    make_transaction,
    append_transaction,
    remove_transaction_at,
    ValidationError,
    UnknownTickerError,
)
from lotbook.portfolio.history import UndoHistory

__all__ = [
    "LotTracker",
    "EPSILON",
    "CashLedger",
    "cash_effect",
    "compute",
    "ValuationError",
    "summarize",
    "calculate_totals",
    "calculate_portfolio_return",
    "add_or_update_asset",
    "ensure_asset",
    "set_price",
    "make_transaction",
    "append_transaction",
    "remove_transaction_at",
    "ValidationError",
    "UnknownTickerError",
    "UndoHistory",
]
