"""
Decision logging module for the portfolio ledger.

Provides append-only decision logging for audit and reproducibility.
"""

from lotbook.logging.decision_log import (
    DecisionLogger,
    get_logger,
)

__all__ = [
    "DecisionLogger",
    "get_logger",
]
