"""
Personal Portfolio Ledger (lotbook)

Tracks a personal investment portfolio from a chronological transaction log:
named assets, cash movements, security trades and current prices. The
valuation engine replays the log into FIFO tax lots, a cash balance and
realized P&L, and derives a holdings summary with unrealized P&L.
"""

__version__ = "0.1.0"
__author__ = "lotbook maintainers"
