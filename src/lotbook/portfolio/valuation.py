"""
Valuation engine.

Replays the transaction log in stored order, driving the lot tracker and the
cash ledger, and produces a Computed snapshot. The pass is a pure function of
the state: it never mutates the log or the seed realized values, so the same
state always yields the same snapshot.
"""

from decimal import Decimal

from lotbook.models import (
    Computed,
    PortfolioState,
    Transaction,
    TransactionType,
)
from lotbook.portfolio.cash import CashLedger, cash_effect
from lotbook.portfolio.lots import LotTracker


class ValuationError(Exception):
    """Raised when the transaction log cannot be replayed."""
    pass


_CASH_ONLY_TYPES = (
    TransactionType.DEPOSIT,
    TransactionType.WITHDRAW,
    TransactionType.FEES,
)


def compute(state: PortfolioState) -> Computed:
    """
    Replay the transaction log into open lots, realized P&L and cash.

    The log is expected to be sorted by date already; it is processed
    exactly in stored order.

    Args:
        state: Portfolio state holding the log and seed realized values

    Returns:
        Computed snapshot

    Raises:
        ValuationError: If the log holds a trade or dividend against CASH
    """
    tracker = LotTracker()
    ledger = CashLedger()
    realized: dict[str, Decimal] = dict(state.realized)

    for position, tx in enumerate(state.transactions):
        if tx.is_cash:
            _apply_cash_event(tx, ledger, position)
            continue

        if tx.type == TransactionType.BUY:
            tracker.apply_buy(
                tx.ticker, tx.quantity, tx.unit_price, tx.fees, tx.date
            )
            ledger.apply(tx)

        elif tx.type == TransactionType.SELL:
            realized_delta = tracker.apply_sell(
                tx.ticker, tx.quantity, tx.unit_price, tx.fees
            )
            ledger.apply(tx)
            # Fees already reduced the cash proceeds; charge them to realized once
            realized[tx.ticker] = (
                realized.get(tx.ticker, Decimal("0")) + realized_delta - tx.fees
            )

        elif tx.type == TransactionType.DIVIDEND:
            ledger.apply(tx)
            realized[tx.ticker] = (
                realized.get(tx.ticker, Decimal("0")) + tx.quantity
            )

        elif tx.type == TransactionType.FEES:
            ledger.apply(tx)

        # DEPOSIT/WITHDRAW against a security ticker carry no meaning

    return Computed(
        lots=tracker.snapshot(),
        realized=realized,
        cash=ledger.balance,
    )


def _apply_cash_event(tx: Transaction, ledger: CashLedger, position: int) -> None:
    """Post a CASH-ticker transaction, rejecting trade types."""
    if tx.type not in _CASH_ONLY_TYPES:
        raise ValuationError(
            f"Transaction #{position + 1} ({tx.date.isoformat()}): "
            f"{tx.type.value} is not valid for the cash ledger"
        )
    ledger.apply(tx)


def total_cash_flow(transactions: list[Transaction]) -> Decimal:
    """
    Sum the cash effect of every transaction the engine posts to cash.

    Matches Computed.cash for any log compute() accepts.

    Args:
        transactions: Transaction log

    Returns:
        Net cash flow
    """
    total = Decimal("0")
    for tx in transactions:
        if not tx.is_cash and tx.type in (
            TransactionType.DEPOSIT,
            TransactionType.WITHDRAW,
        ):
            continue
        total += cash_effect(tx)
    return total
