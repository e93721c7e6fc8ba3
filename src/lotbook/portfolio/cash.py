"""
Cash ledger for the portfolio.

Maintains a single running cash balance from trade settlements, dividends and
pure cash events. Overdraft is allowed; a negative balance is reported as-is.
"""

from decimal import Decimal

from lotbook.models import Transaction, TransactionType


def cash_effect(tx: Transaction) -> Decimal:
    """
    Signed change in cash caused by a transaction.

    Args:
        tx: Transaction to evaluate

    Returns:
        Positive for inflows, negative for outflows
    """
    if tx.type == TransactionType.BUY:
        return -(tx.quantity * tx.unit_price + tx.fees)
    if tx.type == TransactionType.SELL:
        return tx.quantity * tx.unit_price - tx.fees
    if tx.type in (TransactionType.DIVIDEND, TransactionType.DEPOSIT):
        return tx.quantity
    if tx.type in (TransactionType.WITHDRAW, TransactionType.FEES):
        return -tx.quantity
    return Decimal("0")


class CashLedger:
    """Running cash balance."""

    def __init__(self, opening_balance: Decimal = Decimal("0")):
        self.balance = opening_balance

    def apply(self, tx: Transaction) -> Decimal:
        """
        Post a transaction's cash effect to the balance.

        Args:
            tx: Transaction to post

        Returns:
            The new balance
        """
        self.balance += cash_effect(tx)
        return self.balance
