"""
FIFO tax-lot tracking.

Each ticker owns a queue of open lots in acquisition order. Buys append to the
tail; sells consume from the head at each lot's own average cost.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal

from lotbook.models import Lot


# Quantities at or below this are treated as fully consumed
EPSILON = Decimal("1e-9")


class LotTracker:
    """
    Per-ticker FIFO queues of open tax lots.

    The tracker is local to one valuation pass; it is never shared between
    passes.
    """

    def __init__(self):
        self._lots: dict[str, list[Lot]] = defaultdict(list)

    def apply_buy(
        self,
        ticker: str,
        quantity: Decimal,
        unit_price: Decimal,
        fees: Decimal,
        acquisition_date: date,
    ) -> Lot:
        """
        Open a new lot at the tail of the ticker's queue.

        Args:
            ticker: Asset ticker
            quantity: Units purchased
            unit_price: Price per unit
            fees: Purchase fees, folded into the lot's cost
            acquisition_date: Purchase date

        Returns:
            The newly opened Lot
        """
        lot = Lot(
            remaining_quantity=quantity,
            remaining_total_cost=quantity * unit_price + fees,
            acquisition_date=acquisition_date,
        )
        self._lots[ticker].append(lot)
        return lot

    def apply_sell(
        self,
        ticker: str,
        quantity: Decimal,
        unit_price: Decimal,
        fees: Decimal = Decimal("0"),
    ) -> Decimal:
        """
        Consume open lots oldest-first and return the realized P&L delta.

        Units sold beyond what the queue holds are disposed of at a zero cost
        basis, so the whole sale price of the excess is realized.

        Sell fees are accepted for signature symmetry but are not applied here;
        the caller deducts them from realized P&L once.

        Args:
            ticker: Asset ticker
            quantity: Units sold
            unit_price: Sale price per unit
            fees: Sale fees (not applied)

        Returns:
            Realized P&L of the sale before fees
        """
        queue = self._lots[ticker]
        remaining = quantity
        realized_delta = Decimal("0")

        while remaining > EPSILON and queue:
            lot = queue[0]
            taken = min(lot.remaining_quantity, remaining)
            lot_average = lot.average_cost

            realized_delta += taken * (unit_price - lot_average)

            # Subtract at the lot's average rather than re-deriving a ratio
            lot.remaining_quantity -= taken
            lot.remaining_total_cost -= lot_average * taken
            remaining -= taken

            if lot.remaining_quantity <= EPSILON:
                queue.pop(0)

        if remaining > EPSILON:
            realized_delta += remaining * unit_price

        return realized_delta

    def lots_for(self, ticker: str) -> list[Lot]:
        """Open lots for a ticker, oldest first."""
        return self._lots.get(ticker, [])

    def open_quantity(self, ticker: str) -> Decimal:
        """Total units held across a ticker's open lots."""
        return sum(
            (lot.remaining_quantity for lot in self.lots_for(ticker)),
            Decimal("0"),
        )

    def snapshot(self) -> dict[str, list[Lot]]:
        """
        Copy every queue so callers cannot alias tracker state.

        Returns:
            Dictionary mapping ticker to a list of Lot copies
        """
        return {
            ticker: [
                Lot(
                    remaining_quantity=lot.remaining_quantity,
                    remaining_total_cost=lot.remaining_total_cost,
                    acquisition_date=lot.acquisition_date,
                )
                for lot in queue
            ]
            for ticker, queue in self._lots.items()
        }
