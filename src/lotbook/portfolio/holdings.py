"""
Holdings summaries for the portfolio ledger.

Turns a Computed snapshot plus asset metadata and current prices into
per-ticker summary rows, and aggregates them into portfolio totals.
"""

from decimal import Decimal
from typing import Optional

from lotbook.models import (
    Asset,
    AssetCategory,
    Computed,
    HoldingSummary,
    Lot,
    PortfolioTotals,
)
from lotbook.portfolio.lots import EPSILON


def summarize(
    computed: Computed,
    assets: dict[str, Asset],
    prices: dict[str, Decimal],
) -> list[HoldingSummary]:
    """
    Create holdings summary rows, one per ticker with open quantity.

    Tickers whose lots have all been sold, or whose open quantity is zero,
    are omitted whatever their realized P&L. A ticker without a price is
    valued at zero.

    Args:
        computed: Snapshot from the valuation engine
        assets: Asset directory by ticker
        prices: Current price per ticker

    Returns:
        List of HoldingSummary rows sorted by market value descending
    """
    summaries = []
    for ticker, lots in computed.lots.items():
        if _open_quantity(lots) <= EPSILON:
            continue

        summaries.append(
            summarize_ticker(
                ticker=ticker,
                lots=lots,
                asset=assets.get(ticker),
                price=prices.get(ticker, Decimal("0")),
                realized=computed.realized.get(ticker, Decimal("0")),
            )
        )

    # Sort by market value descending (sort is stable for ties)
    summaries.sort(key=lambda x: x.market_value, reverse=True)

    return summaries


def summarize_ticker(
    ticker: str,
    lots: list[Lot],
    asset: Optional[Asset],
    price: Decimal,
    realized: Decimal,
) -> HoldingSummary:
    """
    Build the summary row for a single ticker.

    Args:
        ticker: Asset ticker
        lots: Open lots for the ticker
        asset: Asset metadata, if known
        price: Current market price
        realized: Realized P&L for the ticker

    Returns:
        HoldingSummary for the ticker
    """
    quantity = sum((lot.remaining_quantity for lot in lots), Decimal("0"))
    cost_basis = sum((lot.remaining_total_cost for lot in lots), Decimal("0"))

    # Avoid division by zero
    if quantity != Decimal("0"):
        average_cost = cost_basis / quantity
    else:
        average_cost = Decimal("0")

    market_value = quantity * price
    unrealized_pnl = market_value - cost_basis

    if cost_basis != Decimal("0"):
        unrealized_pnl_pct = unrealized_pnl / cost_basis * Decimal("100")
    else:
        unrealized_pnl_pct = Decimal("0")

    if asset is not None:
        name, category, currency = asset.name, asset.category, asset.currency
    else:
        name, category, currency = ticker, AssetCategory.OTHER, ""

    return HoldingSummary(
        ticker=ticker,
        name=name,
        category=category,
        currency=currency,
        quantity=quantity,
        average_cost=average_cost,
        market_price=price,
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pnl=unrealized_pnl,
        unrealized_pnl_pct=unrealized_pnl_pct,
        realized_pnl=realized,
    )


def calculate_totals(
    summaries: list[HoldingSummary],
    computed: Computed,
) -> PortfolioTotals:
    """
    Aggregate summary rows into portfolio totals.

    Realized P&L is summed over every ticker in the snapshot, including
    positions that have been fully closed.

    Args:
        summaries: Holdings summary rows
        computed: Snapshot the rows were built from

    Returns:
        PortfolioTotals
    """
    return PortfolioTotals(
        market_value=sum((s.market_value for s in summaries), Decimal("0")),
        cost_basis=sum((s.cost_basis for s in summaries), Decimal("0")),
        unrealized_pnl=sum((s.unrealized_pnl for s in summaries), Decimal("0")),
        realized_pnl=sum(computed.realized.values(), Decimal("0")),
        cash=computed.cash,
    )


def calculate_portfolio_return(totals: PortfolioTotals) -> Decimal:
    """
    Calculate simple unrealized return.

    Args:
        totals: Portfolio totals

    Returns:
        Return as decimal (e.g., 0.05 for 5%)
    """
    if totals.cost_basis == Decimal("0"):
        return Decimal("0")

    return totals.unrealized_pnl / totals.cost_basis


def get_portfolio_tickers(computed: Computed) -> set[str]:
    """
    Get tickers that currently have open quantity.

    Args:
        computed: Valuation snapshot

    Returns:
        Set of tickers with a non-zero open quantity
    """
    return {
        ticker for ticker, lots in computed.lots.items()
        if _open_quantity(lots) > EPSILON
    }


def _open_quantity(lots: list[Lot]) -> Decimal:
    return sum((lot.remaining_quantity for lot in lots), Decimal("0"))
