"""
Command-line interface for the portfolio ledger.

Provides commands for:
- add-asset: Add or update an asset
- set-price: Set the current price of an asset
- add-tx: Append a transaction
- remove-tx: Delete a transaction by its listed index
- undo: Restore the state before the last change
- summary: Show holdings with realized and unrealized P&L
- transactions: List the transaction log
- export: Write the holdings summary to CSV
- import-tx: Append transactions from a CSV file
- log: Show the decision log
"""

import json
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click

from lotbook import __version__
from lotbook.config import ConfigurationError, load_app_config_or_default
from lotbook.data import (
    DataLoadError,
    StateLoadError,
    history_path_for,
    load_history,
    load_state_or_empty,
    load_transactions,
    save_history,
    save_holdings_summary,
    save_state,
)
from lotbook.logging import DecisionLogger, get_logger
from lotbook.models import ActionType, AppConfig, PortfolioState, TransactionType
from lotbook.portfolio import (
    ValidationError,
    add_or_update_asset,
    append_transaction,
    calculate_portfolio_return,
    calculate_totals,
    compute,
    make_transaction,
    remove_transaction_at,
    set_price,
    summarize,
)
from lotbook.portfolio.history import UndoHistory


@dataclass
class CliContext:
    """Settings shared by all commands of one invocation."""
    config: AppConfig
    state_path: Path
    color: bool
    logger: DecisionLogger

    @property
    def history_path(self) -> Path:
        return history_path_for(self.state_path)


@click.group()
@click.version_option(version=__version__, prog_name="lotbook")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to configuration YAML file",
)
@click.option(
    "--state", "-s",
    type=click.Path(),
    default=None,
    help="Path to the portfolio state file. Overrides config state_file.",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.pass_context
def main(ctx: click.Context, config: Optional[str], state: Optional[str], no_color: bool):
    """
    Personal portfolio ledger.

    Tracks assets, a transaction log and current prices, and reports
    holdings with FIFO cost basis, realized and unrealized P&L.
    """
    try:
        app_config = load_app_config_or_default(config)
    except ConfigurationError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    logger = get_logger(Path(app_config.output_dir) / "decision_log.jsonl")
    if config:
        logger.log_config_loaded(app_config, config)

    ctx.obj = CliContext(
        config=app_config,
        state_path=Path(state or app_config.state_file),
        color=app_config.color and not no_color,
        logger=logger,
    )


@main.command("add-asset")
@click.argument("ticker")
@click.option("--name", "-n", default=None, help="Display name (defaults to ticker)")
@click.option(
    "--category", "-t",
    default=None,
    help="Stock, ETF, MutualFund, Crypto, Bond or Other",
)
@click.option("--currency", "-u", default=None, help="Currency code")
@click.pass_obj
def add_asset(obj: CliContext, ticker: str, name: Optional[str], category: Optional[str], currency: Optional[str]):
    """Add an asset, or update it if the ticker already exists."""
    state, history = _load(obj)

    existed = ticker.strip() in state.assets
    try:
        new_state = add_or_update_asset(
            state,
            ticker,
            name=name,
            category=category,
            currency=currency,
            default_currency=obj.config.default_currency,
        )
    except ValidationError as e:
        _fail(str(e))

    _commit(obj, state, new_state, history)
    asset = new_state.assets[ticker.strip()]
    obj.logger.log_asset_upserted(asset, created=not existed)

    if existed:
        click.echo(_style("Already exists. Updated instead.", "yellow", obj.color))
    click.echo(_style(f"Saved asset {asset.ticker} ({asset.category.value}, {asset.currency}).", "green", obj.color))


@main.command("set-price")
@click.argument("ticker")
@click.argument("price")
@click.pass_obj
def set_price_cmd(obj: CliContext, ticker: str, price: str):
    """Set or update the current price per unit of TICKER."""
    state, history = _load(obj)

    previous = state.prices.get(ticker.strip())
    try:
        new_state = set_price(state, ticker, price)
    except ValidationError as e:
        _fail(str(e))

    _commit(obj, state, new_state, history)
    obj.logger.log_price_set(ticker.strip(), new_state.prices[ticker.strip()], previous)
    click.echo(_style("Price updated.", "green", obj.color))


@main.command("add-tx")
@click.argument("ticker")
@click.argument("tx_type", metavar="TYPE")
@click.option("--date", "-d", "tx_date", required=True, help="Transaction date (YYYY-MM-DD)")
@click.option("--quantity", "-q", required=True, help="Units, or amount for cash-style entries")
@click.option("--price", "-p", default=None, help="Price per unit (BUY/SELL)")
@click.option("--fees", "-f", default="0", help="Fees (default 0)")
@click.option("--note", default="", help="Optional note")
@click.pass_obj
def add_tx(
    obj: CliContext,
    ticker: str,
    tx_type: str,
    tx_date: str,
    quantity: str,
    price: Optional[str],
    fees: str,
    note: str,
):
    """
    Append a transaction for TICKER (use CASH for the cash ledger).

    TYPE is one of BUY, SELL, DIVIDEND, DEPOSIT, WITHDRAW, FEES.
    """
    state, history = _load(obj)

    try:
        tx = make_transaction(
            ticker=ticker,
            tx_type=tx_type,
            tx_date=tx_date,
            quantity=quantity,
            unit_price=price,
            fees=fees,
            note=note,
        )
        if tx.type in (TransactionType.BUY, TransactionType.SELL) and price is None:
            raise ValidationError(f"--price is required for {tx.type.value}")
        new_state = append_transaction(state, tx, obj.config.default_currency)
    except ValidationError as e:
        _fail(str(e))

    _commit(obj, state, new_state, history)
    obj.logger.log_transaction_added(tx, len(new_state.transactions))
    click.echo(_style("Transaction added.", "green", obj.color))


@main.command("remove-tx")
@click.argument("index", type=int)
@click.pass_obj
def remove_tx(obj: CliContext, index: int):
    """Remove the transaction at INDEX (1-based, as listed by `transactions`)."""
    state, history = _load(obj)

    try:
        new_state = remove_transaction_at(state, index - 1)
    except ValidationError as e:
        _fail(str(e))

    removed = state.transactions[index - 1]
    _commit(obj, state, new_state, history)
    obj.logger.log_transaction_removed(removed, index - 1)
    click.echo(_style("Removed.", "green", obj.color))


@main.command()
@click.pass_obj
def undo(obj: CliContext):
    """Restore the state before the last change."""
    _, history = _load(obj)

    previous = history.undo()
    if previous is None:
        click.echo(_style("Nothing to undo.", "red", obj.color))
        return

    save_state(previous, obj.state_path)
    save_history(history, obj.history_path)
    obj.logger.log_undo_applied(len(history))
    click.echo(_style("Undone.", "yellow", obj.color))


@main.command()
@click.pass_obj
def summary(obj: CliContext):
    """Show holdings, cost basis, realized and unrealized P&L."""
    state, _ = _load(obj)

    computed = compute(state)
    rows = summarize(computed, state.assets, state.prices)
    totals = calculate_totals(rows, computed)
    obj.logger.log_summary_calculated(rows, totals)

    click.echo()
    click.echo(_style("Portfolio Summary", None, obj.color, bold=True))
    header = (
        f"{'Ticker':<10}{'Name':<16}{'Type':<11}{'Qty':>12}{'AvgCost':>12}"
        f"{'Price':>12}{'Value':>14}{'Cost':>14}{'Unreal':>14}{'%':>9}{'Realized':>14}"
    )
    click.echo(header)
    click.echo("-" * len(header))

    for row in rows:
        unrealized = f"{row.unrealized_pnl:>14,.2f}"
        click.echo(
            f"{row.ticker:<10}{row.name[:15]:<16}{row.category.value[:10]:<11}"
            f"{row.quantity:>12,.4f}{row.average_cost:>12,.2f}{row.market_price:>12,.2f}"
            f"{row.market_value:>14,.2f}{row.cost_basis:>14,.2f}"
            + _style(unrealized, _pnl_color(row.unrealized_pnl), obj.color)
            + f"{row.unrealized_pnl_pct:>9.2f}{row.realized_pnl:>14,.2f}"
        )

    click.echo("-" * len(header))
    return_pct = calculate_portfolio_return(totals)
    click.echo(f"  Market Value:   {totals.market_value:,.2f}")
    click.echo(f"  Cost Basis:     {totals.cost_basis:,.2f}")
    click.echo(
        "  Unrealized P&L: "
        + _style(f"{totals.unrealized_pnl:,.2f}", _pnl_color(totals.unrealized_pnl), obj.color)
        + f" ({return_pct:.2%})"
    )
    click.echo(f"  Realized P&L:   {totals.realized_pnl:,.2f}")
    click.echo(f"  Cash:           {totals.cash:,.2f}")


@main.command()
@click.option("--ticker", "-t", default=None, help="Only show transactions for this ticker")
@click.pass_obj
def transactions(obj: CliContext, ticker: Optional[str]):
    """List the transaction log with indexes for remove-tx."""
    state, _ = _load(obj)

    click.echo()
    click.echo(_style("Transactions", None, obj.color, bold=True))
    header = f"{'#':<5}{'Date':<12}{'Ticker':<12}{'Type':<10}{'Qty':>14}{'Price':>12}{'Fees':>10}  Note"
    click.echo(header)
    click.echo("-" * len(header))

    for i, tx in enumerate(state.transactions, start=1):
        if ticker and tx.ticker != ticker:
            continue
        click.echo(
            f"{i:<5}{tx.date.isoformat():<12}{tx.ticker:<12}{tx.type.value:<10}"
            f"{tx.quantity:>14,.4f}{tx.unit_price:>12,.2f}{tx.fees:>10,.2f}  {tx.note}"
        )


@main.command()
@click.argument("output_csv", type=click.Path())
@click.pass_obj
def export(obj: CliContext, output_csv: str):
    """Export the holdings summary to OUTPUT_CSV (cash goes to a *_cash.csv file)."""
    state, _ = _load(obj)

    computed = compute(state)
    rows = summarize(computed, state.assets, state.prices)
    holdings_path, cash_path = save_holdings_summary(rows, computed.cash, output_csv)
    obj.logger.log_state_exported(holdings_path, len(rows))

    click.echo(_style(f"Exported CSV: {holdings_path}", "green", obj.color))
    click.echo(f"  Cash balance: {cash_path}")


@main.command("import-tx")
@click.argument("input_csv", type=click.Path(exists=True))
@click.pass_obj
def import_tx(obj: CliContext, input_csv: str):
    """Append every transaction in INPUT_CSV as one undoable change."""
    state, history = _load(obj)

    try:
        imported = load_transactions(input_csv)
        new_state = state
        for tx in imported:
            new_state = append_transaction(new_state, tx, obj.config.default_currency)
    except (DataLoadError, ValidationError) as e:
        _fail(str(e))

    _commit(obj, state, new_state, history)
    for tx in imported:
        obj.logger.log_transaction_added(tx, len(new_state.transactions))
    click.echo(_style(f"Imported {len(imported)} transactions.", "green", obj.color))


@main.command("log")
@click.option("--ticker", "-t", default=None, help="Only show entries for this ticker")
@click.option(
    "--action", "-a",
    type=click.Choice([a.value for a in ActionType], case_sensitive=False),
    default=None,
    help="Only show entries of this action type",
)
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Most recent entries to show (0 for all)")
@click.pass_obj
def log_cmd(obj: CliContext, ticker: Optional[str], action: Optional[str], limit: int):
    """Show the decision log, most recent entries last."""
    if action:
        entries = obj.logger.filter_by_action_type(ActionType(action.upper()))
        if ticker:
            entries = [e for e in entries if e.ticker == ticker]
    elif ticker:
        entries = obj.logger.filter_by_ticker(ticker)
    else:
        entries = obj.logger.read_log()

    if limit > 0:
        entries = entries[-limit:]

    if not entries:
        click.echo("No log entries.")
        return

    for entry in entries:
        click.echo(
            f"{entry.timestamp.isoformat(timespec='seconds')}  "
            f"{entry.action_type.value:<20}{entry.ticker or '-':<10}"
            f"{json.dumps(entry.details)}"
        )


def _load(obj: CliContext) -> tuple[PortfolioState, UndoHistory]:
    """Load state and undo history, exiting on a corrupt state file."""
    try:
        state = load_state_or_empty(obj.state_path)
    except StateLoadError as e:
        click.echo(f"Error loading state: {e}", err=True)
        sys.exit(1)
    return state, _load_history(obj)


def _load_history(obj: CliContext) -> UndoHistory:
    try:
        return load_history(obj.history_path, limit=obj.config.undo_limit)
    except StateLoadError as e:
        click.echo(f"Error loading undo history: {e}", err=True)
        sys.exit(1)


def _commit(
    obj: CliContext,
    previous: PortfolioState,
    new_state: PortfolioState,
    history: UndoHistory,
) -> None:
    """Record the previous state for undo and persist the new one."""
    history.push(previous)
    save_history(history, obj.history_path)
    save_state(new_state, obj.state_path)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _pnl_color(amount: Decimal) -> str:
    return "green" if amount >= Decimal("0") else "red"


def _style(text: str, fg: Optional[str], color: bool, bold: bool = False) -> str:
    if not color:
        return text
    return click.style(text, fg=fg, bold=bold)


if __name__ == "__main__":
    main()
