"""Command-line entry points for running simulations and forecasts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .logging_config import setup_logging
from .services.export_csv import export_ledger_csv
from .services.forecast import save_forecast, simulate_portfolio
from .services.simulation import InvestedBasis, SimulationResult, simulate
from .services.snapshots import (
    applied_strategy_ids,
    load_holdings,
    load_strategy,
    load_strategy_book,
    resolve_assignments,
)
from .services.targets import is_over_allocated, reached_targets


_BASIS_CHOICE = click.Choice([b.value for b in InvestedBasis], case_sensitive=False)
_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _echo_result(result: SimulationResult) -> None:
    click.echo(f"{'#':>3}  {'price':>14}  {'sold':>14}  {'collected':>14}  {'remaining':>14}")
    for entry in result.ledger:
        click.echo(
            f"{entry.order:>3}  {_money(entry.target_price):>14}  {entry.tokens_sold:>14.6f}  "
            f"{_money(entry.amount_collected):>14}  {entry.remaining_tokens_after:>14.6f}"
        )
    click.echo(f"Invested:         {_money(result.total_invested)}")
    click.echo(f"Collected:        {_money(result.total_collected)}")
    click.echo(f"Remaining tokens: {result.remaining_tokens:.6f}")
    click.echo(f"Remaining value:  {_money(result.remaining_tokens_value)}")
    click.echo(f"Profit:           {_money(result.total_profit)}")
    click.echo(f"Return:           {result.return_percentage:.2f}%")


def _basis(ctx: click.Context, value: Optional[str]) -> InvestedBasis:
    if value:
        return InvestedBasis(value.lower())
    return ctx.obj["config"].INVESTED_BASIS


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Simulate profit-taking strategies on crypto holdings."""

    try:
        config = BaseConfig()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(config)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("simulate")
@click.argument("holdings_csv", type=_FILE)
@click.argument("strategy_json", type=_FILE)
@click.option("--holding", "holding_id", required=True, help="Id of the holding to simulate")
@click.option("--basis", type=_BASIS_CHOICE, default=None, help="Invested amount basis")
@click.option(
    "--ledger-csv",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the per-target ledger to this CSV file",
)
@click.pass_context
def simulate_command(
    ctx: click.Context,
    holdings_csv: Path,
    strategy_json: Path,
    holding_id: str,
    basis: Optional[str],
    ledger_csv: Optional[Path],
) -> None:
    """Apply one strategy to one holding and print the ledger."""

    try:
        holdings = {h.id: h for h in load_holdings(csv_path=holdings_csv)}
        targets = load_strategy(json_path=strategy_json)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    holding = holdings.get(holding_id)
    if holding is None:
        raise click.ClickException(f"No holding with id {holding_id!r} in {holdings_csv}")

    if is_over_allocated(targets):
        click.echo("Warning: targets sell more than 100% of the position.", err=True)

    result = simulate(holding, targets, invested_basis=_basis(ctx, basis))
    _echo_result(result)
    if holding.current_price is not None:
        reached = reached_targets(holding.average_price, holding.current_price, targets)
        orders = ", ".join(str(t.order) for t in reached) or "none"
        click.echo(f"Reached at current price: {orders}")

    if ledger_csv is not None:
        path = export_ledger_csv(result=result, output_path=ledger_csv)
        click.echo(f"Ledger written: {path}")


@main.command("forecast")
@click.argument("holdings_csv", type=_FILE)
@click.argument("strategies_json", type=_FILE)
@click.option("--basis", type=_BASIS_CHOICE, default=None, help="Invested amount basis")
@click.option("--save", "save_name", default=None, help="Save the forecast under this name")
@click.option("--portfolio", "portfolio_id", default=None, help="Portfolio id for --save")
@click.pass_context
def forecast_command(
    ctx: click.Context,
    holdings_csv: Path,
    strategies_json: Path,
    basis: Optional[str],
    save_name: Optional[str],
    portfolio_id: Optional[str],
) -> None:
    """Forecast a whole portfolio and optionally save the summary."""

    if save_name and not portfolio_id:
        raise click.UsageError("--save requires --portfolio")

    try:
        holdings = load_holdings(csv_path=holdings_csv)
        book = load_strategy_book(json_path=strategies_json)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    assignments = resolve_assignments(holdings, book)
    portfolio = simulate_portfolio(holdings, assignments, invested_basis=_basis(ctx, basis))

    for holding in holdings:
        result = portfolio.results.get(holding.id)
        if result is None:
            click.echo(f"{holding.id:<12} {holding.symbol:<8} hold          {_money(holding.invested_amount)}")
        else:
            click.echo(
                f"{holding.id:<12} {holding.symbol:<8} {result.return_percentage:>8.2f}%  "
                f"{_money(result.total_collected)}"
            )

    summary = portfolio.summary
    click.echo(f"Tokens with strategy: {summary.token_count}")
    click.echo(f"Invested:        {_money(summary.total_invested)}")
    click.echo(f"Collected:       {_money(summary.total_collected)}")
    click.echo(f"Remaining value: {_money(summary.remaining_tokens_value)}")
    click.echo(f"Profit:          {_money(summary.total_profit)}")
    click.echo(f"Return:          {summary.return_percentage:.2f}%")

    if save_name:
        from .infra.database import bootstrap_database
        from .infra.repositories.forecast import SQLModelForecastRepository

        applied = applied_strategy_ids(holdings, book)
        _, session_factory = bootstrap_database(ctx.obj["config"])
        saved = save_forecast(
            repository=SQLModelForecastRepository(session_factory),
            portfolio_id=portfolio_id,
            name=save_name,
            applied_strategies=applied,
            summary=summary,
        )
        click.echo(f"Forecast saved: #{saved.id} {saved.name}")


@main.command("history")
@click.argument("portfolio_id")
@click.pass_context
def history_command(ctx: click.Context, portfolio_id: str) -> None:
    """List forecasts saved for a portfolio."""

    from .infra.database import bootstrap_database
    from .infra.repositories.forecast import SQLModelForecastRepository

    _, session_factory = bootstrap_database(ctx.obj["config"])
    forecasts = SQLModelForecastRepository(session_factory).list_by_portfolio(portfolio_id)
    if not forecasts:
        click.echo(f"No forecasts saved for portfolio {portfolio_id}.")
        return
    for forecast in forecasts:
        click.echo(
            f"#{forecast.id} {forecast.name}: profit {_money(forecast.total_profit)} "
            f"({forecast.return_percentage:.2f}%), {forecast.token_count} token(s)"
        )


if __name__ == "__main__":  # pragma: no cover
    main()
