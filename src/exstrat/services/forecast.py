"""Portfolio-level forecast aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..domain.repositories.forecast import ForecastRepository
from ..logging_config import get_logger
from ..models.forecast import Forecast
from .simulation import (
    HoldingSnapshot,
    InvestedBasis,
    SimulationResult,
    return_percentage,
    simulate,
)
from .targets import ProfitTarget, is_over_allocated

logger = get_logger(__name__)

# Strategy id the UI stores for holdings left without a strategy.
NO_STRATEGY = "none"


@dataclass(frozen=True, slots=True)
class UnmanagedHoldingPolicy:
    """Contribution of a holding that has no strategy applied.

    Unmanaged positions project neither gain nor loss: their invested amount
    counts both as invested capital and as remaining value, whatever the
    current market price.
    """

    def contribution(self, holding: HoldingSnapshot) -> tuple[float, float]:
        """Return ``(invested, remaining_value)`` for ``holding``."""

        return holding.invested_amount, holding.invested_amount


UNMANAGED_HOLDING_POLICY = UnmanagedHoldingPolicy()


@dataclass(frozen=True, slots=True)
class ForecastSummary:
    """Portfolio totals for one forecast."""

    total_invested: float = 0.0
    total_collected: float = 0.0
    total_profit: float = 0.0
    return_percentage: float = 0.0
    remaining_tokens_value: float = 0.0
    token_count: int = 0

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase shape sent with a saved forecast."""

        return {
            "totalInvested": self.total_invested,
            "totalCollected": self.total_collected,
            "totalProfit": self.total_profit,
            "returnPercentage": self.return_percentage,
            "remainingTokensValue": self.remaining_tokens_value,
            "tokenCount": self.token_count,
        }


@dataclass(frozen=True, slots=True)
class PortfolioSimulation:
    """Summary plus the per-holding results it was folded from."""

    summary: ForecastSummary
    results: Mapping[str, SimulationResult] = field(default_factory=dict)


def has_strategy(targets: Optional[Sequence[ProfitTarget] | str]) -> bool:
    """True when a strategy is assigned (an empty target list still counts)."""

    return targets is not None and not isinstance(targets, str)


def simulate_portfolio(
    holdings: Iterable[HoldingSnapshot],
    strategy_by_holding_id: Mapping[str, Optional[Sequence[ProfitTarget] | str]],
    *,
    invested_basis: InvestedBasis,
    unmanaged_policy: UnmanagedHoldingPolicy = UNMANAGED_HOLDING_POLICY,
) -> PortfolioSimulation:
    """Simulate every managed holding and fold the results into one summary.

    ``strategy_by_holding_id`` maps holding ids to ordered target lists. A
    missing key, ``None`` or :data:`NO_STRATEGY` marks the holding as
    unmanaged.
    """

    invested = 0.0
    collected = 0.0
    remaining_value = 0.0
    token_count = 0
    results: dict[str, SimulationResult] = {}

    for holding in holdings:
        targets = strategy_by_holding_id.get(holding.id)
        if not has_strategy(targets):
            held_invested, held_value = unmanaged_policy.contribution(holding)
            invested += held_invested
            remaining_value += held_value
            continue

        targets = list(targets)
        if is_over_allocated(targets):
            logger.warning(
                "Strategy sells more than 100%% of holding %s",
                holding.id,
                extra={"holding_id": holding.id},
            )

        result = simulate(holding, targets, invested_basis=invested_basis)
        results[holding.id] = result
        invested += result.total_invested
        collected += result.total_collected
        remaining_value += result.remaining_tokens_value
        token_count += 1

    profit = collected + remaining_value - invested
    summary = ForecastSummary(
        total_invested=invested,
        total_collected=collected,
        total_profit=profit,
        return_percentage=return_percentage(profit, invested),
        remaining_tokens_value=remaining_value,
        token_count=token_count,
    )
    return PortfolioSimulation(summary=summary, results=results)


def aggregate(
    holdings: Iterable[HoldingSnapshot],
    strategy_by_holding_id: Mapping[str, Optional[Sequence[ProfitTarget] | str]],
    *,
    invested_basis: InvestedBasis,
) -> ForecastSummary:
    """Return the portfolio forecast summary."""

    return simulate_portfolio(
        holdings, strategy_by_holding_id, invested_basis=invested_basis
    ).summary


def build_forecast(
    *,
    portfolio_id: str,
    name: str,
    applied_strategies: Mapping[str, str],
    summary: ForecastSummary,
) -> Forecast:
    """Create an unsaved forecast record carrying ``summary`` unchanged."""

    return Forecast(
        portfolio_id=portfolio_id,
        name=name,
        applied_strategies=dict(applied_strategies),
        total_invested=summary.total_invested,
        total_collected=summary.total_collected,
        total_profit=summary.total_profit,
        return_percentage=summary.return_percentage,
        remaining_tokens_value=summary.remaining_tokens_value,
        token_count=summary.token_count,
    )


def save_forecast(
    *,
    repository: ForecastRepository,
    portfolio_id: str,
    name: str,
    applied_strategies: Mapping[str, str],
    summary: ForecastSummary,
) -> Forecast:
    """Build a forecast record from ``summary`` and hand it to the repository."""

    return repository.create(
        build_forecast(
            portfolio_id=portfolio_id,
            name=name,
            applied_strategies=applied_strategies,
            summary=summary,
        )
    )
