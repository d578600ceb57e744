"""Profit-taking simulation engine.

Every caller that needs target prices, per-holding simulations or portfolio
forecasts goes through these functions.
"""

from .adapters import (
    StrategySummary,
    from_real_strategy,
    from_template,
    from_theoretical_strategy,
    normalize_strategy,
    summarize_real_strategy,
)
from .forecast import (
    NO_STRATEGY,
    UNMANAGED_HOLDING_POLICY,
    ForecastSummary,
    PortfolioSimulation,
    aggregate,
    build_forecast,
    save_forecast,
    simulate_portfolio,
)
from .simulation import (
    HoldingSnapshot,
    InvestedBasis,
    LedgerEntry,
    SimulationResult,
    simulate,
)
from .targets import (
    ProfitTarget,
    TargetType,
    is_over_allocated,
    is_target_reached,
    reached_targets,
    resolve_target_price,
    total_sell_percentage,
)

__all__ = [
    "NO_STRATEGY",
    "UNMANAGED_HOLDING_POLICY",
    "ForecastSummary",
    "HoldingSnapshot",
    "InvestedBasis",
    "LedgerEntry",
    "PortfolioSimulation",
    "ProfitTarget",
    "SimulationResult",
    "StrategySummary",
    "TargetType",
    "aggregate",
    "build_forecast",
    "from_real_strategy",
    "from_template",
    "from_theoretical_strategy",
    "is_over_allocated",
    "is_target_reached",
    "normalize_strategy",
    "reached_targets",
    "resolve_target_price",
    "save_forecast",
    "simulate",
    "simulate_portfolio",
    "summarize_real_strategy",
    "total_sell_percentage",
]
