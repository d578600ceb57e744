"""Adapters from the stored strategy shapes to an ordered list of profit targets.

Three shapes reach the engine:

* theoretical strategies carry ``profitTargets`` with an explicit ``order``
  and ``targetType`` of ``"percentage"`` or ``"price"``;
* real strategies carry ``steps`` (``"percentage_of_average"`` /
  ``"exact_price"``) relative to a ``referencePrice`` and have no explicit
  order, so they are ranked by trigger price;
* profit-taking templates carry ``rules.levels`` where ``targetPrice`` is a
  multiple of the average price (``1.5`` means +50%).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .simulation import HoldingSnapshot, InvestedBasis, simulate
from .targets import ProfitTarget, TargetType, resolve_target_price

# Template rule types that never sell anything.
HOLD_TEMPLATE_TYPES = frozenset({"hodl", "no_tp"})


class StepState(str, Enum):
    PENDING = "pending"
    TRIGGERED = "triggered"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class StrategySummary:
    """Progress and projected outcome of a real strategy."""

    total_steps: int
    active_steps: int
    completed_steps: int
    total_tokens_to_sell: float
    remaining_tokens: float
    estimated_total_profit: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalSteps": self.total_steps,
            "activeSteps": self.active_steps,
            "completedSteps": self.completed_steps,
            "totalTokensToSell": self.total_tokens_to_sell,
            "remainingTokens": self.remaining_tokens,
            "estimatedTotalProfit": self.estimated_total_profit,
        }


def _require_list(payload: Mapping[str, Any], key: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Strategy field {key!r} must be a list")
    return list(value)


def _reference_price(payload: Mapping[str, Any]) -> float:
    raw = payload.get("referencePrice", payload.get("refPrice", 0.0))
    try:
        return float(raw or 0.0)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid reference price {raw!r}") from exc


def from_theoretical_strategy(payload: Mapping[str, Any]) -> list[ProfitTarget]:
    """Return the ``profitTargets`` of a theoretical strategy, sorted by order."""

    targets = [ProfitTarget.from_payload(t) for t in _require_list(payload, "profitTargets")]
    return sorted(targets, key=lambda t: t.order)


def from_real_strategy(payload: Mapping[str, Any]) -> list[ProfitTarget]:
    """Rank the steps of a real strategy by trigger price and number them 1..N.

    A step with a stored ``targetPrice`` becomes an exact-price target at
    that price, so it ranks and sells at the level that was saved. Other
    steps rank by the price resolved against ``referencePrice``.
    """

    reference = _reference_price(payload)
    ranked: list[tuple[float, int, TargetType, float, float]] = []
    for index, step in enumerate(_require_list(payload, "steps")):
        try:
            target_type = TargetType.parse(step["targetType"])
            target_value = float(step["targetValue"])
            sell_percentage = float(step["sellPercentage"])
        except KeyError as exc:
            raise ValueError(f"Strategy step is missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid strategy step {step!r}: {exc}") from exc

        stored = step.get("targetPrice")
        if stored is not None:
            try:
                price = float(stored)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid stored target price {stored!r}") from exc
            target_type, target_value = TargetType.EXACT_PRICE, price
        else:
            price = resolve_target_price(
                reference, ProfitTarget(0, target_type, target_value, sell_percentage)
            )
        ranked.append((price, index, target_type, target_value, sell_percentage))

    ranked.sort(key=lambda row: (row[0], row[1]))
    return [
        ProfitTarget(
            order=position,
            target_type=target_type,
            target_value=target_value,
            sell_percentage=sell_percentage,
        )
        for position, (_, _, target_type, target_value, sell_percentage) in enumerate(ranked, 1)
    ]


def from_template(payload: Mapping[str, Any]) -> list[ProfitTarget]:
    """Convert a profit-taking template's levels into percentage targets."""

    rules = payload.get("rules") or {}
    if not isinstance(rules, Mapping):
        raise ValueError("Template rules must be a mapping")
    if str(rules.get("type", "")).lower() in HOLD_TEMPLATE_TYPES:
        return []

    targets: list[ProfitTarget] = []
    for position, level in enumerate(_require_list(rules, "levels"), 1):
        try:
            multiple = float(level["targetPrice"])
            sell_percentage = float(level["percentage"])
        except KeyError as exc:
            raise ValueError(f"Template level is missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid template level {level!r}: {exc}") from exc
        targets.append(
            ProfitTarget(
                order=position,
                target_type=TargetType.PERCENTAGE_OF_AVERAGE,
                target_value=(multiple - 1) * 100,
                sell_percentage=sell_percentage,
            )
        )
    return targets


def normalize_strategy(payload: Mapping[str, Any]) -> list[ProfitTarget]:
    """Dispatch on the payload's shape and return its ordered targets."""

    if "profitTargets" in payload:
        return from_theoretical_strategy(payload)
    if "steps" in payload:
        return from_real_strategy(payload)
    if "rules" in payload:
        return from_template(payload)
    raise ValueError(
        "Unrecognized strategy shape: expected 'profitTargets', 'steps' or 'rules'"
    )


def summarize_real_strategy(payload: Mapping[str, Any]) -> StrategySummary:
    """Summarize a real strategy against its own base quantity and reference price.

    Token amounts follow the sequential sell rule, so a strategy of two 50%
    steps sells three quarters of the base quantity.
    """

    steps = _require_list(payload, "steps")
    states = [str(step.get("state", StepState.PENDING.value)).lower() for step in steps]
    reference = _reference_price(payload)
    try:
        base_quantity = float(payload.get("baseQuantity", payload.get("baseQty", 0.0)) or 0.0)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid base quantity: {exc}") from exc

    holding = HoldingSnapshot(
        id=str(payload.get("id", "")),
        quantity=base_quantity,
        average_price=reference,
        invested_amount=base_quantity * reference,
        symbol=str(payload.get("symbol", "")),
    )
    result = simulate(holding, from_real_strategy(payload), invested_basis=InvestedBasis.COST)

    return StrategySummary(
        total_steps=len(steps),
        active_steps=states.count(StepState.PENDING.value),
        completed_steps=states.count(StepState.DONE.value),
        total_tokens_to_sell=sum(entry.tokens_sold for entry in result.ledger),
        remaining_tokens=result.remaining_tokens,
        estimated_total_profit=sum(
            entry.tokens_sold * (entry.target_price - reference) for entry in result.ledger
        ),
    )
