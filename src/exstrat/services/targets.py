"""Profit target definitions and trigger price resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping


class TargetType(str, Enum):
    """How a profit target expresses its trigger price."""

    PERCENTAGE_OF_AVERAGE = "percentage_of_average"
    EXACT_PRICE = "exact_price"

    @classmethod
    def parse(cls, value: Any) -> "TargetType":
        """Accept both the strategy-step and the theoretical-strategy vocabularies."""

        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        try:
            return _TARGET_TYPE_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown target type: {value!r}") from None


_TARGET_TYPE_ALIASES = {
    "percentage": TargetType.PERCENTAGE_OF_AVERAGE,
    "percentage_of_average": TargetType.PERCENTAGE_OF_AVERAGE,
    "price": TargetType.EXACT_PRICE,
    "exact_price": TargetType.EXACT_PRICE,
}


@dataclass(frozen=True, slots=True)
class ProfitTarget:
    """One rung of a profit-taking strategy.

    ``sell_percentage`` applies to the quantity still held when the target is
    evaluated, not to the original position.
    """

    order: int
    target_type: TargetType
    target_value: float
    sell_percentage: float

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProfitTarget":
        """Build a target from a camelCase ``{order, targetType, ...}`` mapping."""

        try:
            return cls(
                order=int(payload["order"]),
                target_type=TargetType.parse(payload["targetType"]),
                target_value=float(payload["targetValue"]),
                sell_percentage=float(payload["sellPercentage"]),
            )
        except KeyError as exc:
            raise ValueError(f"Profit target is missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid profit target {dict(payload)!r}: {exc}") from exc

    def to_payload(self) -> dict[str, Any]:
        return {
            "order": self.order,
            "targetType": self.target_type.value,
            "targetValue": self.target_value,
            "sellPercentage": self.sell_percentage,
        }


def resolve_target_price(average_price: float, target: ProfitTarget) -> float:
    """Return the unit price at which ``target`` triggers.

    Percentage targets are relative to ``average_price``; exact-price targets
    ignore it. No validation is done on the inputs.
    """

    if target.target_type is TargetType.EXACT_PRICE:
        return float(target.target_value)
    return float(average_price) * (1 + float(target.target_value) / 100)


def is_target_reached(current_price: float, target_price: float) -> bool:
    """Return True once the market price has reached a take-profit level."""

    return current_price >= target_price


def reached_targets(
    average_price: float, current_price: float, targets: Iterable[ProfitTarget]
) -> list[ProfitTarget]:
    """Targets whose trigger price is at or below ``current_price``, in order."""

    return [
        t
        for t in order_targets(targets)
        if is_target_reached(current_price, resolve_target_price(average_price, t))
    ]


def order_targets(targets: Iterable[ProfitTarget]) -> list[ProfitTarget]:
    """Return targets in ascending ``order``; ties keep their input order."""

    return sorted(targets, key=lambda t: t.order)


def total_sell_percentage(targets: Iterable[ProfitTarget]) -> float:
    return sum(float(t.sell_percentage) for t in targets)


def is_over_allocated(targets: Iterable[ProfitTarget]) -> bool:
    """True when the strategy sells more than 100% across its targets."""

    return total_sell_percentage(targets) > 100
