"""Sequential profit-taking simulation for a single holding."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ..logging_config import get_logger
from .targets import ProfitTarget, order_targets, resolve_target_price

logger = get_logger(__name__)


class InvestedBasis(str, Enum):
    """Which figure counts as the capital invested in a holding.

    ``COST`` recomputes ``quantity * average_price``; ``LEDGER`` trusts the
    stored ``invested_amount``, which may include fees.
    """

    COST = "cost"
    LEDGER = "ledger"


@dataclass(frozen=True, slots=True)
class HoldingSnapshot:
    """Already-loaded view of one holding, as consumed by the engine."""

    id: str
    quantity: float
    average_price: float
    invested_amount: float
    current_price: Optional[float] = None
    symbol: str = ""

    @property
    def effective_price(self) -> float:
        """Current market price, or the average price when none is known."""

        if self.current_price is None:
            return self.average_price
        return self.current_price

    @property
    def current_value(self) -> float:
        return self.quantity * self.effective_price

    def invested(self, basis: InvestedBasis) -> float:
        if basis is InvestedBasis.LEDGER:
            return self.invested_amount
        return self.quantity * self.average_price

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "HoldingSnapshot":
        """Build a snapshot from a camelCase holding mapping.

        ``token.symbol`` is used when no top-level ``symbol`` is given.
        """

        try:
            current = payload.get("currentPrice")
            symbol = payload.get("symbol") or (payload.get("token") or {}).get("symbol", "")
            return cls(
                id=str(payload["id"]),
                quantity=float(payload["quantity"]),
                average_price=float(payload["averagePrice"]),
                invested_amount=float(payload.get("investedAmount") or 0.0),
                current_price=float(current) if current not in (None, "") else None,
                symbol=str(symbol or ""),
            )
        except KeyError as exc:
            raise ValueError(f"Holding is missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid holding payload: {exc}") from exc


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Outcome of one target in a simulation."""

    order: int
    target_price: float
    tokens_sold: float
    amount_collected: float
    remaining_tokens_after: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "order": self.order,
            "targetPrice": self.target_price,
            "tokensSold": self.tokens_sold,
            "amountCollected": self.amount_collected,
            "remainingTokensAfter": self.remaining_tokens_after,
        }


@dataclass(frozen=True, slots=True)
class SimulationResult:
    """Per-holding simulation totals plus the per-target ledger."""

    ledger: tuple[LedgerEntry, ...]
    total_invested: float
    total_collected: float
    total_profit: float
    return_percentage: float
    remaining_tokens: float
    remaining_tokens_value: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "perTargetLedger": [entry.to_payload() for entry in self.ledger],
            "totalInvested": self.total_invested,
            "totalCollected": self.total_collected,
            "totalProfit": self.total_profit,
            "returnPercentage": self.return_percentage,
            "remainingTokens": self.remaining_tokens,
            "remainingTokensValue": self.remaining_tokens_value,
        }


def return_percentage(profit: float, invested: float) -> float:
    """Profit as a percentage of invested capital; 0 when nothing is invested."""

    if invested > 0:
        return profit / invested * 100
    return 0.0


def simulate(
    holding: HoldingSnapshot,
    targets: Iterable[ProfitTarget],
    *,
    invested_basis: InvestedBasis,
) -> SimulationResult:
    """Apply ``targets`` to ``holding`` in ascending order.

    Each target sells a share of the tokens still held, so selling 50% twice
    leaves a quarter of the position. Over-allocated strategies drive the
    remaining quantity negative; the value is reported unchanged so callers
    can surface the misconfiguration.
    """

    remaining = float(holding.quantity)
    collected = 0.0
    ledger: list[LedgerEntry] = []

    for target in order_targets(targets):
        unit_price = resolve_target_price(holding.average_price, target)
        tokens_sold = remaining * (float(target.sell_percentage) / 100)
        amount = tokens_sold * unit_price
        collected += amount
        remaining -= tokens_sold
        ledger.append(
            LedgerEntry(
                order=target.order,
                target_price=unit_price,
                tokens_sold=tokens_sold,
                amount_collected=amount,
                remaining_tokens_after=remaining,
            )
        )

    remaining_value = remaining * holding.effective_price
    invested = float(holding.invested(invested_basis))
    profit = collected + remaining_value - invested

    logger.debug(
        "Simulated holding",
        extra={
            "holding_id": holding.id,
            "targets": len(ledger),
            "collected": collected,
            "remaining": remaining,
        },
    )

    return SimulationResult(
        ledger=tuple(ledger),
        total_invested=invested,
        total_collected=collected,
        total_profit=profit,
        return_percentage=return_percentage(profit, invested),
        remaining_tokens=remaining,
        remaining_tokens_value=remaining_value,
    )
