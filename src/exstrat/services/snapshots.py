"""Loading holding snapshots and strategy definitions from files."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd

from ..logging_config import get_logger
from .adapters import normalize_strategy
from .forecast import NO_STRATEGY
from .simulation import HoldingSnapshot
from .targets import ProfitTarget

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("id", "quantity", "average_price")


@dataclass(slots=True)
class StrategyBook:
    """Strategies keyed by id plus the holding -> strategy assignments."""

    strategies: dict[str, list[ProfitTarget]] = field(default_factory=dict)
    applied: dict[str, str] = field(default_factory=dict)


def normalize_frame(*, file_path: Path, encoding: str = "utf-8") -> pd.DataFrame:
    """Load a CSV file into a DataFrame with consistent column casing.

    Every cell is read as text so ids such as ``007`` keep their padding
    whatever the header casing; numeric columns are converted per row.
    """

    frame = pd.read_csv(file_path, encoding=encoding, dtype=str)
    frame.columns = [c.strip().lower() for c in frame.columns]
    return frame


def _optional_float(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()) or pd.isna(value):
        return None
    return float(value)


def _required_float(row: Mapping[str, Any], column: str) -> float:
    value = _optional_float(row.get(column))
    if value is None:
        raise ValueError(f"{column} is required")
    if not math.isfinite(value):
        raise ValueError(f"{column} must be a finite number, got {value}")
    return value


def load_holdings(*, csv_path: Path) -> list[HoldingSnapshot]:
    """Read holdings from a CSV snapshot.

    Expected headers: id, symbol, quantity, average_price, current_price,
    invested_amount. ``current_price`` may be blank; a blank
    ``invested_amount`` becomes ``quantity * average_price``.
    """

    frame = normalize_frame(file_path=csv_path)
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"{csv_path}: missing column(s) {', '.join(missing)}")

    holdings: list[HoldingSnapshot] = []
    for line, row in enumerate(frame.to_dict(orient="records"), start=2):
        try:
            holding_id = row.get("id")
            if holding_id is None or pd.isna(holding_id) or not str(holding_id).strip():
                raise ValueError("id is required")
            quantity = _required_float(row, "quantity")
            average_price = _required_float(row, "average_price")
            invested = _optional_float(row.get("invested_amount"))
            symbol = row.get("symbol")
            holdings.append(
                HoldingSnapshot(
                    id=str(holding_id).strip(),
                    symbol="" if symbol is None or pd.isna(symbol) else str(symbol).strip(),
                    quantity=quantity,
                    average_price=average_price,
                    current_price=_optional_float(row.get("current_price")),
                    invested_amount=quantity * average_price if invested is None else invested,
                )
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{csv_path}, line {line}: {exc}") from exc

    logger.info("Loaded holdings", extra={"path": str(csv_path), "count": len(holdings)})
    return holdings


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc


def load_strategy(*, json_path: Path) -> list[ProfitTarget]:
    """Read one strategy payload (any supported shape) from JSON."""

    payload = _read_json(json_path)
    if not isinstance(payload, Mapping):
        raise ValueError(f"{json_path}: expected a JSON object")
    return normalize_strategy(payload)


def load_strategy_book(*, json_path: Path) -> StrategyBook:
    """Read ``{"strategies": {id: payload}, "applied": {holdingId: id}}``."""

    payload = _read_json(json_path)
    if not isinstance(payload, Mapping):
        raise ValueError(f"{json_path}: expected a JSON object")

    raw_strategies = payload.get("strategies") or {}
    raw_applied = payload.get("applied") or {}
    if not isinstance(raw_strategies, Mapping) or not isinstance(raw_applied, Mapping):
        raise ValueError(f"{json_path}: 'strategies' and 'applied' must be objects")

    book = StrategyBook()
    for strategy_id, strategy in raw_strategies.items():
        try:
            book.strategies[str(strategy_id)] = normalize_strategy(strategy)
        except ValueError as exc:
            raise ValueError(f"{json_path}: strategy {strategy_id!r}: {exc}") from exc
    book.applied = {str(k): str(v) if v is not None else NO_STRATEGY for k, v in raw_applied.items()}
    return book


def resolve_assignments(
    holdings: list[HoldingSnapshot], book: StrategyBook
) -> dict[str, list[ProfitTarget] | str]:
    """Map each holding id to its target list, or NO_STRATEGY.

    Unknown strategy ids leave the holding unmanaged.
    """

    assignments: dict[str, list[ProfitTarget] | str] = {}
    for holding in holdings:
        strategy_id = book.applied.get(holding.id, NO_STRATEGY)
        if strategy_id == NO_STRATEGY:
            assignments[holding.id] = NO_STRATEGY
            continue
        targets = book.strategies.get(strategy_id)
        if targets is None:
            logger.warning(
                "Unknown strategy %s for holding %s; treating as unmanaged",
                strategy_id,
                holding.id,
            )
            assignments[holding.id] = NO_STRATEGY
            continue
        assignments[holding.id] = targets
    return assignments


def applied_strategy_ids(holdings: list[HoldingSnapshot], book: StrategyBook) -> dict[str, str]:
    """Strategy id per holding as a forecast records it.

    Follows :func:`resolve_assignments`: a missing or unknown id is stored
    as NO_STRATEGY.
    """

    applied: dict[str, str] = {}
    for holding in holdings:
        strategy_id = book.applied.get(holding.id, NO_STRATEGY)
        applied[holding.id] = strategy_id if strategy_id in book.strategies else NO_STRATEGY
    return applied
