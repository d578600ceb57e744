"""CSV export helpers for simulation ledgers."""

from __future__ import annotations

import csv
from pathlib import Path

from .simulation import SimulationResult

LEDGER_HEADERS = [
    "order",
    "target_price",
    "tokens_sold",
    "amount_collected",
    "remaining_tokens_after",
]


def export_ledger_csv(*, result: SimulationResult, output_path: Path) -> Path:
    """Write the per-target ledger of ``result`` to CSV at ``output_path``.

    One row per target, in simulation order. Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=LEDGER_HEADERS, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for entry in result.ledger:
            writer.writerow(
                {
                    "order": entry.order,
                    "target_price": repr(entry.target_price),
                    "tokens_sold": repr(entry.tokens_sold),
                    "amount_collected": repr(entry.amount_collected),
                    "remaining_tokens_after": repr(entry.remaining_tokens_after),
                }
            )

    return output_path
