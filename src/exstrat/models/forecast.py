"""Saved portfolio forecasts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Forecast(SQLModel, table=True):
    """A named forecast: which strategy each holding used, and the computed totals."""

    __tablename__: ClassVar[str] = "forecast"

    id: Optional[int] = Field(default=None, primary_key=True)
    portfolio_id: str = Field(index=True, nullable=False, max_length=64)
    name: str = Field(nullable=False, max_length=128)
    # holding id -> strategy id, or "none" for unmanaged holdings
    applied_strategies: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    total_invested: float = Field(default=0.0, nullable=False)
    total_collected: float = Field(default=0.0, nullable=False)
    total_profit: float = Field(default=0.0, nullable=False)
    return_percentage: float = Field(default=0.0, nullable=False)
    remaining_tokens_value: float = Field(default=0.0, nullable=False)
    token_count: int = Field(default=0, nullable=False)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def summary_payload(self) -> dict:
        """Return the stored summary in its camelCase wire shape."""

        return {
            "totalInvested": self.total_invested,
            "totalCollected": self.total_collected,
            "totalProfit": self.total_profit,
            "returnPercentage": self.return_percentage,
            "remainingTokensValue": self.remaining_tokens_value,
            "tokenCount": self.token_count,
        }
