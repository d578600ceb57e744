"""Forecast repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.forecast import Forecast


class ForecastRepository(Protocol):
    """Repository for saved portfolio forecasts."""

    def get_by_id(self, forecast_id: int) -> Optional[Forecast]:
        """Retrieve a forecast by ID."""
        ...

    def list_by_portfolio(self, portfolio_id: str) -> list[Forecast]:
        """List forecasts saved for a portfolio, newest first."""
        ...

    def create(self, forecast: Forecast) -> Forecast:
        """Persist a new forecast."""
        ...

    def update(self, forecast: Forecast) -> Forecast:
        """Update an existing forecast."""
        ...

    def delete(self, forecast_id: int) -> None:
        """Delete a forecast by ID."""
        ...
