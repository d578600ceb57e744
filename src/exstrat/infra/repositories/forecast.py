"""SQLModel implementation of Forecast repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from ...logging_config import get_logger
from ...models.forecast import Forecast
from ..database import SessionFactory

logger = get_logger(__name__)


class SQLModelForecastRepository:
    """SQLModel-based forecast repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, forecast_id: int) -> Optional[Forecast]:
        """Retrieve a forecast by ID."""
        with self.session_factory() as session:
            return session.exec(select(Forecast).where(Forecast.id == forecast_id)).first()

    def list_by_portfolio(self, portfolio_id: str) -> list[Forecast]:
        """List forecasts saved for a portfolio, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Forecast)
                .where(Forecast.portfolio_id == portfolio_id)
                .order_by(Forecast.created_at.desc(), Forecast.id.desc())  # type: ignore
            )
            return list(session.exec(statement).all())

    def create(self, forecast: Forecast) -> Forecast:
        """Persist a new forecast."""
        with self.session_factory() as session:
            session.add(forecast)
            session.commit()
            session.refresh(forecast)
            logger.info(
                "Forecast saved",
                extra={"forecast_id": forecast.id, "portfolio_id": forecast.portfolio_id},
            )
            return forecast

    def update(self, forecast: Forecast) -> Forecast:
        """Update an existing forecast, bumping its ``updated_at`` stamp."""
        with self.session_factory() as session:
            forecast.updated_at = datetime.now(timezone.utc)
            merged = session.merge(forecast)
            session.commit()
            session.refresh(merged)
            return merged

    def delete(self, forecast_id: int) -> None:
        """Delete a forecast by ID."""
        with self.session_factory() as session:
            forecast = session.exec(select(Forecast).where(Forecast.id == forecast_id)).first()
            if forecast:
                session.delete(forecast)
                session.commit()
                logger.info("Forecast deleted", extra={"forecast_id": forecast_id})
