"""SQLModel repository implementations."""

from .forecast import SQLModelForecastRepository

__all__ = ["SQLModelForecastRepository"]
