"""Repository protocol definitions for domain layer."""

from .forecast import ForecastRepository

__all__ = ["ForecastRepository"]
