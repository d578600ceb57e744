"""SQLModel table exports."""

from .forecast import Forecast

__all__ = ["Forecast"]
