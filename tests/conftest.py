"""Pytest configuration and shared fixtures for exstrat tests.

Provides an isolated data directory, a temporary SQLite database for the
forecast repository, and factories for holdings and profit targets so engine
tests can build inputs without repeating every field.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

from exstrat.infra.database import create_session_factory
from exstrat.models import Forecast  # noqa: F401  (registers the table)
from exstrat.services.simulation import HoldingSnapshot
from exstrat.services.targets import ProfitTarget, TargetType


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point configuration at a per-test data directory."""

    data_dir = tmp_path / "data"
    monkeypatch.setenv("EXSTRAT_DATA_DIR", str(data_dir))
    monkeypatch.delenv("EXSTRAT_DATABASE_URL", raising=False)
    monkeypatch.delenv("EXSTRAT_INVESTED_BASIS", raising=False)
    monkeypatch.delenv("EXSTRAT_DEV_MODE", raising=False)
    return data_dir


@pytest.fixture(autouse=True)
def reset_exstrat_logger():
    """Drop handlers installed by setup_logging so tests do not share them."""
    yield
    logger = logging.getLogger("exstrat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Plain session for assertions made outside a repository."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what repositories receive in production."""
    return create_session_factory(db_engine)


# =============================================================================
# Engine input factories
# =============================================================================


@pytest.fixture
def holding_factory():
    """Factory for holding snapshots.

    ``invested_amount`` defaults to ``quantity * average_price``.
    """

    def _create_holding(
        id: str = "h1",
        quantity: float = 10.0,
        average_price: float = 100.0,
        current_price: float | None = None,
        invested_amount: float | None = None,
        symbol: str = "BTC",
    ) -> HoldingSnapshot:
        return HoldingSnapshot(
            id=id,
            symbol=symbol,
            quantity=quantity,
            average_price=average_price,
            current_price=current_price,
            invested_amount=quantity * average_price if invested_amount is None else invested_amount,
        )

    return _create_holding


def pct_target(order: int, target_value: float, sell_percentage: float) -> ProfitTarget:
    """Percentage-of-average target."""
    return ProfitTarget(order, TargetType.PERCENTAGE_OF_AVERAGE, target_value, sell_percentage)


def price_target(order: int, price: float, sell_percentage: float) -> ProfitTarget:
    """Exact-price target."""
    return ProfitTarget(order, TargetType.EXACT_PRICE, price, sell_percentage)


def assert_float_equal(actual: float, expected: float, tolerance: float = 1e-9):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert abs(actual - expected) <= tolerance, (
        f"Expected {expected}, got {actual} (difference: {abs(actual - expected)}, "
        f"tolerance: {tolerance})"
    )
