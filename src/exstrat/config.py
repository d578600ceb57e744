"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .services.simulation import InvestedBasis

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_basis(name: str, default: InvestedBasis) -> InvestedBasis:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return InvestedBasis(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(b.value for b in InvestedBasis)
        raise ValueError(f"{name} must be one of: {choices} (got {value!r})") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "exstrat"
    DB_FILENAME = "exstrat.db"
    LOG_FILENAME = "exstrat.log"
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 5

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("EXSTRAT_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("EXSTRAT_DATABASE_URL", self._build_sqlite_url())
        self.INVESTED_BASIS = _env_basis("EXSTRAT_INVESTED_BASIS", InvestedBasis.COST)

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the database and logs."""

        data_root = os.getenv("EXSTRAT_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for the test suite; quiet console, in-memory database."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = False
        self.DATABASE_URL = os.getenv("EXSTRAT_TEST_DATABASE_URL", "sqlite://")
