"""exstrat profit-taking simulation package."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestConfig

__all__ = ["BaseConfig", "DevConfig", "TestConfig"]
