"""
Process-wide settings loaded once at import.

Later sources override earlier ones:
1) `env.example` (committed defaults)
2) `env.local` (developer overrides, never committed)
3) the process environment
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger

ROOT_DIR = Path(__file__).parent.parent.parent
ENV_FILES = ("env.example", "env.local")


class EnvironConfig:
    """Singleton mapping of raw string settings."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._values: dict[str, str | None] = {}
            self._load()
            EnvironConfig._initialized = True

    def _load(self):
        for name in ENV_FILES:
            path = ROOT_DIR / name
            if path.exists():
                self._values.update(dotenv_values(path))
                logger.info("Loaded settings from {}", path)

        self._values.update(os.environ)

    def __getitem__(self, key: str) -> str | None:
        if key not in self._values:
            raise KeyError(f"Configuration key '{key}' not found")
        return self._values[key]

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str, default=None):
        return self._values.get(key, default)

    def items(self):
        return self._values.items()

    def get_int(self, key: str, default: int, *, low: int = 1, high: int | None = None) -> int:
        """Integer setting clamped to [low, high]; invalid or out-of-range values fall back to `default`."""
        raw = self.get(key)
        if raw is None or not str(raw).strip():
            return default

        try:
            value = int(str(raw).strip())
        except ValueError:
            logger.warning("Invalid {} value '{}', using {}", key, raw, default)
            return default

        if value < low or (high is not None and value > high):
            logger.warning("{} value {} is out of range, using {}", key, value, default)
            return default

        return value

    def get_mongo_url(self, label: str = "default") -> str:
        """Connection string for `label`, read from `MONGO_URL_<LABEL>`."""
        url = self.get(f"MONGO_URL_{label.upper()}")
        if url:
            return url
        return self.get("MONGO_URL") or "mongodb://localhost:27017"


config = EnvironConfig()
