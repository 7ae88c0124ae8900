"""
Environment configuration.

Environment variables (a `.env` file is read first when present):
- DB_BACKEND: "sqlite" (default) or "postgres"
- DB_PATH: SQLite database file (default: seating.db)
- POSTGRES_HOST / POSTGRES_PORT / POSTGRES_DB / POSTGRES_USER / POSTGRES_PASSWORD
- SEATING_SEED: optional integer seed for reproducible seat draws
- LOG_LEVEL: logging level name (default: INFO)
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from domain.errors import InvalidConfigurationError

BACKENDS = ("sqlite", "postgres")


@dataclass(frozen=True)
class Settings:
    db_backend: str = "sqlite"
    db_path: str = "seating.db"
    postgres_params: dict = field(default_factory=dict)
    seating_seed: Optional[int] = None
    log_level: str = "INFO"


def _int_env(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build `Settings` from `env`, or from `.env` plus the process environment."""

    if env is None:
        load_dotenv()
        env = os.environ

    backend = env.get("DB_BACKEND", "sqlite").strip().lower()
    if backend not in BACKENDS:
        raise InvalidConfigurationError(
            f"DB_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}"
        )

    postgres_params = {
        "host": env.get("POSTGRES_HOST", "localhost"),
        "port": _int_env(env, "POSTGRES_PORT", 5432),
        "dbname": env.get("POSTGRES_DB", "seating"),
        "user": env.get("POSTGRES_USER", "postgres"),
        "password": env.get("POSTGRES_PASSWORD", ""),
    }

    return Settings(
        db_backend=backend,
        db_path=env.get("DB_PATH", "seating.db"),
        postgres_params=postgres_params,
        seating_seed=_int_env(env, "SEATING_SEED", None),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


def make_rng(settings: Settings) -> random.Random:
    """Seeded generator when SEATING_SEED is set, otherwise OS-seeded."""

    return random.Random(settings.seating_seed)
