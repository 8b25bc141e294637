"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from environment
variables.  Defaults are provided for all fields so the API can start
without any configuration; override them via environment variables in a
real deployment.
"""

import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Equipment Reservation API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "change_me"))
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    )

    # Path of the SQLite file backing the entity store.  A relative path is
    # resolved against the project root by the ``db`` module.
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "equipment_reservations.db"))

    # When true, a collection whose stored JSON cannot be parsed is re-seeded
    # with its defaults (and a warning is logged) instead of raising
    # ``StorageCorruptionError``.
    reset_on_corruption: bool = field(default_factory=lambda: _env_flag("STORE_RESET_ON_CORRUPTION", "false"))

    # Seed the default equipment and user accounts the first time their
    # collections are read.  Disable for an empty installation.
    seed_defaults: bool = field(default_factory=lambda: _env_flag("SEED_DEFAULTS", "true"))


# Instantiate settings once so other modules can import it.  Tests and
# scripts that need different values assign to the attributes directly.
settings = Settings()
