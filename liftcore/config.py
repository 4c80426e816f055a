"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    app_env: str = "dev"
    log_level: str = "INFO"

    # Catalog cache for hydrated program definitions
    catalog_cache_ttl_seconds: int = 300

    # Extra directory of preset definition JSON files, scanned after the bundled ones
    program_definitions_path: Optional[str] = None

    # HTTP surface
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("http://localhost:5173",))
    request_id_header_name: str = "X-Request-ID"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "catalog_cache_ttl_seconds": 5,
    },
    "staging": {
        "log_level": "INFO",
        "catalog_cache_ttl_seconds": 60,
    },
    "production": {
        "log_level": "WARNING",
        "catalog_cache_ttl_seconds": 300,
    },
}


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])
    origins = os.getenv("CORS_ORIGINS")

    return Settings(
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        catalog_cache_ttl_seconds=int(
            os.getenv("CATALOG_CACHE_TTL_SECONDS", str(profile.get("catalog_cache_ttl_seconds", 300)))
        ),
        program_definitions_path=os.getenv("PROGRAM_DEFINITIONS_PATH") or None,
        cors_origins=_split_origins(origins) if origins else Settings().cors_origins,
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
    )
