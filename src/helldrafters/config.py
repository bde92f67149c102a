"""Lightweight configuration for the Helldrafters host."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "catalog.json"


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="HELLDRAFTERS_"
    )

    data_dir: Path = Field(default=Path("sessions"), description="Where autosave snapshots live")
    catalog_path: Path = Field(
        default=DEFAULT_CATALOG_PATH,
        description="JSON file holding item and event definitions",
    )
    autosave_enabled: bool = Field(
        default=True, description="Persist every accepted mutation for crash recovery"
    )
    rng_seed: str | None = Field(
        default=None,
        description="Optional seed string; when set every new session draws deterministically",
    )
    debug_draft_filtering: bool = Field(
        default=False, description="Emit per-filter debug traces while building draft pools"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
