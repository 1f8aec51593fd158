"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Terrain server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    terrain_host: str = "127.0.0.1"
    terrain_port: int = 8001
    terrain_log_level: str = "info"
    terrain_allow_insecure_bind: bool = False

    # Quiz catalog (empty = packaged terrain_quiz.v2.yaml)
    catalog_path: str = ""

    # Storage (profile bank)
    db_path: str = "~/.terrain/terrain.db"

    # Encryption (storage is disabled without a key)
    encryption_key: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
