"""Terrain MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from terrain.core.config.settings import get_settings
from terrain.core.storage.database import TerrainDatabase
from terrain.core.storage.encryption import EncryptionError, FieldEncryptor
from terrain.core.storage.repository import ProfileRepository
from terrain.domains.constitution.domain_logic.catalog import QuizCatalog
from terrain.domains.constitution.domain_logic.catalog_loader import (
    load_catalog_file,
    load_default_catalog,
)
from terrain.domains.constitution.domain_logic.scoring_engine import TerrainScoringEngine
from terrain.domains.constitution.resources.catalog import register_catalog_resources
from terrain.domains.constitution.tools.quiz_tools import register_quiz_tools

logger = logging.getLogger(__name__)

SERVER_VERSION = "0.2.0"


def create_app(
    *,
    catalog_override: QuizCatalog | None = None,
    repository_override: ProfileRepository | None = None,
) -> FastMCP:
    """Create and configure the Terrain MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the quiz catalog and builds the scoring engine
    3. Initializes the encrypted profile bank (if a key is configured)
    4. Registers all tools and resources
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Terrain",
        instructions=(
            "Terrain constitution quiz server. Lists the quiz questions that "
            "apply to a user's goals, previews the terrain type for a set of "
            "answers, and creates or updates persisted terrain profiles."
        ),
    )

    # --- Catalog + engine ---
    if catalog_override is not None:
        catalog = catalog_override
    elif settings.catalog_path:
        catalog = load_catalog_file(settings.catalog_path)
    else:
        catalog = load_default_catalog()
    engine = TerrainScoringEngine(catalog)

    # --- Initialize encrypted storage (profile bank) ---
    repository: ProfileRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            terrain_db = TerrainDatabase(settings.db_path)
            terrain_db.initialize()
            repository = ProfileRepository(terrain_db, encryptor)
            logger.info(
                "Profile bank initialized: %s (schema v%d)",
                settings.db_path,
                terrain_db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — profiles will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured — running without persistence. "
            "Set ENCRYPTION_KEY to enable the profile bank."
        )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "Terrain",
            "version": SERVER_VERSION,
            "catalog_id": catalog.id,
            "quiz_version": catalog.quiz_version,
            "question_count": len(catalog.questions),
            "storage_enabled": repository is not None,
        }
        if repository is not None:
            status["profiles_stored"] = repository.count_profiles()
        return status

    register_quiz_tools(server, engine)
    logger.info("Quiz tools registered")

    if repository is not None:
        from terrain.domains.constitution.tools.profile_tools import register_profile_tools

        register_profile_tools(server, engine, repository)
        logger.info("Profile tools registered")

    # --- Register resources ---
    register_catalog_resources(server, catalog)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
