"""Terrain server entry point — ``terrain-server`` / ``python -m terrain.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from terrain.core.config.settings import Settings, get_settings
from terrain.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Refuse to expose quiz answers and the profile bank beyond loopback.

    Raises:
        RuntimeError: If ``terrain_host`` is not a loopback address and
            ``TERRAIN_ALLOW_INSECURE_BIND`` is not set.
    """
    if settings.terrain_allow_insecure_bind or _is_loopback_host(settings.terrain_host):
        return
    exposed = "quiz tools and the encrypted profile bank" if settings.encryption_key else "quiz tools"
    raise RuntimeError(
        f"Refusing to serve {exposed} on non-loopback host {settings.terrain_host!r}: "
        "the Terrain server has no auth layer. "
        "Set TERRAIN_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    """Start the Terrain MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.terrain_log_level.upper(), logging.INFO))

    check_bind(settings)
    logger.info(
        "Starting Terrain server on %s:%d (catalog=%s, profile bank=%s)",
        settings.terrain_host,
        settings.terrain_port,
        settings.catalog_path or "packaged",
        settings.db_path if settings.encryption_key else "disabled",
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.terrain_host,
        port=settings.terrain_port,
    )


if __name__ == "__main__":
    run()
