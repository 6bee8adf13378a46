"""Console entry point for the nutrigen nutrition-report server.

Installed as ``nutrigen-server``; also runnable as
``python -m nutrigen.core.server.main``. Genotypes and health profiles
arrive as tool arguments, so the server refuses non-loopback binds unless
explicitly overridden.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from nutrigen.core.config.settings import get_settings
from nutrigen.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    """True for "localhost" and any IPv4/IPv6 loopback literal."""
    if host.strip().lower() == "localhost":
        return True
    try:
        address = ip_address(host.strip("[]"))
    except ValueError:
        return False
    return address.is_loopback


def run() -> None:
    """Serve genotype validation, risk scoring and nutrition reports over Streamable HTTP."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.nutrigen_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.nutrigen_allow_insecure_bind and not _is_loopback_host(settings.nutrigen_host):
        raise RuntimeError(
            f"Refusing to expose genotype tools on non-loopback host {settings.nutrigen_host!r} "
            "without an auth layer. Set NUTRIGEN_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting nutrigen report server on %s:%d (llm_provider=%s, privacy=%s, calibration=%s)",
        settings.nutrigen_host,
        settings.nutrigen_port,
        settings.llm_provider,
        settings.default_privacy_mode,
        settings.risk_weights_path or "built-in",
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.nutrigen_host,
        port=settings.nutrigen_port,
    )


if __name__ == "__main__":
    run()
