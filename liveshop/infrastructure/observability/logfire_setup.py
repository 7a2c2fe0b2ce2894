"""Logfire configuration for the stream service.

Logfire is optional: when disabled in settings nothing is configured and
``logfire.span`` calls elsewhere in the code become no-ops.
"""

import logging
from typing import Any, Optional

import logfire

from liveshop.core.config import Settings

logger = logging.getLogger(__name__)


def configure_logfire(settings: Settings, app_instance: Optional[Any] = None) -> bool:
    """Configure Logfire and instrument the libraries we use.

    Returns True when Logfire was configured.
    """
    if not settings.logfire_enabled:
        logger.info("Logfire is disabled in configuration")
        return False

    config = {
        "service_name": settings.logfire_service_name,
        "service_version": settings.app_version,
        "environment": settings.environment,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire_token:
        config["token"] = settings.logfire_token

    try:
        logfire.configure(**config)
    except Exception as e:
        logger.error(f"Failed to configure Logfire: {e}")
        if settings.is_production:
            raise
        logger.warning("Continuing without Logfire")
        return False

    _setup_integrations(app_instance)
    logger.info(f"Logfire configured for {settings.logfire_service_name}")
    return True


def _setup_integrations(app_instance: Optional[Any] = None) -> None:
    if app_instance is not None:
        try:
            logfire.instrument_fastapi(app_instance)
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    for name, instrument in (
        ("SQLAlchemy", logfire.instrument_sqlalchemy),
        ("Redis", logfire.instrument_redis),
        ("aiohttp", logfire.instrument_aiohttp_client),
    ):
        try:
            instrument()
            logger.info(f"{name} instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument {name}: {e}")
