"""Scheduled job endpoints, triggered by an external cron."""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from liveshop.api.dependencies import get_asset_migrator, get_settings_dep
from liveshop.api.exceptions import AuthenticationError, ConfigurationError
from liveshop.application.workflows import AssetMigrator
from liveshop.core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_job_token(
    token: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings_dep),
) -> None:
    if not settings.migration_job_secret:
        logger.error("Migration job called but no job secret is configured")
        raise ConfigurationError("Migration job secret is not configured")
    if not token or not hmac.compare_digest(
        token.encode("utf-8"), settings.migration_job_secret.encode("utf-8")
    ):
        raise AuthenticationError("Invalid job token")


@router.post("/migrate-assets", dependencies=[Depends(verify_job_token)])
async def migrate_assets(migrator: AssetMigrator = Depends(get_asset_migrator)):
    """Check recordings old enough to move off Mux."""
    summary = await migrator.run()
    return {
        "success": True,
        "summary": summary.to_dict(),
        "message": (
            f"Checked {summary.streams_processed} streams and "
            f"{summary.clips_processed} clips"
        ),
    }
