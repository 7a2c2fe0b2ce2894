"""Workflows orchestrating repositories, the liveness cache and Mux."""

from liveshop.application.workflows.asset_migration import AssetMigrator, MigrationSummary
from liveshop.application.workflows.clip_manager import ClipManager
from liveshop.application.workflows.lineup_manager import LineupManager
from liveshop.application.workflows.stream_manager import (
    IngestCredentials,
    StreamDetail,
    StreamManager,
    StreamStateSnapshot,
)

__all__ = [
    "AssetMigrator",
    "ClipManager",
    "IngestCredentials",
    "LineupManager",
    "MigrationSummary",
    "StreamDetail",
    "StreamManager",
    "StreamStateSnapshot",
]
