"""Sweep of recordings old enough to leave Mux for long-term storage.

The sweep selects ended streams whose recording is older than the
configured age, plus their unmigrated clips, and verifies each asset
with Mux. The upload itself is not performed; results only report which
items are ready to move.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import logfire

from liveshop.domain.models.stream import utcnow

logger = logging.getLogger(__name__)

READY = "ready"


@dataclass
class MigrationSummary:
    streams_processed: int = 0
    streams_succeeded: int = 0
    streams_failed: int = 0
    clips_processed: int = 0
    clips_succeeded: int = 0
    clips_failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AssetMigrator:
    """Checks migration candidates one by one; a failed item never stops the sweep."""

    stream_repo: Any
    clip_repo: Any
    mux: Any
    age_days: int = 90

    async def run(self, now: Optional[datetime] = None) -> MigrationSummary:
        cutoff = (now or utcnow()) - timedelta(days=self.age_days)
        summary = MigrationSummary()

        with logfire.span("asset migration sweep", cutoff=cutoff.isoformat()):
            streams = await self.stream_repo.list_migration_candidates(cutoff)
            logger.info(f"Found {len(streams)} streams eligible for migration")

            for stream in streams:
                summary.streams_processed += 1
                if await self._verify(stream.mux_asset_id, f"Stream {stream.id}", summary):
                    summary.streams_succeeded += 1
                else:
                    summary.streams_failed += 1

                for clip in await self.clip_repo.list_unmigrated_for_stream(stream.id):
                    summary.clips_processed += 1
                    if await self._verify(clip.mux_clip_id, f"Clip {clip.id}", summary):
                        summary.clips_succeeded += 1
                    else:
                        summary.clips_failed += 1

        logger.info(
            f"Migration sweep finished: {summary.streams_succeeded}/"
            f"{summary.streams_processed} streams, {summary.clips_succeeded}/"
            f"{summary.clips_processed} clips"
        )
        return summary

    async def _verify(self, asset_id: str, label: str, summary: MigrationSummary) -> bool:
        try:
            asset = await self.mux.get_asset(asset_id)
            if asset.status and asset.status != READY:
                raise RuntimeError(f"asset {asset_id} is {asset.status}")
            return True
        except Exception as e:
            logger.error(f"{label} failed migration check: {e}")
            summary.errors.append(f"{label}: {e}")
            return False
