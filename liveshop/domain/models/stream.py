"""Stream domain model - a merchant's live shopping broadcast and its lifecycle."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from liveshop.domain.exceptions import (
    BusinessRuleViolation,
    InvalidStateTransition,
    StateTransitionInfo,
)


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StreamStatus(str, Enum):
    """Lifecycle status of a stream. ENDED is terminal."""

    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    ENDED = "ENDED"


PRE_LIVE_STATUSES = (StreamStatus.DRAFT, StreamStatus.SCHEDULED)


@dataclass
class Stream:
    """Live shopping stream owned by a single shop."""

    shop: str
    title: str
    id: str = field(default_factory=new_id)
    description: Optional[str] = None
    status: StreamStatus = StreamStatus.DRAFT
    scheduled_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    # Broadcast options
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    multicast_facebook: bool = False
    multicast_instagram: bool = False
    multicast_tiktok: bool = False
    use_obs: bool = True

    # Lifecycle timestamps
    started_at: Optional[datetime] = None
    live_started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    # Ingest session
    mux_stream_id: Optional[str] = None
    mux_playback_id: Optional[str] = None
    mux_rtmp_url: Optional[str] = None
    mux_latency_mode: Optional[str] = None

    # Recorded asset
    mux_asset_id: Optional[str] = None
    mux_asset_playback_id: Optional[str] = None
    mux_asset_created_at: Optional[datetime] = None

    # Long-term storage
    shopify_video_id: Optional[str] = None
    shopify_video_url: Optional[str] = None
    migrated_to_shopify_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_live(self) -> bool:
        return self.status == StreamStatus.LIVE

    @property
    def is_ended(self) -> bool:
        return self.status == StreamStatus.ENDED

    @property
    def is_prepared(self) -> bool:
        """Whether an ingest session has been created for this stream."""
        return self.mux_stream_id is not None

    @property
    def has_recording(self) -> bool:
        return self.mux_asset_id is not None

    def _transition_error(self, to_state: StreamStatus, allowed) -> InvalidStateTransition:
        return InvalidStateTransition(
            StateTransitionInfo(
                from_state=self.status.value,
                to_state=to_state.value,
                allowed_states=[s.value for s in allowed],
                entity_type="Stream",
                entity_id=self.id,
            )
        )

    def apply_schedule(self, scheduled_at: Optional[datetime]) -> None:
        """Set the schedule; pre-live streams move between DRAFT and SCHEDULED."""
        self.scheduled_at = scheduled_at
        if self.status in PRE_LIVE_STATUSES:
            self.status = StreamStatus.SCHEDULED if scheduled_at else StreamStatus.DRAFT
        self.updated_at = utcnow()

    def ensure_preparable(self) -> None:
        """Raise unless an ingest session may still be created for this stream."""
        if self.mux_stream_id is not None:
            raise BusinessRuleViolation(
                "Stream is already prepared", entity_type="Stream", entity_id=self.id
            )
        if self.is_ended:
            raise self._transition_error(StreamStatus.LIVE, PRE_LIVE_STATUSES)

    def attach_ingest_session(
        self,
        mux_stream_id: str,
        playback_id: Optional[str],
        rtmp_url: str,
        latency_mode: str,
    ) -> None:
        """Link the one ingest session this stream will ever have."""
        self.ensure_preparable()

        self.mux_stream_id = mux_stream_id
        self.mux_playback_id = playback_id
        self.mux_rtmp_url = rtmp_url
        self.mux_latency_mode = latency_mode
        self.updated_at = utcnow()

    def record_playback_id(self, playback_id: Optional[str]) -> bool:
        """Store a late-arriving playback id. Returns True if the record changed."""
        if not playback_id or self.mux_playback_id:
            return False
        self.mux_playback_id = playback_id
        self.updated_at = utcnow()
        return True

    def start(self, encoder_state: Optional[str], now: Optional[datetime] = None) -> None:
        """Merchant-confirmed go-live.

        The encoder must already be pushing video (liveness ``"live"``) and a
        playback id must exist.
        """
        if self.status not in PRE_LIVE_STATUSES:
            raise self._transition_error(StreamStatus.LIVE, PRE_LIVE_STATUSES)
        if not self.is_prepared:
            raise BusinessRuleViolation(
                "Stream has not been prepared for broadcasting",
                entity_type="Stream",
                entity_id=self.id,
            )
        if not self.mux_playback_id:
            raise BusinessRuleViolation(
                "Playback is not ready yet", entity_type="Stream", entity_id=self.id
            )
        if encoder_state != "live":
            raise BusinessRuleViolation(
                "No video is being received from the encoder yet",
                entity_type="Stream",
                entity_id=self.id,
                encoder_state=encoder_state,
            )

        now = now or utcnow()
        self.status = StreamStatus.LIVE
        self.started_at = now
        self.live_started_at = now
        self.updated_at = now

    def end(self, now: Optional[datetime] = None) -> None:
        """Merchant-initiated end; only a LIVE stream can be ended this way."""
        if self.status != StreamStatus.LIVE:
            raise self._transition_error(StreamStatus.ENDED, [StreamStatus.LIVE])
        self._mark_ended(now or utcnow())

    def end_from_encoder(self, now: Optional[datetime] = None) -> bool:
        """Platform-initiated end from any status.

        Returns False when the stream was already ENDED and nothing changed.
        """
        if self.is_ended:
            return False
        self._mark_ended(now or utcnow())
        return True

    def _mark_ended(self, now: datetime) -> None:
        if self.started_at and now < self.started_at:
            now = self.started_at
        self.status = StreamStatus.ENDED
        self.ended_at = now
        self.updated_at = now

    def record_asset(
        self,
        asset_id: str,
        playback_id: Optional[str],
        created_at: Optional[datetime] = None,
    ) -> bool:
        """Persist the recorded asset once. Returns False on replay."""
        if self.mux_asset_id:
            return False
        self.mux_asset_id = asset_id
        self.mux_asset_playback_id = playback_id
        self.mux_asset_created_at = created_at or utcnow()
        self.updated_at = utcnow()
        return True
