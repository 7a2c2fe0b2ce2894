"""Merge of the durable stream status with the advisory liveness flag.

The stream record and the liveness cache are written by different actors
(merchant actions and Mux webhooks) and converge eventually. Clients never
read either one directly. They read the pair through ``desired_ui_state``
and follow ``poll_interval`` to decide when to ask again.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from liveshop.domain.models.stream import PRE_LIVE_STATUSES, Stream, StreamStatus, utcnow


class UiState(str, Enum):
    WAITING = "waiting"
    LIVE = "live"
    ENDED = "ended"


@dataclass(frozen=True)
class PollPolicy:
    """Poll cadence in seconds for each waiting situation."""

    waiting_seconds: int = 5
    pending_seconds: int = 15
    after_end_window_seconds: int = 300


def desired_ui_state(stream: Stream, cache_hint: Optional[str]) -> UiState:
    """What the operator should see right now.

    LIVE status without a confirmed feed renders as WAITING ("waiting for
    feed"), never as an error.
    """
    if stream.status == StreamStatus.ENDED:
        return UiState.ENDED
    if stream.status == StreamStatus.LIVE:
        if cache_hint == "ended":
            return UiState.ENDED
        if cache_hint == "live" and stream.mux_playback_id:
            return UiState.LIVE
    return UiState.WAITING


def poll_interval(
    stream: Stream,
    cache_hint: Optional[str],
    policy: PollPolicy = PollPolicy(),
    now: Optional[datetime] = None,
) -> Optional[int]:
    """Seconds until the client should poll again, or None to stop polling."""
    state = desired_ui_state(stream, cache_hint)

    if state == UiState.LIVE:
        return None

    if state == UiState.ENDED:
        if stream.ended_at is None:
            return None
        elapsed = ((now or utcnow()) - stream.ended_at).total_seconds()
        return policy.pending_seconds if elapsed < policy.after_end_window_seconds else None

    if stream.status in PRE_LIVE_STATUSES:
        return policy.pending_seconds
    return policy.waiting_seconds
