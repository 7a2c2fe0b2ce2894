"""Playback URL selection for streams and clips."""

from typing import Optional

from liveshop.domain.models.clip import StreamClip
from liveshop.domain.models.stream import Stream

MUX_STREAM_HOST = "https://stream.mux.com"
MUX_IMAGE_HOST = "https://image.mux.com"


def mux_hls_url(playback_id: str) -> str:
    return f"{MUX_STREAM_HOST}/{playback_id}.m3u8"


def mux_thumbnail_url(playback_id: str) -> str:
    return f"{MUX_IMAGE_HOST}/{playback_id}/thumbnail.jpg"


def stream_playback_url(stream: Stream) -> Optional[str]:
    """Best available URL for a stream.

    Priority: migrated storage, then the recorded asset, then the live
    playback id.
    """
    if stream.shopify_video_url:
        return stream.shopify_video_url
    if stream.mux_asset_playback_id:
        return mux_hls_url(stream.mux_asset_playback_id)
    if stream.mux_playback_id:
        return mux_hls_url(stream.mux_playback_id)
    return None


def clip_playback_url(clip: StreamClip) -> Optional[str]:
    if clip.shopify_video_url:
        return clip.shopify_video_url
    if clip.mux_clip_playback_id:
        return mux_hls_url(clip.mux_clip_playback_id)
    return None


def is_migrated(item: Stream | StreamClip) -> bool:
    """True once the video is served from Shopify instead of Mux."""
    return bool(item.shopify_video_id and item.shopify_video_url)


def source_label(stream: Stream) -> Optional[str]:
    if stream.shopify_video_url:
        return "shopify"
    if stream.mux_asset_playback_id or stream.mux_playback_id:
        return "mux"
    return None
