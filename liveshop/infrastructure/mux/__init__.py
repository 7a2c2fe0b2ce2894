"""Mux Video API integration."""

from .client import MuxAsset, MuxClient, MuxError, MuxLiveStream, first_playback_id

__all__ = ["MuxClient", "MuxError", "MuxLiveStream", "MuxAsset", "first_playback_id"]
