"""Mux Video API client.

Covers the handful of calls the stream workflow needs: creating and
reading live streams, cutting clips from recorded assets and reading
assets back. Network errors and 429s are retried with exponential backoff,
as are 5xx responses to reads. Anything else surfaces as ``MuxError``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
import backoff
from aiohttp import ClientSession

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE"})


class MuxError(Exception):
    """Mux API request failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MuxTransientError(MuxError):
    """Failure worth retrying."""


@dataclass(frozen=True)
class MuxLiveStream:
    id: str
    stream_key: Optional[str]
    playback_id: Optional[str]
    status: Optional[str] = None
    latency_mode: Optional[str] = None
    rtmp_url: Optional[str] = None


@dataclass(frozen=True)
class MuxAsset:
    id: str
    playback_id: Optional[str]
    status: Optional[str] = None
    duration: Optional[float] = None


def first_playback_id(data: Dict[str, Any]) -> Optional[str]:
    """First entry of a Mux object's ``playback_ids`` list, if any."""
    playback_ids = data.get("playback_ids") or []
    if playback_ids and isinstance(playback_ids[0], dict):
        return playback_ids[0].get("id")
    return None


class MuxClient:
    """Thin async wrapper over the Mux REST API using basic auth."""

    def __init__(
        self,
        token_id: Optional[str],
        token_secret: Optional[str],
        base_url: str = "https://api.mux.com",
        timeout_seconds: int = 15,
        session: Optional[ClientSession] = None,
    ):
        self.token_id = token_id
        self.token_secret = token_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    @property
    def is_configured(self) -> bool:
        return bool(self.token_id and self.token_secret)

    async def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "MuxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @staticmethod
    def _is_retryable(method: str, status: int) -> bool:
        # A 5xx on a POST may arrive after Mux created the object
        if status == 429:
            return True
        return status >= 500 and method in IDEMPOTENT_METHODS

    @backoff.on_exception(
        backoff.expo,
        MuxTransientError,
        max_tries=3,
        max_time=30,
    )
    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if not self.is_configured:
            raise MuxError("Mux API credentials are not configured")

        session = await self._get_session()
        url = f"{self.base_url}{path}"
        auth = aiohttp.BasicAuth(self.token_id, self.token_secret)

        logger.debug(f"Mux API request: {method} {path}")
        try:
            async with session.request(method, url, json=payload, auth=auth) as response:
                if self._is_retryable(method, response.status):
                    body = await response.text()
                    raise MuxTransientError(
                        f"Mux API {method} {path} failed: {response.status} - {body}",
                        status=response.status,
                    )
                if response.status >= 400:
                    body = await response.text()
                    raise MuxError(
                        f"Mux API {method} {path} failed: {response.status} - {body}",
                        status=response.status,
                    )
                body = await response.json()
        except aiohttp.ClientError as e:
            logger.warning(f"HTTP client error during Mux API request: {e}")
            raise MuxTransientError(f"HTTP client error: {e}")

        return body.get("data") or {}

    async def create_live_stream(
        self, latency_mode: str = "low", reconnect_window: int = 60
    ) -> MuxLiveStream:
        """Create a live stream whose recording becomes a public asset."""
        data = await self._request(
            "POST",
            "/video/v1/live-streams",
            {
                "playback_policy": ["public"],
                "new_asset_settings": {"playback_policy": ["public"]},
                "latency_mode": latency_mode,
                "reconnect_window": reconnect_window,
            },
        )
        return self._live_stream(data)

    async def get_live_stream(self, live_stream_id: str) -> MuxLiveStream:
        data = await self._request("GET", f"/video/v1/live-streams/{live_stream_id}")
        return self._live_stream(data)

    async def create_clip(self, asset_id: str, start_time: int, end_time: int) -> MuxAsset:
        """Cut ``[start_time, end_time)`` seconds of an asset into a new asset."""
        data = await self._request(
            "POST",
            "/video/v1/assets",
            {
                "input": [
                    {
                        "url": f"mux://assets/{asset_id}",
                        "start_time": start_time,
                        "end_time": end_time,
                    }
                ],
                "playback_policy": ["public"],
            },
        )
        return self._asset(data)

    async def get_asset(self, asset_id: str) -> MuxAsset:
        data = await self._request("GET", f"/video/v1/assets/{asset_id}")
        return self._asset(data)

    @staticmethod
    def _live_stream(data: Dict[str, Any]) -> MuxLiveStream:
        if not data.get("id"):
            raise MuxError("Mux returned a live stream without an id")
        return MuxLiveStream(
            id=data["id"],
            stream_key=data.get("stream_key"),
            playback_id=first_playback_id(data),
            status=data.get("status"),
            latency_mode=data.get("latency_mode"),
            rtmp_url=(data.get("rtmp") or {}).get("url"),
        )

    @staticmethod
    def _asset(data: Dict[str, Any]) -> MuxAsset:
        if not data.get("id"):
            raise MuxError("Mux returned an asset without an id")
        return MuxAsset(
            id=data["id"],
            playback_id=first_playback_id(data),
            status=data.get("status"),
            duration=data.get("duration"),
        )
