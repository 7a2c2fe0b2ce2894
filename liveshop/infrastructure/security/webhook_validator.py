"""Webhook signature validation."""

import hashlib
import hmac
import time
from typing import Optional


class HMACWebhookValidator:
    """HMAC-SHA256 signature check with replay protection."""

    def __init__(self, secret: str, max_age_seconds: int = 300):
        """Initialize HMAC validator.

        Args:
            secret: Shared secret for HMAC
            max_age_seconds: Maximum age for timestamp validation
        """
        self.secret = secret
        self.max_age_seconds = max_age_seconds

    def compute_signature(self, message: bytes) -> str:
        return hmac.new(self.secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def _validate_timestamp(self, timestamp: str, now: Optional[float] = None) -> bool:
        """Validate timestamp is within acceptable range."""
        try:
            request_time = float(timestamp)
        except (ValueError, TypeError):
            return False
        current_time = time.time() if now is None else now
        return abs(current_time - request_time) <= self.max_age_seconds


class MuxWebhookValidator(HMACWebhookValidator):
    """Validator for the ``Mux-Signature`` header.

    Header format is ``t=<unix seconds>,v1=<hex digest>``. The digest is
    HMAC-SHA256 over ``"<t>.<raw body>"``. More than one ``v1`` entry may be
    present during secret rotation; any match is accepted.
    """

    def parse_header(self, header: str) -> tuple[Optional[str], list[str]]:
        timestamp = None
        signatures = []
        for part in header.split(","):
            key, sep, value = part.strip().partition("=")
            if not sep:
                continue
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)
        return timestamp, signatures

    def sign(self, payload: bytes, timestamp: int) -> str:
        """Build a header value for ``payload``. Used by tests and tooling."""
        digest = self.compute_signature(f"{timestamp}.".encode() + payload)
        return f"t={timestamp},v1={digest}"

    def validate_signature(
        self, payload: bytes, header: Optional[str], now: Optional[float] = None
    ) -> bool:
        if not header or not self.secret:
            return False

        timestamp, signatures = self.parse_header(header)
        if not timestamp or not signatures:
            return False
        if not self._validate_timestamp(timestamp, now):
            return False

        expected = self.compute_signature(f"{timestamp}.".encode() + payload)

        # Compare signatures (constant time)
        return any(hmac.compare_digest(expected, candidate) for candidate in signatures)
