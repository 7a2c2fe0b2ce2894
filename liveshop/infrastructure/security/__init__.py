"""Request authenticity checks."""

from .webhook_validator import HMACWebhookValidator, MuxWebhookValidator

__all__ = ["HMACWebhookValidator", "MuxWebhookValidator"]
