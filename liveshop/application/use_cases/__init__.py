"""Use cases that report outcomes as results rather than raising."""

from liveshop.application.use_cases.base import ResultStatus, UseCase, UseCaseResult
from liveshop.application.use_cases.mux_webhook import (
    MuxWebhookRequest,
    MuxWebhookResult,
    MuxWebhookUseCase,
)

__all__ = [
    "MuxWebhookRequest",
    "MuxWebhookResult",
    "MuxWebhookUseCase",
    "ResultStatus",
    "UseCase",
    "UseCaseResult",
]
