"""Base use case interfaces and result types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, TypeVar, runtime_checkable


class ResultStatus(Enum):
    """Status of use case execution."""

    SUCCESS = "success"
    IGNORED = "ignored"
    FAILURE = "failure"
    VALIDATION_ERROR = "validation_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"


@dataclass
class UseCaseResult:
    """Base result for use cases that report outcomes instead of raising."""

    status: ResultStatus
    data: Optional[Any] = None
    errors: List[str] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in (ResultStatus.SUCCESS, ResultStatus.IGNORED)

    @property
    def is_failure(self) -> bool:
        return not self.is_success


TInput = TypeVar("TInput", contravariant=True)
TResult = TypeVar("TResult", covariant=True)


@runtime_checkable
class UseCase(Protocol[TInput, TResult]):
    """Protocol for use cases.

    Use cases orchestrate repositories, the liveness cache and Mux calls
    to implement one workflow. Transaction boundaries belong to the caller's
    session.
    """

    async def execute(self, request: TInput) -> TResult:
        ...
