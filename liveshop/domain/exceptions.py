"""Domain-specific exceptions.

These exceptions represent business rule violations and lookup failures
raised by the stream lifecycle, lineup and clip rules. Each carries a
structured ``ErrorContext`` so the API layer can render details without
parsing messages.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class ErrorContext:
    """Structured error context using dataclass."""

    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None
    field_name: Optional[str] = None
    invalid_value: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result = {}
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id is not None:
            result["entity_id"] = self.entity_id
        if self.field_name:
            result["field_name"] = self.field_name
        if self.invalid_value is not None:
            result["invalid_value"] = self.invalid_value
        if self.extra:
            result.update(self.extra)
        return result


@dataclass(frozen=True)
class StateTransitionInfo:
    """Structured state transition information."""

    from_state: str
    to_state: str
    allowed_states: list[str] = field(default_factory=list)
    entity_type: Optional[str] = None
    entity_id: Optional[Any] = None


@dataclass(frozen=True)
class ValidationErrors:
    """Field name to message mapping for rejected input."""

    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def field_count(self) -> int:
        return len(self.errors)

    @property
    def is_single_field(self) -> bool:
        return self.field_count == 1


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        parts = [self.message]

        if self.context.entity_type:
            if self.context.entity_id:
                parts.append(f"[{self.context.entity_type}:{self.context.entity_id}]")
            else:
                parts.append(f"[{self.context.entity_type}]")

        if self.context.field_name:
            parts.append(f"Field: {self.context.field_name}")

        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"context={self.context!r})"
        )


class BusinessRuleViolation(DomainException):
    """Raised when an action is not allowed in the stream's current situation.

    Examples: preparing a stream twice, starting before the encoder is
    connected, clipping a stream that has no recording.
    """

    def __init__(self, message: str, *, entity_type: Optional[str] = None,
                 entity_id: Optional[Any] = None, **extra: Any):
        super().__init__(
            message,
            context=ErrorContext(entity_type=entity_type, entity_id=entity_id, extra=extra),
        )


class EntityNotFoundError(DomainException):
    """Raised when an entity cannot be found (or is outside the caller's shop)."""

    def __init__(self, entity_type: str, entity_id: Any, message: Optional[str] = None):
        message = message or f"{entity_type} with ID {entity_id!r} not found"
        super().__init__(
            message, context=ErrorContext(entity_type=entity_type, entity_id=entity_id)
        )


class InvalidStateTransition(BusinessRuleViolation):
    """Raised when a stream status transition is not permitted."""

    def __init__(self, transition_info: StateTransitionInfo):
        message = (
            f"Cannot transition from {transition_info.from_state} "
            f"to {transition_info.to_state}"
        )
        if transition_info.allowed_states:
            message += f". Allowed from: {', '.join(transition_info.allowed_states)}"

        super().__init__(
            message,
            entity_type=transition_info.entity_type,
            entity_id=transition_info.entity_id,
            from_state=transition_info.from_state,
            to_state=transition_info.to_state,
            allowed_states=transition_info.allowed_states,
        )
        self.transition_info = transition_info


class ValidationError(DomainException):
    """Raised when merchant input fails validation. Nothing is mutated."""

    def __init__(
        self, validation_errors: ValidationErrors, entity_type: Optional[str] = None
    ):
        if validation_errors.is_single_field:
            message = next(iter(validation_errors.errors.values()))
        else:
            message = f"Multiple validation errors: {', '.join(validation_errors.errors.keys())}"

        super().__init__(
            message,
            context=ErrorContext(
                entity_type=entity_type,
                extra={"errors": validation_errors.errors},
            ),
        )
        self.validation_errors = validation_errors

    @classmethod
    def single(cls, field_name: str, message: str, entity_type: Optional[str] = None):
        return cls(ValidationErrors({field_name: message}), entity_type=entity_type)

    @property
    def errors(self) -> Dict[str, str]:
        return self.validation_errors.errors
