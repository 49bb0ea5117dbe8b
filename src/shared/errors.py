"""Exception hierarchy for capability registration and dispatch."""

from shared.models import FieldError


class CapabilityError(Exception):
    """Base exception for capability errors."""
    pass


class DuplicateCapabilityError(CapabilityError):
    """A capability with the same kind and name is already registered."""
    pass


class RegistryFrozenError(CapabilityError):
    """Registration attempted after the startup bootstrap completed."""
    pass


class InvalidCapabilityError(CapabilityError):
    """A descriptor carries a schema that is not valid JSON Schema."""
    pass


class CapabilityNotFoundError(CapabilityError, LookupError):
    """No capability is registered under the requested kind and name."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"unknown capability: {kind}/{name}")


class InputValidationError(CapabilityError):
    """Caller-supplied arguments violate the input schema."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__(
            f"Validation failed: {'; '.join(str(e) for e in errors)}"
        )


class HandlerError(CapabilityError):
    """The capability handler raised while doing its work."""
    pass


class OutputContractError(CapabilityError):
    """The handler succeeded but its result violates the declared output."""

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)
