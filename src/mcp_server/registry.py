"""Capability Registry for MCP Server.

Manages registration and lookup of tools, resources and prompts.
Capabilities are registered once at startup; the registry is then frozen
and read-only for the rest of the process lifetime.
"""

from typing import Any, Optional

from shared.errors import (
    CapabilityNotFoundError,
    DuplicateCapabilityError,
    InvalidCapabilityError,
    RegistryFrozenError,
)
from shared.logging import get_logger
from shared.models import CapabilityDescriptor, CapabilityKind
from shared.schema import check_schema

logger = get_logger(__name__)


class CapabilityRegistry:
    """
    Central registry for all capabilities.

    Each kind (tool, resource, prompt) is an independent namespace.
    Listing preserves registration order.
    """

    def __init__(self) -> None:
        self._capabilities: dict[CapabilityKind, dict[str, CapabilityDescriptor]] = {
            kind: {} for kind in CapabilityKind
        }
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, descriptor: CapabilityDescriptor) -> None:
        """
        Register a capability.

        Args:
            descriptor: Capability descriptor to register

        Raises:
            RegistryFrozenError: If the startup bootstrap already completed
            DuplicateCapabilityError: If (kind, name) is already registered
            InvalidCapabilityError: If a declared schema is not valid JSON Schema
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {descriptor.kind.value} '{descriptor.key}': registry is frozen"
            )

        namespace = self._capabilities[descriptor.kind]
        if descriptor.key in namespace:
            raise DuplicateCapabilityError(
                f"{descriptor.kind.value.capitalize()} '{descriptor.key}' is already registered"
            )

        for label, schema in (
            ("input", descriptor.input_schema),
            ("output", descriptor.output_schema),
        ):
            if schema is None:
                continue
            problems = check_schema(schema)
            if problems:
                raise InvalidCapabilityError(
                    f"Invalid {label} schema for {descriptor.kind.value} "
                    f"'{descriptor.key}': {'; '.join(problems)}"
                )

        namespace[descriptor.key] = descriptor

        logger.info(
            "Capability registered",
            kind=descriptor.kind.value,
            name=descriptor.key,
        )

    def register_many(self, descriptors: list[CapabilityDescriptor]) -> None:
        """Register multiple capabilities at once."""
        for descriptor in descriptors:
            self.register(descriptor)

    def freeze(self) -> None:
        """Close registration. Called once the startup bootstrap is done."""
        self._frozen = True
        logger.info("Capability registry frozen", counts=self.counts())

    def get(self, kind: CapabilityKind, name: str) -> Optional[CapabilityDescriptor]:
        """
        Get a capability by kind and name.

        Returns:
            CapabilityDescriptor if found, None otherwise
        """
        return self._capabilities[kind].get(name)

    def lookup(self, kind: CapabilityKind, name: str) -> CapabilityDescriptor:
        """
        Get a capability by kind and name.

        Raises:
            CapabilityNotFoundError: If nothing is registered under (kind, name)
        """
        descriptor = self.get(kind, name)
        if descriptor is None:
            raise CapabilityNotFoundError(kind.value, name)
        return descriptor

    def list_capabilities(self, kind: CapabilityKind) -> list[CapabilityDescriptor]:
        """List capabilities of one kind in registration order."""
        return list(self._capabilities[kind].values())

    def get_listing(self, kind: CapabilityKind) -> list[dict[str, Any]]:
        """Get capability definitions formatted for protocol listings."""
        return [d.to_listing() for d in self.list_capabilities(kind)]

    def counts(self) -> dict[str, int]:
        """Get count of capabilities per kind."""
        return {
            kind.value: len(namespace)
            for kind, namespace in self._capabilities.items()
        }
