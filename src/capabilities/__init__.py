"""Capability providers.

Each provider contains:
- Capability descriptors (name, schemas, handler)
- Handler implementations
- Its own configuration and credentials

Providers are isolated: no shared state, no calls into each other.
"""

from typing import TYPE_CHECKING

from shared.config import Settings

if TYPE_CHECKING:
    from capabilities.base import CapabilityProvider
    from mcp_server.registry import CapabilityRegistry


def load_all_capabilities(
    registry: "CapabilityRegistry",
    settings: Settings,
) -> list["CapabilityProvider"]:
    """
    Load and register all capability providers.

    This is called once at server startup. Registration order is listing
    order.

    Returns:
        The registered providers, so their resources can be released
        at shutdown
    """
    from capabilities.utility import register_utility_capabilities
    from capabilities.geo import register_geo_capabilities
    from capabilities.image import register_image_capabilities
    from capabilities.prompts import register_prompt_capabilities
    from capabilities.server_info import register_server_info

    return [
        register_utility_capabilities(registry),
        register_geo_capabilities(registry, settings.geo),
        register_image_capabilities(registry, settings.image),
        register_prompt_capabilities(registry),
        register_server_info(registry, settings.server),
    ]


__all__ = ["load_all_capabilities"]
