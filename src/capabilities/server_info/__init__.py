"""Server information resource.

Publishes server metadata and the tool listing, generated from the same
descriptors the dispatcher uses.
"""

import json
import time
from datetime import datetime, timezone

from shared.config import ServerSettings
from shared.models import CapabilityDescriptor, CapabilityKind
from capabilities.base import CapabilityProvider

SERVER_INFO_URI = "server://info"


class ServerInfoProvider(CapabilityProvider):
    """Server information resource."""

    def __init__(self, registry, settings: ServerSettings) -> None:
        super().__init__("server_info")
        self.registry = registry
        self.settings = settings
        self._started = time.monotonic()
        self._started_at = datetime.now(timezone.utc)
        self._descriptors = [
            CapabilityDescriptor(
                name="Server info",
                kind=CapabilityKind.RESOURCE,
                uri=SERVER_INFO_URI,
                mime_type="application/json",
                description="Information about this server and its available tools",
                handler=self.read_info,
            ),
        ]

    @property
    def descriptors(self) -> list[CapabilityDescriptor]:
        return self._descriptors

    def read_info(self, uri: str) -> str:
        tools = self.registry.get_listing(CapabilityKind.TOOL)
        counts = self.registry.counts()

        info = {
            "server": {
                "name": self.settings.name,
                "version": self.settings.version,
                "description": self.settings.description,
                "startedAt": self._started_at.isoformat(),
                "uptime": time.monotonic() - self._started,
            },
            "tools": tools,
            "totalTools": len(tools),
            "capabilities": {
                kind.value + "s": counts[kind.value] > 0 for kind in CapabilityKind
            },
        }
        return json.dumps(info, indent=2, ensure_ascii=False)


def register_server_info(registry, settings: ServerSettings) -> ServerInfoProvider:
    """Register the server information resource."""
    provider = ServerInfoProvider(registry, settings)
    provider.register(registry)
    return provider
