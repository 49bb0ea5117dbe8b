"""Base classes for capability providers.

All providers:
- Build their capability descriptors at construction time
- Hold their own configuration and credentials
- Never share state with other providers
- Signal failure by raising with a descriptive message
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from shared.logging import get_logger
from shared.models import CapabilityDescriptor

logger = get_logger(__name__)


class UpstreamError(Exception):
    """An upstream HTTP service returned an unusable response."""
    pass


def text_content_schema(description: str) -> dict[str, Any]:
    """Output schema for tools returning a list of text blocks."""
    return {
        "type": "object",
        "properties": {
            "content": {
                "type": "array",
                "description": description,
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {"const": "text"},
                        "text": {"type": "string", "description": description},
                    },
                    "required": ["type", "text"],
                },
            }
        },
        "required": ["content"],
    }


def format_number(value: float) -> str:
    """Render a number without a trailing .0 for integral floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class CapabilityProvider(ABC):
    """
    Base class for capability providers.

    Each provider:
    - Owns a related group of capabilities
    - Is stateless between invocations
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    @abstractmethod
    def descriptors(self) -> list[CapabilityDescriptor]:
        """Return all capability descriptors for this provider."""
        pass

    def register(self, registry) -> None:
        """Register this provider's capabilities."""
        registry.register_many(self.descriptors)
        logger.info(
            "Provider registered",
            provider=self.name,
            capability_count=len(self.descriptors),
        )

    async def close(self) -> None:
        """Release provider resources."""
        pass


class HTTPProvider(CapabilityProvider):
    """
    Base provider for capabilities backed by HTTP APIs.

    Provides common HTTP client functionality.
    """

    def __init__(
        self,
        name: str,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(name)
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        url: str,
        service: str,
        **kwargs
    ) -> httpx.Response:
        """
        Make an HTTP request to an upstream service.

        Raises:
            UpstreamError: On a non-success status code
        """
        client = await self._get_client()
        logger.debug("Upstream request", service=service, method=method, url=url)

        response = await client.request(method, url, **kwargs)
        if not response.is_success:
            raise UpstreamError(
                f"{service} request failed: {response.status_code} {response.reason_phrase}"
            )
        return response

    async def _get_json(self, url: str, service: str, **kwargs) -> Any:
        response = await self._request("GET", url, service, **kwargs)
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
