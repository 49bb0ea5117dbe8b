"""JSON-RPC 2.0 protocol adapter.

Maps MCP methods onto the capability dispatcher. Capability failures are
returned as results flagged with isError; JSON-RPC errors are reserved for
malformed requests and unknown methods.
"""

from typing import Any, Optional

from pydantic import ValidationError

from shared.config import ServerSettings
from shared.logging import get_logger
from shared.models import CapabilityKind, PromptGet, ResourceRead, ToolCall
from mcp_server.dispatcher import CapabilityDispatcher
from mcp_server.envelope import build_response
from mcp_server.registry import CapabilityRegistry

logger = get_logger(__name__)

PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class JSONRPCError(Exception):
    """A transport-level fault reported as a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    """Create a JSON-RPC error response."""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


class ProtocolHandler:
    """
    Handles JSON-RPC requests for the MCP methods.

    Supported methods: initialize, ping, tools/list, tools/call,
    resources/list, resources/read, prompts/list, prompts/get.
    """

    def __init__(
        self,
        dispatcher: CapabilityDispatcher,
        registry: CapabilityRegistry,
        settings: ServerSettings,
    ) -> None:
        self.dispatcher = dispatcher
        self.registry = registry
        self.settings = settings

        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list(CapabilityKind.TOOL, "tools"),
            "resources/list": self._list(CapabilityKind.RESOURCE, "resources"),
            "prompts/list": self._list(CapabilityKind.PROMPT, "prompts"),
            "tools/call": self._invoke(ToolCall),
            "resources/read": self._invoke(ResourceRead),
            "prompts/get": self._invoke(PromptGet),
        }

    async def handle(self, payload: Any) -> Optional[dict[str, Any]]:
        """
        Handle one JSON-RPC message.

        Returns:
            The response object, or None for notifications
        """
        if (
            not isinstance(payload, dict)
            or payload.get("jsonrpc") != "2.0"
            or not isinstance(payload.get("method"), str)
        ):
            request_id = payload.get("id") if isinstance(payload, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        method = payload["method"]
        request_id = payload.get("id")
        is_notification = "id" not in payload

        if method.startswith("notifications/"):
            logger.debug("Notification received", method=method)
            return None

        try:
            handler = self._methods.get(method)
            if handler is None:
                raise JSONRPCError(METHOD_NOT_FOUND, f"Method not found: {method}")

            params = payload.get("params") or {}
            if not isinstance(params, dict):
                raise JSONRPCError(INVALID_PARAMS, "params must be an object")

            result = await handler(params)

        except JSONRPCError as e:
            logger.info("Request rejected", method=method, code=e.code, error=e.message)
            if is_notification:
                return None
            return error_response(request_id, e.code, e.message)

        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False, "subscribe": False},
                "prompts": {"listChanged": False},
            },
            "serverInfo": {
                "name": self.settings.name,
                "version": self.settings.version,
            },
        }

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _list(self, kind: CapabilityKind, key: str):
        async def list_capabilities(params: dict[str, Any]) -> dict[str, Any]:
            return {key: self.registry.get_listing(kind)}
        return list_capabilities

    def _invoke(self, request_type):
        async def invoke(params: dict[str, Any]) -> dict[str, Any]:
            try:
                request = request_type.model_validate(params)
            except ValidationError as e:
                raise JSONRPCError(INVALID_PARAMS, f"Invalid params: {e}") from e

            outcome = await self.dispatcher.dispatch(request)
            return build_response(outcome)
        return invoke
