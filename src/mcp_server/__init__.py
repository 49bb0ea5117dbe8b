"""MCP Server - Capability registry, dispatch and response envelopes.

The MCP Server is the authoritative component for capability invocation.
It registers capabilities, validates inputs and outputs, dispatches to
handlers and normalizes every outcome.
"""

from mcp_server.registry import CapabilityRegistry
from mcp_server.dispatcher import CapabilityDispatcher
from mcp_server.envelope import build_response

__all__ = [
    "CapabilityRegistry",
    "CapabilityDispatcher",
    "build_response",
]
