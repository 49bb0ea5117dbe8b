"""MCP Server - FastAPI Application.

Builds the capability registry at startup and exposes the dispatcher over
HTTP: a JSON-RPC endpoint for MCP clients plus plain listing and execution
endpoints.
"""

import json
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared.config import Settings, get_settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models import CapabilityKind
from shared.schema import UnknownFieldPolicy
from mcp_server.dispatcher import CapabilityDispatcher
from mcp_server.envelope import build_response
from mcp_server.protocol import PARSE_ERROR, ProtocolHandler, error_response
from mcp_server.registry import CapabilityRegistry

from capabilities import load_all_capabilities

logger = get_logger(__name__)


# Request/Response Models
class ExecuteRequest(BaseModel):
    """Request to invoke a capability."""
    kind: str = Field(default=CapabilityKind.TOOL.value, description="tool, resource or prompt")
    name: str = Field(..., description="Capability name (URI for resources)")
    arguments: Any = Field(default=None)


class ExecuteResponse(BaseModel):
    """Response from a capability invocation."""
    kind: str
    name: str
    status: str
    failure_kind: Optional[str] = None
    execution_time_ms: float = 0
    result: dict[str, Any]


class CapabilityListResponse(BaseModel):
    """List of capabilities of one kind."""
    kind: str
    items: list[dict[str, Any]]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    name: str
    version: str
    capabilities: dict[str, int]


# Global instances
_settings: Optional[Settings] = None
_registry: Optional[CapabilityRegistry] = None
_dispatcher: Optional[CapabilityDispatcher] = None
_protocol: Optional[ProtocolHandler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global _settings, _registry, _dispatcher, _protocol

    _settings = get_settings()
    setup_logging(_settings.log_level, json_output=_settings.environment == "production")
    logger.info("Starting MCP Server")

    _registry = CapabilityRegistry()
    providers = load_all_capabilities(_registry, _settings)
    _registry.freeze()

    policy = (
        UnknownFieldPolicy.REJECT
        if _settings.server.reject_unknown_fields
        else UnknownFieldPolicy.IGNORE
    )
    _dispatcher = CapabilityDispatcher(_registry, unknown_fields=policy)
    _protocol = ProtocolHandler(_dispatcher, _registry, _settings.server)

    logger.info(
        "MCP Server started",
        name=_settings.server.name,
        capabilities=_registry.counts(),
    )

    yield

    logger.info("Shutting down MCP Server")
    for provider in providers:
        await provider.close()


app = FastAPI(
    title="MCP Server",
    description="Schema-validated MCP capability server",
    version="1.0.0",
    lifespan=lifespan
)


def _require_initialized() -> None:
    if _dispatcher is None or _registry is None or _protocol is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server not initialized"
        )


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint."""
    _require_initialized()
    return HealthResponse(
        status="healthy",
        name=_settings.server.name,
        version=_settings.server.version,
        capabilities=_registry.counts(),
    )


@app.get("/capabilities/{kind}", response_model=CapabilityListResponse, tags=["Capabilities"])
async def list_capabilities(kind: str):
    """List capabilities of one kind in registration order."""
    _require_initialized()
    try:
        capability_kind = CapabilityKind(kind)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown capability kind '{kind}'"
        )

    items = _registry.get_listing(capability_kind)
    return CapabilityListResponse(kind=kind, items=items, count=len(items))


@app.post("/execute", response_model=ExecuteResponse, tags=["Execution"])
async def execute(request: ExecuteRequest):
    """
    Invoke a capability.

    Capability failures are reported in the result envelope, never as HTTP
    errors.
    """
    _require_initialized()
    outcome = await _dispatcher.invoke(request.kind, request.name, request.arguments)

    return ExecuteResponse(
        kind=str(getattr(outcome.kind, "value", outcome.kind)),
        name=outcome.name,
        status=outcome.status.value,
        failure_kind=outcome.failure_kind.value if outcome.failure_kind else None,
        execution_time_ms=outcome.execution_time_ms,
        result=build_response(outcome),
    )


def _reject_constant(name: str) -> Any:
    """NaN and Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


@app.post("/mcp", tags=["Protocol"])
async def mcp_endpoint(request: Request):
    """JSON-RPC 2.0 endpoint for MCP clients."""
    _require_initialized()

    try:
        payload = json.loads(await request.body(), parse_constant=_reject_constant)
    except ValueError:
        return JSONResponse(error_response(None, PARSE_ERROR, "Parse error"))

    bind_context(request_id=str(uuid.uuid4()))
    try:
        response = await _protocol.handle(payload)
    finally:
        clear_context()

    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return JSONResponse(response)


def main():
    """Run the MCP Server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mcp_server.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.environment == "development"
    )


if __name__ == "__main__":
    main()
