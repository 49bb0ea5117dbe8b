"""Capability Dispatcher for MCP Server.

Routes invocation requests to capability handlers.
Handles lookup, input validation, execution and result normalization,
and turns every failure into a Failure outcome.
"""

import inspect
import time
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from shared.errors import (
    CapabilityNotFoundError,
    HandlerError,
    InputValidationError,
    OutputContractError,
)
from shared.logging import get_logger
from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    ContentBlock,
    FailureKind,
    InvocationOutcome,
    InvocationRequest,
    PromptGet,
    PromptMessage,
    ResourceRead,
    TextContent,
    ToolCall,
    ToolOutput,
)
from shared.schema import UnknownFieldPolicy, validate
from mcp_server.registry import CapabilityRegistry

logger = get_logger(__name__)

_content_adapter = TypeAdapter(list[ContentBlock])
_messages_adapter = TypeAdapter(list[PromptMessage])


def build_request(
    kind: Union[CapabilityKind, str],
    name: str,
    arguments: Any = None,
) -> Union[ToolCall, ResourceRead, PromptGet]:
    """
    Build an invocation request for a capability kind.

    Raises:
        CapabilityNotFoundError: If kind is not a known capability kind
    """
    try:
        kind = CapabilityKind(kind)
    except ValueError:
        raise CapabilityNotFoundError(str(kind), name) from None

    if kind == CapabilityKind.TOOL:
        return ToolCall(name=name, arguments=arguments)
    if kind == CapabilityKind.RESOURCE:
        return ResourceRead(uri=name)
    return PromptGet(name=name, arguments=arguments)


class CapabilityDispatcher:
    """
    Stateless pipeline from invocation request to outcome.

    Responsibilities:
    - Look up the capability
    - Validate input against the declared schema
    - Await the handler (sync or async)
    - Validate output against the declared schema
    - Normalize success and failure into an InvocationOutcome
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.IGNORE,
    ) -> None:
        self.registry = registry
        self.unknown_fields = unknown_fields

    async def invoke(
        self,
        kind: Union[CapabilityKind, str],
        name: str,
        arguments: Any = None,
    ) -> InvocationOutcome:
        """
        Invoke a capability by kind and name.

        This never raises for capability-level problems; an unknown kind or
        name becomes a Failure outcome.
        """
        try:
            request = build_request(kind, name, arguments)
        except CapabilityNotFoundError as e:
            logger.info("Unknown capability kind", kind=str(kind), name=name)
            return InvocationOutcome.failure(
                kind=str(kind),
                name=name,
                error=str(e),
                failure_kind=FailureKind.LOOKUP,
            )
        return await self.dispatch(request)

    async def dispatch(self, request: InvocationRequest) -> InvocationOutcome:
        """
        Execute an invocation request.

        This is the single boundary where every failure is caught.

        Args:
            request: Tool call, resource read or prompt get

        Returns:
            Invocation outcome
        """
        start_time = time.perf_counter()
        kind = request.kind
        name = request.name

        logger.debug("Invoking capability", kind=kind.value, name=name)

        def elapsed() -> float:
            return (time.perf_counter() - start_time) * 1000

        try:
            descriptor = self.registry.lookup(kind, name)
            arguments = self._validate_input(descriptor, request)
            result = await self._call_handler(descriptor, request, arguments)
            outcome = self._normalize(descriptor, result, elapsed())

        except CapabilityNotFoundError as e:
            logger.info("Capability not found", kind=kind.value, name=name)
            outcome = InvocationOutcome.failure(
                kind=kind,
                name=name,
                error=str(e),
                failure_kind=FailureKind.LOOKUP,
                execution_time_ms=elapsed(),
            )

        except InputValidationError as e:
            logger.info(
                "Capability input rejected",
                kind=kind.value,
                name=name,
                errors=[str(err) for err in e.errors],
            )
            outcome = InvocationOutcome.failure(
                kind=kind,
                name=name,
                error=str(e),
                failure_kind=FailureKind.VALIDATION,
                field_errors=e.errors,
                execution_time_ms=elapsed(),
            )

        except HandlerError as e:
            logger.warning(
                "Capability handler failed",
                kind=kind.value,
                name=name,
                error=str(e),
            )
            outcome = InvocationOutcome.failure(
                kind=kind,
                name=name,
                error=str(e),
                failure_kind=FailureKind.HANDLER,
                execution_time_ms=elapsed(),
            )

        except OutputContractError as e:
            # Handler and schema disagree: a bug in the capability, not the caller
            logger.error(
                "Capability output violates its contract",
                kind=kind.value,
                name=name,
                error=str(e),
            )
            outcome = InvocationOutcome.failure(
                kind=kind,
                name=name,
                error=str(e),
                failure_kind=FailureKind.OUTPUT_CONTRACT,
                field_errors=e.errors,
                execution_time_ms=elapsed(),
            )

        except Exception as e:
            logger.error(
                "Capability dispatch failed",
                kind=kind.value,
                name=name,
                error=str(e),
                exc_info=True,
            )
            outcome = InvocationOutcome.failure(
                kind=kind,
                name=name,
                error=str(e) or type(e).__name__,
                failure_kind=FailureKind.HANDLER,
                execution_time_ms=elapsed(),
            )

        return outcome

    def _validate_input(
        self,
        descriptor: CapabilityDescriptor,
        request: InvocationRequest,
    ) -> Optional[dict[str, Any]]:
        """Validate and default the request arguments."""
        if isinstance(request, ResourceRead):
            return None

        result = validate(descriptor.input_schema, request.arguments, self.unknown_fields)
        if not result.valid:
            raise InputValidationError(result.errors)
        return result.value

    async def _call_handler(
        self,
        descriptor: CapabilityDescriptor,
        request: InvocationRequest,
        arguments: Optional[dict[str, Any]],
    ) -> Any:
        """
        Call the capability handler and await its result if needed.

        Raises:
            HandlerError: Wrapping whatever the handler raised
        """
        try:
            if isinstance(request, ResourceRead):
                result = descriptor.handler(request.uri)
            else:
                result = descriptor.handler(arguments)

            if inspect.isawaitable(result):
                result = await result

        except Exception as e:
            raise HandlerError(str(e) or type(e).__name__) from e

        return result

    def _normalize(
        self,
        descriptor: CapabilityDescriptor,
        result: Any,
        execution_time_ms: float,
    ) -> InvocationOutcome:
        """
        Convert a handler result into a Success outcome.

        Raises:
            OutputContractError: If the result has the wrong shape or violates
                the declared output schema
        """
        kind = descriptor.kind
        name = descriptor.key

        try:
            if kind == CapabilityKind.TOOL:
                output = self._to_tool_output(result)
                self._check_output_schema(descriptor, output)
                return InvocationOutcome.success(
                    kind=kind,
                    name=name,
                    content=output.content,
                    structured_content=output.structured_content,
                    execution_time_ms=execution_time_ms,
                )

            if kind == CapabilityKind.RESOURCE:
                return InvocationOutcome.success(
                    kind=kind,
                    name=name,
                    content=self._to_content(result),
                    mime_type=descriptor.mime_type,
                    execution_time_ms=execution_time_ms,
                )

            return InvocationOutcome.success(
                kind=kind,
                name=name,
                messages=self._to_messages(result),
                execution_time_ms=execution_time_ms,
            )

        except (ValidationError, TypeError) as e:
            raise OutputContractError(
                f"Handler for {kind.value} '{name}' returned an unsupported result: {e}"
            ) from e

    def _check_output_schema(
        self,
        descriptor: CapabilityDescriptor,
        output: ToolOutput,
    ) -> None:
        if descriptor.output_schema is None:
            return

        if output.structured_content is None:
            raise OutputContractError(
                f"Tool '{descriptor.name}' declares an output schema "
                f"but returned no structured content"
            )

        # Output is checked as-is; unknown keys are neither stripped nor rejected
        result = validate(descriptor.output_schema, output.structured_content)
        if not result.valid:
            raise OutputContractError(
                f"Tool '{descriptor.name}' returned output that violates its schema: "
                f"{'; '.join(str(e) for e in result.errors)}",
                errors=result.errors,
            )

    @staticmethod
    def _to_tool_output(result: Any) -> ToolOutput:
        if isinstance(result, ToolOutput):
            return result
        if isinstance(result, dict):
            return ToolOutput.model_validate(result)
        return ToolOutput(content=CapabilityDispatcher._to_content(result))

    @staticmethod
    def _to_content(result: Any) -> list[Any]:
        if isinstance(result, str):
            return [TextContent(text=result)]
        if isinstance(result, (list, tuple)):
            return _content_adapter.validate_python(list(result))
        return _content_adapter.validate_python([result])

    @staticmethod
    def _to_messages(result: Any) -> list[PromptMessage]:
        if isinstance(result, str):
            return [PromptMessage(role="user", content=TextContent(text=result))]
        if isinstance(result, PromptMessage):
            return [result]
        return _messages_adapter.validate_python(list(result))
