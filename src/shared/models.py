"""Core data models for the capability server.

This module defines the shared data structures used across the server:
capability descriptors, content blocks, invocation requests and outcomes.
"""

import base64
from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)


class CapabilityKind(str, Enum):
    """Kind of capability. Each kind is an independent namespace."""
    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"


class FieldSpec(BaseModel):
    """Definition of a single input field."""
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    default: Any = None
    enum: Optional[list[Any]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    items: Optional[dict[str, Any]] = None


class FieldError(BaseModel):
    """One violated constraint on one field."""
    model_config = ConfigDict(frozen=True)

    path: str = ""
    constraint: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class TextContent(BaseModel):
    """Plain text content block."""
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """Binary image content block. Serialized as base64."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["image"] = "image"
    data: bytes
    mime_type: str = Field(default="image/png", alias="mimeType")

    @field_serializer("data")
    def _encode_data(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")


ContentBlock = Annotated[Union[TextContent, ImageContent], Field(discriminator="type")]


class PromptMessage(BaseModel):
    """A single message produced by a prompt template."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = "user"
    content: ContentBlock


class ToolOutput(BaseModel):
    """
    Result returned by a tool handler.

    The structured payload, when present, mirrors the rendered content so
    callers may consume either.
    """
    model_config = ConfigDict(populate_by_name=True)

    content: list[ContentBlock] = Field(default_factory=list)
    structured_content: Optional[dict[str, Any]] = Field(
        default=None, alias="structuredContent"
    )

    @classmethod
    def from_text(cls, text: str, structured: bool = True) -> "ToolOutput":
        """Build a single-text-block output, optionally with a structured copy."""
        block = TextContent(text=text)
        payload = None
        if structured:
            payload = {"content": [block.model_dump()]}
        return cls(content=[block], structured_content=payload)


class CapabilityDescriptor(BaseModel):
    """
    Complete definition of one registered capability.

    Resources are addressed by URI, tools and prompts by name.
    Descriptors are immutable once built.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    kind: CapabilityKind
    title: Optional[str] = None
    description: str = ""

    # Schema definitions
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for input validation",
    )
    output_schema: Optional[dict[str, Any]] = Field(
        default=None,
        description="JSON Schema for the structured output (tools only)",
    )

    # Resource metadata
    uri: Optional[str] = None
    mime_type: Optional[str] = None

    handler: Callable[..., Any] = Field(exclude=True, repr=False)

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "CapabilityDescriptor":
        if self.output_schema is not None and self.kind != CapabilityKind.TOOL:
            raise ValueError("output_schema is only allowed on tools")
        if self.kind == CapabilityKind.RESOURCE and not self.uri:
            raise ValueError("resources require a uri")
        return self

    @property
    def key(self) -> str:
        """Registry key within the capability's kind."""
        if self.kind == CapabilityKind.RESOURCE:
            return self.uri or self.name
        return self.name

    def to_listing(self) -> dict[str, Any]:
        """Return the descriptor in the protocol listing format."""
        if self.kind == CapabilityKind.RESOURCE:
            listing = {
                "name": self.name,
                "uri": self.uri,
                "description": self.description,
            }
            if self.mime_type:
                listing["mimeType"] = self.mime_type
            return listing

        if self.kind == CapabilityKind.PROMPT:
            properties = self.input_schema.get("properties", {})
            required = set(self.input_schema.get("required", []))
            listing = {
                "name": self.name,
                "description": self.description,
                "arguments": [
                    {
                        "name": arg_name,
                        "description": arg_schema.get("description", ""),
                        "required": arg_name in required,
                    }
                    for arg_name, arg_schema in properties.items()
                ],
            }
            if self.title:
                listing["title"] = self.title
            return listing

        listing = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.title:
            listing["title"] = self.title
        if self.output_schema is not None:
            listing["outputSchema"] = self.output_schema
        return listing


# Invocation requests

class ToolCall(BaseModel):
    """A request to call a tool."""
    kind: Literal[CapabilityKind.TOOL] = CapabilityKind.TOOL
    name: str
    arguments: Any = None


class ResourceRead(BaseModel):
    """A request to read a resource by URI."""
    kind: Literal[CapabilityKind.RESOURCE] = CapabilityKind.RESOURCE
    uri: str

    @property
    def name(self) -> str:
        return self.uri


class PromptGet(BaseModel):
    """A request to render a prompt template."""
    kind: Literal[CapabilityKind.PROMPT] = CapabilityKind.PROMPT
    name: str
    arguments: Any = None


InvocationRequest = Annotated[
    Union[ToolCall, ResourceRead, PromptGet], Field(discriminator="kind")
]


class InvocationStatus(str, Enum):
    """Status of one invocation."""
    SUCCESS = "success"
    FAILURE = "failure"


class FailureKind(str, Enum):
    """Where in the pipeline an invocation failed."""
    LOOKUP = "lookup_error"
    VALIDATION = "validation_error"
    HANDLER = "handler_error"
    OUTPUT_CONTRACT = "output_contract_error"


class InvocationOutcome(BaseModel):
    """
    Result of one capability invocation.

    Either a success carrying content (or prompt messages) or a failure
    carrying a message. Built once per invocation and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    # Plain str only when the caller named a kind that does not exist
    kind: Union[CapabilityKind, str]
    name: str
    status: InvocationStatus

    content: list[ContentBlock] = Field(default_factory=list)
    structured_content: Optional[dict[str, Any]] = None
    messages: list[PromptMessage] = Field(default_factory=list)
    mime_type: Optional[str] = None

    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    field_errors: list[FieldError] = Field(default_factory=list)

    execution_time_ms: float = 0

    @property
    def ok(self) -> bool:
        return self.status == InvocationStatus.SUCCESS

    @classmethod
    def success(
        cls,
        kind: Union[CapabilityKind, str],
        name: str,
        content: Optional[list[Any]] = None,
        structured_content: Optional[dict[str, Any]] = None,
        messages: Optional[list[PromptMessage]] = None,
        mime_type: Optional[str] = None,
        execution_time_ms: float = 0,
    ) -> "InvocationOutcome":
        return cls(
            kind=kind,
            name=name,
            status=InvocationStatus.SUCCESS,
            content=content or [],
            structured_content=structured_content,
            messages=messages or [],
            mime_type=mime_type,
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def failure(
        cls,
        kind: Union[CapabilityKind, str],
        name: str,
        error: str,
        failure_kind: FailureKind,
        field_errors: Optional[list[FieldError]] = None,
        execution_time_ms: float = 0,
    ) -> "InvocationOutcome":
        return cls(
            kind=kind,
            name=name,
            status=InvocationStatus.FAILURE,
            error=error,
            failure_kind=failure_kind,
            field_errors=field_errors or [],
            execution_time_ms=execution_time_ms,
        )
