"""Shared models, schema validation and utilities for the capability server."""

from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    ContentBlock,
    FieldError,
    FieldSpec,
    ImageContent,
    InvocationOutcome,
    PromptMessage,
    TextContent,
    ToolOutput,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "CapabilityDescriptor",
    "CapabilityKind",
    "ContentBlock",
    "FieldError",
    "FieldSpec",
    "ImageContent",
    "InvocationOutcome",
    "PromptMessage",
    "TextContent",
    "ToolOutput",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
