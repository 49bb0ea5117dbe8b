"""Response envelope builder.

Wraps invocation outcomes into the response shapes callers expect.
"""

from typing import Any

from shared.models import (
    CapabilityKind,
    ImageContent,
    InvocationOutcome,
    TextContent,
)


def _dump(block: Any) -> dict[str, Any]:
    return block.model_dump(by_alias=True, mode="json")


def _resource_contents(outcome: InvocationOutcome) -> list[dict[str, Any]]:
    contents = []
    for block in outcome.content:
        if isinstance(block, ImageContent):
            contents.append({
                "uri": outcome.name,
                "mimeType": block.mime_type,
                "blob": _dump(block)["data"],
            })
        else:
            entry: dict[str, Any] = {"uri": outcome.name, "text": block.text}
            if outcome.mime_type:
                entry["mimeType"] = outcome.mime_type
            contents.append(entry)
    return contents


def build_error_response(message: str) -> dict[str, Any]:
    """Create a protocol-level error response with a single text block."""
    return {
        "content": [_dump(TextContent(text=message))],
        "isError": True,
    }


def build_response(outcome: InvocationOutcome) -> dict[str, Any]:
    """
    Build the protocol response for an invocation outcome.

    Failures become a single text block flagged with isError. Successes take
    the shape of their capability kind; content order is preserved.

    Args:
        outcome: Invocation outcome

    Returns:
        Response dictionary ready for serialization
    """
    if not outcome.ok:
        return build_error_response(outcome.error or "Unknown error")

    if outcome.kind == CapabilityKind.RESOURCE:
        return {"contents": _resource_contents(outcome)}

    if outcome.kind == CapabilityKind.PROMPT:
        return {"messages": [_dump(m) for m in outcome.messages]}

    response: dict[str, Any] = {
        "content": [_dump(block) for block in outcome.content],
        "isError": False,
    }
    if outcome.structured_content is not None:
        response["structuredContent"] = outcome.structured_content
    return response
