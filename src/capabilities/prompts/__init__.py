"""Prompt templates - code review."""

from typing import Any, Optional

from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    FieldSpec,
    PromptMessage,
    TextContent,
)
from shared.schema import build_object_schema
from capabilities.base import CapabilityProvider


REVIEW_CHECKLIST = """=== Review checklist ===

1. Code quality and standards
   - Adherence to coding conventions
   - Naming
   - Structure and design patterns

2. Performance
   - Algorithmic efficiency
   - Redundant computation or duplicated code
   - Memory usage

3. Security
   - Input validation
   - Injection risks
   - Authentication and authorization

4. Readability and maintainability
   - Comments and documentation
   - Function and class decomposition
   - Testability

5. Suggested improvements
   - Concrete fixes
   - Refactoring opportunities
   - Applicable best practices

Explain each item with concrete examples."""


def code_review_template(
    code: str,
    language: Optional[str] = None,
    focus: Optional[str] = None,
) -> str:
    """Render the code review request text."""
    language_info = f"Programming language: {language}\n\n" if language else ""
    focus_info = f"Focus area: {focus}\n\n" if focus else ""

    return (
        "Please review the following code. Analyze it for quality, performance, "
        "security, readability and maintainability, and suggest improvements.\n\n"
        f"{language_info}{focus_info}"
        "=== Code to review ===\n\n"
        f"```{language or ''}\n{code}\n```\n\n"
        f"{REVIEW_CHECKLIST}"
    )


class PromptProvider(CapabilityProvider):
    """Prompt templates."""

    def __init__(self) -> None:
        super().__init__("prompts")
        self._descriptors = [
            CapabilityDescriptor(
                name="code-review",
                kind=CapabilityKind.PROMPT,
                title="Code review",
                description="Builds a code review prompt for the given code.",
                input_schema=build_object_schema([
                    FieldSpec(name="code", type="string", description="Code to review"),
                    FieldSpec(
                        name="language",
                        type="string",
                        description="Programming language (e.g. TypeScript, Python, Java)",
                        required=False,
                    ),
                    FieldSpec(
                        name="focus",
                        type="string",
                        description="Review area to focus on (e.g. performance, security)",
                        required=False,
                    ),
                ]),
                handler=self.code_review,
            ),
        ]

    @property
    def descriptors(self) -> list[CapabilityDescriptor]:
        return self._descriptors

    def code_review(self, params: dict[str, Any]) -> list[PromptMessage]:
        text = code_review_template(
            params["code"],
            params.get("language"),
            params.get("focus"),
        )
        return [PromptMessage(role="user", content=TextContent(text=text))]


def register_prompt_capabilities(registry) -> PromptProvider:
    """Register the prompt templates."""
    provider = PromptProvider()
    provider.register(registry)
    return provider
