"""Utility tools - greeting, arithmetic and clock.

Self-contained tools with no upstream dependencies.
"""

from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.logging import get_logger
from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    FieldSpec,
    ToolOutput,
)
from shared.schema import build_object_schema
from capabilities.base import CapabilityProvider, format_number, text_content_schema

logger = get_logger(__name__)


GREETINGS = {
    "ko": "안녕하세요, {name}님!",
    "en": "Hey there, {name}! 👋 Nice to meet you!",
}

OPERATORS = ["+", "-", "*", "/"]


class UtilityProvider(CapabilityProvider):
    """
    Utility tools.

    Provides:
    - greet: localized greeting
    - calculator: four-function arithmetic
    - time: current time in an IANA timezone
    """

    def __init__(self, clock: Optional[Any] = None) -> None:
        super().__init__("utility")
        self._clock = clock or datetime.now
        self._descriptors = self._define_tools()

    def _define_tools(self) -> list[CapabilityDescriptor]:
        """Define all utility tools."""
        return [
            CapabilityDescriptor(
                name="greet",
                kind=CapabilityKind.TOOL,
                description="Returns a greeting for the given name in the chosen language.",
                input_schema=build_object_schema([
                    FieldSpec(
                        name="name",
                        type="string",
                        description="Name of the person to greet",
                    ),
                    FieldSpec(
                        name="language",
                        type="string",
                        description="Greeting language (default: en)",
                        required=False,
                        default="en",
                        enum=list(GREETINGS),
                    ),
                ]),
                output_schema=text_content_schema("Greeting"),
                handler=self.greet,
            ),
            CapabilityDescriptor(
                name="calculator",
                kind=CapabilityKind.TOOL,
                description="Applies an arithmetic operator to two numbers and returns the result.",
                input_schema=build_object_schema([
                    FieldSpec(name="number1", type="number", description="First number"),
                    FieldSpec(name="number2", type="number", description="Second number"),
                    FieldSpec(
                        name="operator",
                        type="string",
                        description="Operator (+, -, *, /)",
                        enum=OPERATORS,
                    ),
                ]),
                output_schema=text_content_schema("Calculation result"),
                handler=self.calculate,
            ),
            CapabilityDescriptor(
                name="time",
                kind=CapabilityKind.TOOL,
                description="Returns the current time in the given timezone.",
                input_schema=build_object_schema([
                    FieldSpec(
                        name="timezone",
                        type="string",
                        description="IANA timezone name (e.g. Asia/Seoul, America/New_York, Europe/London)",
                    ),
                ]),
                output_schema=text_content_schema("Current time"),
                handler=self.current_time,
            ),
        ]

    @property
    def descriptors(self) -> list[CapabilityDescriptor]:
        return self._descriptors

    def greet(self, params: dict[str, Any]) -> ToolOutput:
        template = GREETINGS[params["language"]]
        return ToolOutput.from_text(template.format(name=params["name"]))

    def calculate(self, params: dict[str, Any]) -> ToolOutput:
        number1 = params["number1"]
        number2 = params["number2"]
        operator = params["operator"]
        logger.debug("Calculator action", operator=operator)

        if operator == "+":
            result = number1 + number2
        elif operator == "-":
            result = number1 - number2
        elif operator == "*":
            result = number1 * number2
        elif operator == "/":
            if number2 == 0:
                raise ZeroDivisionError("Cannot divide by zero")
            result = number1 / number2
        else:
            raise ValueError(f"Unsupported operator: {operator}")

        text = (
            f"{format_number(number1)} {operator} {format_number(number2)} "
            f"= {format_number(result)}"
        )
        return ToolOutput.from_text(text)

    def current_time(self, params: dict[str, Any]) -> ToolOutput:
        timezone = params["timezone"]
        try:
            zone = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise ValueError(
                f"Invalid timezone: {timezone}. "
                f"Use an IANA timezone name (e.g. Asia/Seoul, America/New_York)"
            ) from None

        now = self._clock(zone)
        text = f"Current time in {timezone}: {now:%A, %B %d, %Y %H:%M:%S}"
        return ToolOutput.from_text(text)


def register_utility_capabilities(registry) -> UtilityProvider:
    """Register the utility tools."""
    provider = UtilityProvider()
    provider.register(registry)
    return provider
