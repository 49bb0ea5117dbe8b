"""JSON Schema validation utilities.

Schemas are plain JSON Schema documents. Validation applies declared
defaults, collects every violation, and never coerces types.
"""

import copy
import math
from enum import Enum
from typing import Any, Optional

from jsonschema import Draft7Validator, ValidationError
from pydantic import BaseModel, ConfigDict, Field

from shared.models import FieldError, FieldSpec


class UnknownFieldPolicy(str, Enum):
    """How fields absent from the schema's properties are treated."""
    IGNORE = "ignore"
    REJECT = "reject"


class ValidationResult(BaseModel):
    """Either a coerced value or a list of field errors, never both."""
    model_config = ConfigDict(frozen=True)

    value: Any = None
    errors: list[FieldError] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(value=value)

    @classmethod
    def invalid(cls, errors: list[FieldError]) -> "ValidationResult":
        return cls(errors=errors)


def _is_object_schema(schema: dict[str, Any]) -> bool:
    return schema.get("type") == "object" or "properties" in schema


def apply_defaults(data: dict[str, Any], schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of data with declared defaults filled in for absent fields."""
    result = dict(data)
    for prop_name, prop_schema in schema.get("properties", {}).items():
        if prop_name not in result and "default" in prop_schema:
            result[prop_name] = copy.deepcopy(prop_schema["default"])
    return result


def _to_field_errors(errors: list[ValidationError]) -> list[FieldError]:
    """Convert jsonschema errors into field errors with dotted paths."""
    field_errors = []
    # "required" errors carry no path; match them to missing properties in order
    missing_seen: dict[tuple, int] = {}

    for e in errors:
        path = [str(p) for p in e.absolute_path]

        if e.validator == "required" and isinstance(e.instance, dict):
            key = tuple(path)
            missing = [p for p in e.validator_value if p not in e.instance]
            index = missing_seen.get(key, 0)
            missing_seen[key] = index + 1
            if index < len(missing):
                path.append(str(missing[index]))

        field_errors.append(FieldError(
            path=".".join(path),
            constraint=str(e.validator),
            message=e.message,
        ))

    return field_errors


def _non_finite_errors(schema: dict[str, Any], data: Any, path: list[str]) -> list[FieldError]:
    """Report NaN and infinities wherever the schema expects a number."""
    if schema.get("type") in ("number", "integer"):
        if isinstance(data, float) and not math.isfinite(data):
            return [FieldError(
                path=".".join(path),
                constraint="type",
                message="must be a finite number",
            )]
        return []

    errors = []
    if isinstance(data, dict):
        for prop_name, prop_schema in schema.get("properties", {}).items():
            if prop_name in data:
                errors.extend(_non_finite_errors(prop_schema, data[prop_name], path + [prop_name]))
    elif isinstance(data, list) and isinstance(schema.get("items"), dict):
        for i, item in enumerate(data):
            errors.extend(_non_finite_errors(schema["items"], item, path + [str(i)]))
    return errors


def validate(
    schema: Optional[dict[str, Any]],
    raw: Any,
    unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.IGNORE,
) -> ValidationResult:
    """
    Validate a raw value against a JSON Schema.

    For object schemas, absent optional fields receive their declared
    default before validation. Every violation is collected. Unknown fields
    are dropped from the returned record under the IGNORE policy and
    reported under REJECT.

    Args:
        schema: JSON Schema to validate against
        raw: The value to validate (None is treated as an empty object
            for object schemas)
        unknown_fields: Policy for fields not declared in the schema

    Returns:
        ValidationResult with the coerced value or all field errors
    """
    if not schema:
        return ValidationResult.ok(raw)

    data = raw
    is_object = _is_object_schema(schema)
    if is_object and raw is None:
        data = {}
    if is_object and isinstance(data, dict):
        data = apply_defaults(data, schema)

    validator = Draft7Validator(schema)
    errors = _to_field_errors(list(validator.iter_errors(data)))

    # jsonschema accepts NaN as a number and NaN never fails a bound
    type_errors = {e.path for e in errors if e.constraint == "type"}
    errors.extend(
        e for e in _non_finite_errors(schema, data, [])
        if e.path not in type_errors
    )

    properties = schema.get("properties")
    if is_object and isinstance(data, dict) and properties is not None:
        unknown = [k for k in data if k not in properties]
        if unknown_fields == UnknownFieldPolicy.REJECT:
            errors.extend(
                FieldError(
                    path=k,
                    constraint="additionalProperties",
                    message=f"'{k}' is not a known field",
                )
                for k in unknown
            )
        else:
            data = {k: v for k, v in data.items() if k in properties}

    if errors:
        return ValidationResult.invalid(errors)

    return ValidationResult.ok(data)


def check_schema(schema: dict[str, Any]) -> list[str]:
    """Return the problems with a schema document itself (empty if valid)."""
    validator = Draft7Validator(Draft7Validator.META_SCHEMA)
    return [e.message for e in validator.iter_errors(schema)]


def build_object_schema(fields: list[FieldSpec]) -> dict[str, Any]:
    """
    Create an object JSON Schema from a list of field definitions.

    Args:
        fields: Field definitions with name, type, constraints and default

    Returns:
        JSON Schema dictionary
    """
    properties: dict[str, Any] = {}
    required = []

    type_mapping = {
        "string": "string",
        "str": "string",
        "integer": "integer",
        "int": "integer",
        "number": "number",
        "float": "number",
        "boolean": "boolean",
        "bool": "boolean",
        "array": "array",
        "list": "array",
        "object": "object",
        "dict": "object",
    }

    for spec in fields:
        field_schema: dict[str, Any] = {
            "type": type_mapping.get(spec.type, "string"),
        }
        if spec.description:
            field_schema["description"] = spec.description

        if spec.enum is not None:
            field_schema["enum"] = list(spec.enum)

        if spec.minimum is not None:
            field_schema["minimum"] = spec.minimum
        if spec.maximum is not None:
            field_schema["maximum"] = spec.maximum

        if spec.min_length is not None:
            field_schema["minLength"] = spec.min_length
        if spec.max_length is not None:
            field_schema["maxLength"] = spec.max_length

        if field_schema["type"] == "array" and spec.items:
            field_schema["items"] = spec.items

        if not spec.required and spec.default is not None:
            field_schema["default"] = spec.default

        properties[spec.name] = field_schema

        if spec.required:
            required.append(spec.name)

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required

    return schema
