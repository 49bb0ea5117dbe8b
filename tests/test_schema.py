"""Tests for schema building and validation."""

import pytest

from shared.models import FieldSpec
from shared.schema import (
    UnknownFieldPolicy,
    build_object_schema,
    check_schema,
    validate,
)


GREET_SCHEMA = build_object_schema([
    FieldSpec(name="name", type="string"),
    FieldSpec(name="language", type="string", required=False, default="en", enum=["ko", "en"]),
])

CALCULATOR_SCHEMA = build_object_schema([
    FieldSpec(name="number1", type="number"),
    FieldSpec(name="number2", type="number"),
    FieldSpec(name="operator", type="string", enum=["+", "-", "*", "/"]),
])

WEATHER_SCHEMA = build_object_schema([
    FieldSpec(name="latitude", type="number", minimum=-90, maximum=90),
    FieldSpec(name="longitude", type="number", minimum=-180, maximum=180),
    FieldSpec(
        name="forecastDays", type="integer", required=False, default=7, minimum=1, maximum=16
    ),
])

PROMPT_SCHEMA = build_object_schema([
    FieldSpec(name="prompt", type="string", min_length=1, max_length=1000),
])


class TestBuildObjectSchema:
    """Tests for building object schemas from field specs."""

    def test_required_fields_listed(self):
        assert CALCULATOR_SCHEMA["required"] == ["number1", "number2", "operator"]
        assert GREET_SCHEMA["required"] == ["name"]

    def test_optional_field_carries_default(self):
        language = GREET_SCHEMA["properties"]["language"]
        assert language["default"] == "en"
        assert language["enum"] == ["ko", "en"]

    def test_constraints_mapped(self):
        forecast = WEATHER_SCHEMA["properties"]["forecastDays"]
        assert forecast["type"] == "integer"
        assert forecast["minimum"] == 1
        assert forecast["maximum"] == 16

        prompt = PROMPT_SCHEMA["properties"]["prompt"]
        assert prompt["minLength"] == 1
        assert prompt["maxLength"] == 1000

    def test_no_required_key_when_all_optional(self):
        schema = build_object_schema([FieldSpec(name="focus", required=False)])
        assert "required" not in schema

    def test_built_schemas_are_valid(self):
        for schema in (GREET_SCHEMA, CALCULATOR_SCHEMA, WEATHER_SCHEMA, PROMPT_SCHEMA):
            assert check_schema(schema) == []


class TestCheckSchema:
    """Tests for schema self-validation."""

    def test_invalid_type_reported(self):
        assert check_schema({"type": "not-a-type"})

    def test_empty_schema_is_valid(self):
        assert check_schema({}) == []


class TestValidate:
    """Tests for validating values against schemas."""

    def test_valid_input_returns_defaulted_record(self):
        result = validate(GREET_SCHEMA, {"name": "Ada"})

        assert result.valid
        assert result.value == {"name": "Ada", "language": "en"}

    def test_explicit_value_overrides_default(self):
        result = validate(GREET_SCHEMA, {"name": "Ada", "language": "ko"})
        assert result.value["language"] == "ko"

    def test_missing_required_field_reported_by_name(self):
        result = validate(GREET_SCHEMA, {})

        assert not result.valid
        assert result.value is None
        assert len(result.errors) == 1
        assert result.errors[0].path == "name"
        assert result.errors[0].constraint == "required"
        assert "name" in result.errors[0].message

    def test_none_is_treated_as_empty_object(self):
        result = validate(GREET_SCHEMA, None)

        assert not result.valid
        assert [e.path for e in result.errors] == ["name"]

    def test_errors_accumulate(self):
        result = validate(CALCULATOR_SCHEMA, {"number1": "10", "operator": "%"})

        assert not result.valid
        assert {e.path for e in result.errors} == {"number1", "number2", "operator"}
        constraints = {e.path: e.constraint for e in result.errors}
        assert constraints == {"number1": "type", "number2": "required", "operator": "enum"}

    def test_every_missing_required_field_named(self):
        result = validate(CALCULATOR_SCHEMA, {})

        assert sorted(e.path for e in result.errors) == ["number1", "number2", "operator"]

    def test_string_not_coerced_to_number(self):
        result = validate(CALCULATOR_SCHEMA, {"number1": "1", "number2": 2, "operator": "+"})

        assert not result.valid
        assert result.errors[0].path == "number1"

    def test_boolean_is_not_a_number(self):
        result = validate(CALCULATOR_SCHEMA, {"number1": True, "number2": 2, "operator": "+"})
        assert not result.valid

    def test_enum_is_case_sensitive(self):
        result = validate(GREET_SCHEMA, {"name": "Ada", "language": "EN"})

        assert not result.valid
        assert result.errors[0].constraint == "enum"

    @pytest.mark.parametrize("operator", ["+", "-", "*", "/"])
    def test_every_enum_member_accepted(self, operator):
        result = validate(CALCULATOR_SCHEMA, {"number1": 1, "number2": 2, "operator": operator})
        assert result.valid

    @pytest.mark.parametrize("latitude,valid", [
        (-90, True),
        (90, True),
        (-91, False),
        (91, False),
    ])
    def test_numeric_bounds_are_inclusive(self, latitude, valid):
        result = validate(WEATHER_SCHEMA, {"latitude": latitude, "longitude": 0})
        assert result.valid is valid

    @pytest.mark.parametrize("days,valid", [
        (1, True),
        (16, True),
        (0, False),
        (17, False),
        (2.5, False),
    ])
    def test_integer_bounds(self, days, valid):
        result = validate(WEATHER_SCHEMA, {"latitude": 0, "longitude": 0, "forecastDays": days})
        assert result.valid is valid

    @pytest.mark.parametrize("field", ["latitude", "longitude", "forecastDays"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_rejected(self, field, value):
        arguments = {"latitude": 0, "longitude": 0}
        arguments[field] = value

        result = validate(WEATHER_SCHEMA, arguments)

        assert not result.valid
        assert field in [e.path for e in result.errors]

    def test_nan_reported_as_type_error(self):
        result = validate(CALCULATOR_SCHEMA, {"number1": float("nan"), "number2": 5, "operator": "+"})

        assert not result.valid
        assert len(result.errors) == 1
        assert result.errors[0].path == "number1"
        assert result.errors[0].constraint == "type"
        assert result.errors[0].message == "must be a finite number"

    def test_nested_nan_rejected(self):
        schema = {
            "type": "object",
            "properties": {"points": {"type": "array", "items": {"type": "number"}}},
        }

        result = validate(schema, {"points": [1.0, float("nan")]})

        assert [e.path for e in result.errors] == ["points.1"]

    @pytest.mark.parametrize("prompt,valid", [
        ("", False),
        ("a", True),
        ("a" * 1000, True),
        ("a" * 1001, False),
    ])
    def test_string_length_bounds(self, prompt, valid):
        assert validate(PROMPT_SCHEMA, {"prompt": prompt}).valid is valid

    def test_unknown_fields_ignored_by_default(self):
        result = validate(GREET_SCHEMA, {"name": "Ada", "mood": "cheerful"})

        assert result.valid
        assert "mood" not in result.value

    def test_unknown_fields_rejected_under_strict_policy(self):
        result = validate(
            GREET_SCHEMA,
            {"name": "Ada", "mood": "cheerful"},
            unknown_fields=UnknownFieldPolicy.REJECT,
        )

        assert not result.valid
        assert result.errors[0].path == "mood"
        assert result.errors[0].constraint == "additionalProperties"

    def test_non_object_input_rejected(self):
        result = validate(GREET_SCHEMA, ["Ada"])

        assert not result.valid
        assert result.errors[0].constraint == "type"

    def test_input_not_mutated(self):
        raw = {"name": "Ada"}
        validate(GREET_SCHEMA, raw)
        assert raw == {"name": "Ada"}

    def test_nested_required_path(self):
        schema = {
            "type": "object",
            "properties": {
                "content": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"text": {"type": "string"}},
                        "required": ["type", "text"],
                    },
                }
            },
            "required": ["content"],
        }

        result = validate(schema, {"content": [{"type": "text"}]})

        assert not result.valid
        assert result.errors[0].path == "content.0.text"

    def test_empty_schema_accepts_anything(self):
        result = validate({}, 42)

        assert result.valid
        assert result.value == 42
