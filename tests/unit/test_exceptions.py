"""Tests for the stepflow exception hierarchy."""

from __future__ import annotations

import pytest

from stepflow.dsl.errors import (
    DSLError,
    DslParseError,
    DslSerializationError,
    WorkflowDefinitionError,
)
from stepflow.exceptions import ConfigError, StepflowError


class TestStepflowError:
    def test_message(self) -> None:
        error = StepflowError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_config_error_fields(self) -> None:
        error = ConfigError("Invalid value", field="validation.max_depth", value=-1)
        assert isinstance(error, StepflowError)
        assert (error.field, error.value) == ("validation.max_depth", -1)


class TestDslErrors:
    @pytest.mark.parametrize(
        "error_class",
        [WorkflowDefinitionError, DslParseError, DslSerializationError],
    )
    def test_hierarchy(self, error_class: type[DSLError]) -> None:
        assert issubclass(error_class, DSLError)
        assert issubclass(error_class, StepflowError)

    def test_parse_error_attributes(self) -> None:
        error = DslParseError("Cannot read file", file_path="orders.flow", line_number=3)
        assert error.file_path == "orders.flow"
        assert error.line_number == 3
        assert error.message == "Cannot read file"

    def test_serialization_error_location(self) -> None:
        error = DslSerializationError("Step type must not be empty", location="steps.a.type")
        assert error.location == "steps.a.type"
        assert error.message == "Step type must not be empty (at steps.a.type)"

    def test_serialization_error_without_location(self) -> None:
        assert str(DslSerializationError("Broken")) == "Broken"
