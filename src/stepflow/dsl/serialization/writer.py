"""Configuration writer for serializing StepFlowConfig.

This module provides the DslWriter class for converting a StepFlowConfig
to canonical DSL text and to the interchange dict/JSON/YAML forms.

Canonical DSL layout:
- Sections in order: settings, defaults, workflows, steps
- Defaults list ``step.*`` first, then ``guard.*``, then named buckets
- Two-space indentation, four spaces inside ``config:``
- One blank line after every block; output ends with a single newline

Serializing text produced by the parser gives text that parses back to an
equal configuration, and serializing that again is byte-for-byte stable.

Usage:
    writer = DslWriter()
    text = writer.to_dsl(config)
    data = writer.to_dict(config)
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

import yaml

from stepflow.dsl.errors import DslSerializationError
from stepflow.dsl.serialization.context import IDENTIFIER, TYPE_NAME
from stepflow.dsl.serialization.grammar import KEY_PATTERN
from stepflow.dsl.serialization.lexical import format_duration, format_scalar
from stepflow.dsl.serialization.paths import flatten
from stepflow.dsl.serialization.schema import (
    EdgeDef,
    FailurePolicy,
    StepDef,
    StepFlowConfig,
    WorkflowDef,
)
from stepflow.dsl.types import EdgeKind, FailureStrategy

__all__ = ["DslWriter", "stringify_dsl"]

_IDENTIFIER_RE = re.compile(rf"^{IDENTIFIER}$")
_TYPE_NAME_RE = re.compile(rf"^{TYPE_NAME}$")
_KEY_RE = re.compile(rf"^{KEY_PATTERN}$")

_INDENT = "  "
_CONFIG_INDENT = "    "
_CATEGORIES = ("step", "guard")


class DslWriter:
    """Serializes StepFlowConfig to DSL text and interchange formats.

    Example:
        >>> config = StepFlowConfig.from_dsl("step fetch: HttpStep\\n")
        >>> print(DslWriter().to_dsl(config), end="")
        step fetch: HttpStep
    """

    # =========================================================================
    # Interchange formats
    # =========================================================================

    def to_dict(self, config: StepFlowConfig) -> dict[str, Any]:
        """Convert to the interchange dict (camelCase keys, None omitted)."""
        data: dict[str, Any] = config.model_dump(
            by_alias=True, exclude_none=True, mode="json"
        )
        return data

    def to_json(self, config: StepFlowConfig, indent: int | None = 2) -> str:
        """Convert to a JSON string."""
        return json.dumps(self.to_dict(config), indent=indent, ensure_ascii=False)

    def to_yaml(self, config: StepFlowConfig) -> str:
        """Convert to a YAML string, preserving declaration order."""
        result: str = yaml.safe_dump(
            self.to_dict(config),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        return result

    # =========================================================================
    # DSL text
    # =========================================================================

    def to_dsl(self, config: StepFlowConfig) -> str:
        """Convert to canonical DSL text.

        Raises:
            DslSerializationError: If the configuration cannot be expressed
                in the DSL (empty step type, invalid names, unwritable
                values, ALTERNATIVE without a target).
        """
        blocks: list[list[str]] = []

        if config.settings:
            lines = self._assignments(config.settings, "", _INDENT, "settings")
            if lines:
                blocks.append(["settings:", *lines])

        if config.defaults:
            lines = self._defaults_lines(config.defaults)
            if lines:
                blocks.append(["defaults:", *lines])

        for name, workflow in config.workflows.items():
            blocks.append(self._workflow_lines(name, workflow))

        for name, step in config.steps.items():
            blocks.append(self._step_lines(name, step))

        text = "\n\n".join("\n".join(block) for block in blocks)
        return text.strip() + "\n"

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _defaults_lines(self, defaults: Mapping[str, Any]) -> list[str]:
        lines: list[str] = []
        for category in _CATEGORIES:
            if category not in defaults:
                continue
            bucket = defaults[category]
            if not isinstance(bucket, Mapping):
                raise DslSerializationError(
                    f"Defaults category '{category}' must be a map",
                    location=f"defaults.{category}",
                )
            lines.extend(
                self._assignments(bucket, category, _INDENT, f"defaults.{category}")
            )

        for name, bucket in defaults.items():
            if name in _CATEGORIES:
                continue
            location = f"defaults.{name}"
            if isinstance(bucket, Mapping):
                lines.extend(self._assignments(bucket, name, _INDENT, location))
            else:
                lines.extend(self._assignments({name: bucket}, "", _INDENT, "defaults"))
        return lines

    def _workflow_lines(self, name: str, workflow: WorkflowDef) -> list[str]:
        location = f"workflows.{name}"
        self._check_identifier(name, location)
        lines = [f"workflow {name}:"]
        if workflow.root:
            self._check_identifier(workflow.root, f"{location}.root")
            lines.append(f"{_INDENT}root: {workflow.root}")
        for index, edge in enumerate(workflow.edges):
            lines.append(
                _INDENT + self._edge_text(edge, f"{location}.edges[{index}]")
            )
        return lines

    def _edge_text(self, edge: EdgeDef, location: str) -> str:
        self._check_identifier(edge.from_, f"{location}.from")
        self._check_identifier(edge.to, f"{location}.to")
        parts = [f"{edge.from_} -> {edge.to}"]
        if edge.guard:
            self._check_identifier(edge.guard, f"{location}.guard")
            parts.append(f"? {edge.guard}")
        if edge.on_failure is not None:
            parts.append(self._failure_text(edge.on_failure, f"{location}.onFailure"))
        if edge.kind == EdgeKind.TERMINAL:
            parts.append("[terminal]")
        return " ".join(parts)

    def _failure_text(self, policy: FailurePolicy, location: str) -> str:
        strategy = policy.strategy
        if strategy == FailureStrategy.ALTERNATIVE:
            target = policy.alternative_target
            if not target:
                raise DslSerializationError(
                    "ALTERNATIVE strategy requires a target",
                    location=f"{location}.alternativeTarget",
                )
            self._check_identifier(target, f"{location}.alternativeTarget")
            return f"fail -> {target}"
        if strategy == FailureStrategy.RETRY:
            text = f"fail retry {policy.retry_attempts or 1}x"
            if policy.retry_delay:
                text += f" / {format_duration(policy.retry_delay)}"
            return text
        return f"fail {strategy.value.lower()}"

    def _step_lines(self, name: str, step: StepDef) -> list[str]:
        location = f"steps.{name}"
        self._check_identifier(name, location)
        if not step.type:
            raise DslSerializationError(
                "Step type must not be empty", location=f"{location}.type"
            )
        if not _TYPE_NAME_RE.match(step.type):
            raise DslSerializationError(
                f"Step type '{step.type}' is not a valid type name",
                location=f"{location}.type",
            )

        lines = [f"step {name}: {step.type}"]
        if step.guards:
            for index, guard in enumerate(step.guards):
                self._check_identifier(guard, f"{location}.guards[{index}]")
            lines.append(f"{_INDENT}requires: {', '.join(step.guards)}")
        if step.retry is not None:
            text = f"{_INDENT}retry: {step.retry.max_attempts}x"
            if step.retry.delay:
                text += f" / {format_duration(step.retry.delay)}"
            if step.retry.guard:
                self._check_identifier(step.retry.guard, f"{location}.retry.guard")
                text += f" ? {step.retry.guard}"
            lines.append(text)
        if step.config is not None:
            lines.append(f"{_INDENT}config:")
            lines.extend(
                self._assignments(
                    step.config, "", _CONFIG_INDENT, f"{location}.config"
                )
            )
        return lines

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _assignments(
        self,
        values: Mapping[str, Any],
        prefix: str,
        indent: str,
        location: str,
    ) -> list[str]:
        """Flatten a nested map into ``key = value`` lines."""
        self._check_keys(values, location)
        lines = []
        for key, value in flatten(values, prefix).items():
            if not _KEY_RE.match(key):
                raise DslSerializationError(
                    f"Key '{key}' cannot be written", location=location
                )
            try:
                rendered = format_scalar(value)
            except ValueError as e:
                raise DslSerializationError(str(e), location=f"{location}.{key}") from e
            lines.append(f"{indent}{key} = {rendered}")
        return lines

    def _check_keys(self, values: Mapping[Any, Any], location: str) -> None:
        for key, value in values.items():
            if not isinstance(key, str):
                raise DslSerializationError(
                    f"Key {key!r} is not a string", location=location
                )
            if isinstance(value, Mapping):
                self._check_keys(value, f"{location}.{key}")

    @staticmethod
    def _check_identifier(name: str, location: str) -> None:
        if not _IDENTIFIER_RE.match(name):
            raise DslSerializationError(
                f"'{name}' is not a valid identifier", location=location
            )


def stringify_dsl(config: StepFlowConfig) -> str:
    """Serialize ``config`` to canonical DSL text."""
    return DslWriter().to_dsl(config)
