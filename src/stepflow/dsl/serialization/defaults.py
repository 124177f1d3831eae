"""Effective configuration of steps and guards.

A step's configuration is assembled from ordered override layers, lowest
precedence first:

    1. ``defaults: step.*``            (category defaults)
    2. ``defaults: <step type>.*``     (named defaults for the type)
    3. ``defaults: <step name>.*``     (named defaults for the name)
    4. the step's own ``config:`` block
    5. ``settings:``                   (only for keys already present)

Guards use ``defaults: guard.*`` followed by ``defaults: <guard name>.*``.

Layers are plain objects with an ``apply`` method; resolve_step_config()
and resolve_guard_config() accept a custom layer list, so new layers are
added by extending STEP_LAYERS or GUARD_LAYERS.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from stepflow.dsl.errors import WorkflowDefinitionError
from stepflow.dsl.serialization.paths import flatten, get_path, set_path
from stepflow.dsl.serialization.schema import StepFlowConfig

__all__ = [
    "ResolvedConfig",
    "OverrideLayer",
    "CategoryDefaultsLayer",
    "TypeDefaultsLayer",
    "NamedDefaultsLayer",
    "StepConfigLayer",
    "GlobalSettingsLayer",
    "STEP_LAYERS",
    "GUARD_LAYERS",
    "resolve_step_config",
    "resolve_guard_config",
]

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Effective configuration plus where each value came from.

    Fields:
        subject: Step or guard name
        values: Merged nested configuration
        sources: Dotted key -> name of the layer that supplied it
    """

    subject: str
    values: dict[str, Any] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Layers
# =============================================================================


class OverrideLayer(ABC):
    """Base override layer: merges a map over the values resolved so far.

    Subclasses implement values(); apply() may be overridden for layers that
    do not simply merge.
    """

    name = "layer"

    @abstractmethod
    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        """Return the map this layer contributes for ``subject``."""
        ...

    def apply(
        self,
        config: StepFlowConfig,
        subject: str,
        merged: dict[str, Any],
        sources: dict[str, str],
    ) -> None:
        contributed = self.values(config, subject)
        if not isinstance(contributed, Mapping):
            return
        for key, value in flatten(contributed).items():
            set_path(merged, key, value)
            sources[key] = self.name


class CategoryDefaultsLayer(OverrideLayer):
    """``defaults: step.*`` or ``defaults: guard.*``."""

    def __init__(self, category: str) -> None:
        self.category = category
        self.name = f"defaults.{category}"

    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        return config.defaults.get(self.category)


class TypeDefaultsLayer(OverrideLayer):
    """Named defaults whose bucket matches the step's type."""

    name = "defaults.<type>"

    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        step = config.steps.get(subject)
        if step is None or not step.type:
            return None
        return config.defaults.get(step.type)


class NamedDefaultsLayer(OverrideLayer):
    """Named defaults whose bucket matches the step or guard name."""

    name = "defaults.<name>"

    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        return config.defaults.get(subject)


class StepConfigLayer(OverrideLayer):
    """The step's own ``config:`` block."""

    name = "config"

    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        step = config.steps.get(subject)
        return step.config if step is not None else None


class GlobalSettingsLayer(OverrideLayer):
    """``settings:`` entries overriding keys already present."""

    name = "settings"

    def values(self, config: StepFlowConfig, subject: str) -> Mapping[str, Any] | None:
        return config.settings

    def apply(
        self,
        config: StepFlowConfig,
        subject: str,
        merged: dict[str, Any],
        sources: dict[str, str],
    ) -> None:
        for key in list(flatten(merged)):
            value = get_path(config.settings, key, _MISSING)
            if value is _MISSING or isinstance(value, Mapping):
                continue
            set_path(merged, key, value)
            sources[key] = self.name


STEP_LAYERS: tuple[OverrideLayer, ...] = (
    CategoryDefaultsLayer("step"),
    TypeDefaultsLayer(),
    NamedDefaultsLayer(),
    StepConfigLayer(),
    GlobalSettingsLayer(),
)

GUARD_LAYERS: tuple[OverrideLayer, ...] = (
    CategoryDefaultsLayer("guard"),
    NamedDefaultsLayer(),
)


# =============================================================================
# Resolution
# =============================================================================


def _resolve(
    config: StepFlowConfig,
    subject: str,
    layers: Sequence[OverrideLayer],
) -> ResolvedConfig:
    merged: dict[str, Any] = {}
    sources: dict[str, str] = {}
    for layer in layers:
        layer.apply(config, subject, merged, sources)
    # Keys replaced by a deeper map in a later layer no longer exist
    live = flatten(merged)
    return ResolvedConfig(
        subject=subject,
        values=merged,
        sources={key: sources[key] for key in live if key in sources},
    )


def resolve_step_config(
    config: StepFlowConfig,
    step_name: str,
    layers: Sequence[OverrideLayer] = STEP_LAYERS,
) -> ResolvedConfig:
    """Compute the effective configuration of a step.

    Example:
        >>> cfg = StepFlowConfig.from_dsl(
        ...     "defaults:\\n  step.timeout = 30\\n"
        ...     "step fetch: Http\\n  config:\\n    url = x\\n"
        ... )
        >>> resolve_step_config(cfg, "fetch").values
        {'timeout': 30, 'url': 'x'}

    Raises:
        WorkflowDefinitionError: If ``step_name`` is not declared.
    """
    if step_name not in config.steps:
        raise WorkflowDefinitionError(f"Unknown step '{step_name}'")
    return _resolve(config, step_name, layers)


def resolve_guard_config(
    config: StepFlowConfig,
    guard_name: str,
    layers: Sequence[OverrideLayer] = GUARD_LAYERS,
) -> ResolvedConfig:
    """Compute the effective configuration of a guard.

    Guards need not be declared anywhere; an unknown guard simply gets the
    category defaults.
    """
    return _resolve(config, guard_name, layers)
