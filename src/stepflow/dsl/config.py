"""DSL configuration and default values.

This module centralizes the default values and thresholds used by the
compiler and the validators, so both validator front ends and the CLI
agree on them.

Design Rationale:
    - Constants live in frozen dataclasses to prevent accidental mutation
    - A singleton instance (DEFAULTS) provides convenient access
    - Thresholds that users may tune are grouped in ValidationThresholds,
      which stepflow.config fills from settings files and environment
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "DSLDefaults",
    "DEFAULTS",
    "ValidationThresholds",
]


@dataclass(frozen=True, slots=True)
class DSLDefaults:
    """Default values for the DSL compiler and validators.

    Attributes:
        Edge Failure Policy:
            EDGE_RETRY_ATTEMPTS: Attempts for ``fail retry`` when the count
                is given without an explicit value in a structured document.
            EDGE_RETRY_DELAY_MS: Delay for ``fail retry Nx`` without
                ``/ DURATION``.

        Step Retry:
            STEP_RETRY_DELAY_MS: Delay for ``retry: Nx`` without a duration.

        Validation Thresholds:
            MAX_RETRY_ATTEMPTS: Retry counts above this are a performance
                warning. Why 10: beyond that, retry delays dominate runtime.
            MAX_WORKFLOW_DEPTH: Depth above this is reported as info.
            MAX_BRANCH_POINTS: Decision points above this are reported.
            MAX_CONFIG_KEYS: Config maps with more keys are reported.

        Scoring:
            ERROR_PENALTY: Score points deducted per error.
            WARNING_PENALTY: Score points deducted per warning.
            MAX_SCORE: Score of an issue-free workflow.
    """

    EDGE_RETRY_ATTEMPTS: int = 1
    EDGE_RETRY_DELAY_MS: int = 0
    STEP_RETRY_DELAY_MS: int = 0

    MAX_RETRY_ATTEMPTS: int = 10
    MAX_WORKFLOW_DEPTH: int = 10
    MAX_BRANCH_POINTS: int = 20
    MAX_CONFIG_KEYS: int = 10

    ERROR_PENALTY: int = 15
    WARNING_PENALTY: int = 5
    MAX_SCORE: int = 100


DEFAULTS = DSLDefaults()


@dataclass(frozen=True, slots=True)
class ValidationThresholds:
    """Tunable limits consulted by the validators.

    Attributes:
        max_retry_attempts: Retry counts above this are flagged.
        max_depth: Workflow depth above this is flagged.
        max_branches: Decision point count above this is flagged.
        max_config_keys: Config key count above this is flagged.
    """

    max_retry_attempts: int = DEFAULTS.MAX_RETRY_ATTEMPTS
    max_depth: int = DEFAULTS.MAX_WORKFLOW_DEPTH
    max_branches: int = DEFAULTS.MAX_BRANCH_POINTS
    max_config_keys: int = DEFAULTS.MAX_CONFIG_KEYS
