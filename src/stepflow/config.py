"""User and project configuration for the stepflow CLI.

Settings are merged from (highest priority first):

1. Environment variables (``STEPFLOW_*``, nested with ``__``, e.g.
   ``STEPFLOW_VALIDATION__MAX_DEPTH=20``)
2. Project config (``./stepflow.yaml`` or the ``--config`` path)
3. User config (``~/.config/stepflow/config.yaml``)
4. Built-in defaults

Example ``stepflow.yaml``:

    validation:
      max_retry_attempts: 5
      max_depth: 15
    output:
      format: json
    verbosity: info
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from stepflow.dsl.config import DEFAULTS, ValidationThresholds
from stepflow.exceptions import ConfigError
from stepflow.logging import get_logger

__all__ = [
    "StepflowConfig",
    "ValidationConfig",
    "OutputConfig",
    "YamlConfigSource",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "stepflow.yaml"

# Project config file chosen by load_config() for the settings being built
_project_config_path: ContextVar[Path | None] = ContextVar(
    "stepflow_project_config_path", default=None
)


class ValidationConfig(BaseModel):
    """Thresholds for the workflow validators.

    Attributes:
        max_retry_attempts: Retry counts above this are warnings (default: 10)
        max_depth: Workflow depth above this is reported (default: 10)
        max_branches: Decision points above this are reported (default: 20)
        max_config_keys: Config keys above this are reported (default: 10)
    """

    max_retry_attempts: int = Field(default=DEFAULTS.MAX_RETRY_ATTEMPTS, ge=1, le=1000)
    max_depth: int = Field(default=DEFAULTS.MAX_WORKFLOW_DEPTH, ge=1, le=1000)
    max_branches: int = Field(default=DEFAULTS.MAX_BRANCH_POINTS, ge=1, le=1000)
    max_config_keys: int = Field(default=DEFAULTS.MAX_CONFIG_KEYS, ge=1, le=1000)

    def to_thresholds(self) -> ValidationThresholds:
        return ValidationThresholds(
            max_retry_attempts=self.max_retry_attempts,
            max_depth=self.max_depth,
            max_branches=self.max_branches,
            max_config_keys=self.max_config_keys,
        )


class OutputConfig(BaseModel):
    """Settings for command output.

    Attributes:
        format: Default report format of ``stepflow validate``
    """

    format: Literal["text", "json"] = "text"


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source that reads a YAML file (missing files contribute nothing)."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file is None or not yaml_file.exists():
            return
        try:
            loaded = yaml.safe_load(yaml_file.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"Invalid YAML in {yaml_file}: {e}",
                field=None,
                value=None,
            ) from e
        if loaded is None:
            logger.warning("config_file_empty", path=str(yaml_file))
        elif not isinstance(loaded, dict):
            raise ConfigError(
                message=f"Config file {yaml_file} must contain a mapping",
                field=None,
                value=type(loaded).__name__,
            )
        else:
            self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class StepflowConfig(BaseSettings):
    """Root configuration object for the stepflow CLI."""

    model_config = SettingsConfigDict(
        env_prefix="STEPFLOW_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources from highest to lowest priority.

        pydantic-settings lets earlier sources win, so environment variables
        come first and built-in defaults (init settings) last.
        """
        project_path = _project_config_path.get() or get_project_config_path()
        return (
            env_settings,
            YamlConfigSource(settings_cls, project_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
            init_settings,
        )


def get_user_config_path() -> Path:
    """Return ``~/.config/stepflow/config.yaml``."""
    return Path.home() / ".config" / "stepflow" / "config.yaml"


def get_project_config_path() -> Path:
    """Return ``./stepflow.yaml``."""
    return Path.cwd() / PROJECT_CONFIG_NAME


def load_config(config_path: Path | None = None) -> StepflowConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Project config file. Defaults to ``./stepflow.yaml``.

    Returns:
        StepflowConfig with merged configuration.

    Raises:
        ConfigError: If a config file is not valid YAML or a value is
            out of range.
    """
    path = config_path if config_path is not None else get_project_config_path()
    if not path.exists():
        logger.debug("project_config_missing", path=str(path))

    token = _project_config_path.set(path)
    try:
        return StepflowConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_path.reset(token)
