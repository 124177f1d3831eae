"""Tests for the shared CLI helpers in stepflow.cli.common."""

from __future__ import annotations

from pathlib import Path

import structlog
from click.testing import CliRunner

from stepflow.cli.common import load_dsl
from stepflow.logging import bind_context
from stepflow.main import cli


class TestLoadDsl:
    def test_parses_file(self, checkout_file: Path) -> None:
        result = load_dsl(checkout_file)
        assert result.valid
        assert list(result.config.workflows) == ["checkout"]

    def test_binds_source_to_log_context(self, checkout_file: Path) -> None:
        load_dsl(checkout_file)
        assert structlog.contextvars.get_contextvars()["source"] == str(checkout_file)


class TestLogContextPerInvocation:
    def test_stale_context_is_dropped(
        self, cli_runner: CliRunner, checkout_file: Path
    ) -> None:
        bind_context(source="previous.flow", request="stale")

        result = cli_runner.invoke(cli, ["validate", str(checkout_file)])

        assert result.exit_code == 0
        assert structlog.contextvars.get_contextvars() == {"source": str(checkout_file)}
