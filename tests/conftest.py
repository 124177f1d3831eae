from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner (stdout and stderr captured separately)."""
    return CliRunner()


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test environment.

    Logs go to stderr at WARNING so debug events from the compiler and
    validators do not clutter test output.
    """
    from stepflow.logging import clear_context, configure_logging

    configure_logging(level=logging.WARNING)
    yield
    clear_context()


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory so tests that
    use os.chdir() do not affect other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all STEPFLOW_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("STEPFLOW_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory so no user config is picked up."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def checkout_dsl() -> str:
    """A small but complete DSL document."""
    return """\
# Checkout flow
settings:
  region = eu-west-1
  http.timeout = 10

defaults:
  step.timeout = 30
  step.retries = 1
  PaymentStep.provider = stripe
  charge.currency = EUR
  guard.cache = true

workflow checkout:
  root: validate
  validate -> charge ? stock_ok fail -> backorder
  charge -> SUCCESS fail retry 3x / 2s
  backorder -> FAILURE [terminal]

step validate: ValidateOrderStep
  requires: has_items, is_signed_in

step charge: PaymentStep
  retry: 2x / 500ms ? transient
  config:
    timeout = 5
    http.timeout = 3
    label = "Card payment"
"""
