"""Shared fixtures for CLI command tests.

Fixtures available from the parent conftest.py:
- cli_runner: Click CLI test runner
- temp_dir: Temporary directory for test files
- clean_env: Environment without STEPFLOW_ variables
- isolated_home: HOME pointing at an empty directory
- checkout_dsl: A complete DSL document
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture
def workspace(temp_dir: Path, isolated_home: Path, clean_env: None) -> Path:
    """Project directory used as the working directory of the command."""
    root = temp_dir / "project"
    root.mkdir()
    os.chdir(root)
    return root


@pytest.fixture
def checkout_file(workspace: Path, checkout_dsl: str) -> Path:
    path = workspace / "checkout.flow"
    path.write_text(checkout_dsl, encoding="utf-8")
    return path
