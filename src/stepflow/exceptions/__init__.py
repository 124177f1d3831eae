"""stepflow exception hierarchy.

All exceptions can be imported from this package:
    from stepflow.exceptions import ConfigError, StepflowError
"""

from __future__ import annotations

# Base exception
from stepflow.exceptions.base import StepflowError

# Configuration exceptions
from stepflow.exceptions.config import ConfigError

__all__ = [
    "StepflowError",
    "ConfigError",
]
