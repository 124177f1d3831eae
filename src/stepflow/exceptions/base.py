from __future__ import annotations


class StepflowError(Exception):
    """Base exception class for all stepflow-specific errors.

    All custom exceptions raised by the package inherit from this class, so
    the CLI boundary can catch every stepflow error with a single clause
    while letting system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            text = stringify_dsl(config)
        except StepflowError as e:
            logger.error(f"stepflow error: {e.message}")
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the StepflowError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
