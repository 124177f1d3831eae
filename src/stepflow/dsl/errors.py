"""Error types for the stepflow DSL.

Exception Hierarchy:
    DSLError (base for all DSL errors)
    └── WorkflowDefinitionError (errors in a workflow definition as a whole)
        ├── DslParseError (a DSL source could not be read at all)
        └── DslSerializationError (configuration cannot be written as DSL)

Line-level problems in DSL text are never raised; the parser reports them
as ParseDiagnostic values and keeps going. Exceptions are reserved for the
cases where there is nothing to recover: an unreadable file, or a
configuration handed to the serializer that breaks its own invariants.
"""

from __future__ import annotations

from stepflow.exceptions import StepflowError

__all__ = [
    "DSLError",
    "WorkflowDefinitionError",
    "DslParseError",
    "DslSerializationError",
]


class DSLError(StepflowError):
    """Base exception for all DSL-related errors.

    Examples:
        ```python
        try:
            text = stringify_dsl(config)
        except DSLError as e:
            logger.error("dsl_error", error=e.message)
        ```
    """

    pass


class WorkflowDefinitionError(DSLError):
    """Errors in a workflow definition as a whole."""

    pass


class DslParseError(WorkflowDefinitionError):
    """Exception raised when a DSL source cannot be loaded.

    Attributes:
        message: Human-readable error message.
        file_path: Path to the file being parsed.
        line_number: Line number the error refers to (if any).

    Examples:
        ```python
        raise DslParseError(
            "File is not valid UTF-8",
            file_path="orders.flow",
        )
        ```
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        line_number: int | None = None,
    ) -> None:
        """Initialize the DslParseError.

        Args:
            message: Human-readable error message.
            file_path: Path to the file being parsed.
            line_number: Line number the error refers to.
        """
        self.file_path = file_path
        self.line_number = line_number
        super().__init__(message)


class DslSerializationError(WorkflowDefinitionError):
    """Exception raised when a configuration cannot be written as DSL text.

    This signals a programming error in the caller: the configuration
    violates an invariant that parsed text can never violate (an empty step
    type, a name that is not an identifier, an ALTERNATIVE failure policy
    without a target, a value with no DSL spelling).

    Attributes:
        message: Human-readable error message.
        location: Dotted location of the offending value
            (e.g., "steps.charge.type").

    Examples:
        ```python
        raise DslSerializationError(
            "Step type must not be empty",
            location="steps.charge.type",
        )
        ```
    """

    def __init__(self, message: str, location: str | None = None) -> None:
        """Initialize the DslSerializationError.

        Args:
            message: Human-readable error message.
            location: Dotted location of the offending value.
        """
        self.location = location
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)
