from __future__ import annotations

from typing import Optional


class StageError(RuntimeError):
    """Failure reported by a pipeline stage.

    ``user_message`` is safe to show to someone without access to the build
    log. ``log_message`` carries the lower level detail for the operator log;
    when it is ``None`` only the user message is reported.
    """

    kind = "stage"

    def __init__(self, user_message: str, log_message: Optional[str] = None) -> None:
        self.user_message = user_message
        self.log_message = log_message
        super().__init__(user_message)


class UserInputError(StageError):
    """Raised for problems the user can correct in their configuration."""

    kind = "user-input"


class BuildEnvironmentError(StageError):
    """Raised when the working area or tool installation is unusable."""

    kind = "environment"


class ValidationError(StageError):
    """Raised when the assembled build context fails semantic checks."""

    kind = "validation"

    def __init__(self, user_message: str, failures=None) -> None:
        super().__init__(user_message)
        self.failures = list(failures or [])


class ExecutionFault(StageError):
    """Raised when the build executor fails or faults."""

    kind = "execution"


class InvalidSchemaVersionError(ValueError):
    """Raised when a definition declares an unsupported ``apiVersion``."""

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(f"invalid schema version: {version!r}")


class DefinitionParseError(ValueError):
    """Raised when a definition document cannot be decoded."""


class CatalogError(RuntimeError):
    """Raised when the artifact sources catalog cannot be loaded."""


class BuildExecutionError(RuntimeError):
    """Raised by build executors to report an ordinary build failure."""
