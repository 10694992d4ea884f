"""
Error codes and exceptions raised by the duplicate analysis engine.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INSUFFICIENT_INPUT = "INSUFFICIENT_INPUT"
    INVALID_THRESHOLD = "INVALID_THRESHOLD"
    INPUT_TOO_LARGE = "INPUT_TOO_LARGE"
    SEMANTIC_HOOK_FAILURE = "SEMANTIC_HOOK_FAILURE"


class DuplicateAnalysisError(RuntimeError):
    """Exception carrying a structured error code and context for callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class InsufficientInputError(DuplicateAnalysisError):
    """Fewer than two test cases were supplied."""

    def __init__(self, count: int):
        super().__init__(
            ErrorCode.INSUFFICIENT_INPUT,
            f"At least 2 test cases are required for duplicate analysis, got {count}",
            context={"count": count},
        )


class InvalidThresholdError(DuplicateAnalysisError):
    """A threshold fell outside the accepted [50, 100] range."""

    def __init__(self, name: str, value: Any, minimum: float = 50, maximum: float = 100):
        super().__init__(
            ErrorCode.INVALID_THRESHOLD,
            f"{name} must be between {minimum:g} and {maximum:g}, got {value!r}",
            context={"name": name, "value": value, "minimum": minimum, "maximum": maximum},
        )


class InputTooLargeError(DuplicateAnalysisError):
    """More test cases were supplied than the pairwise comparison ceiling allows."""

    def __init__(self, count: int, ceiling: int):
        super().__init__(
            ErrorCode.INPUT_TOO_LARGE,
            f"{count} test cases exceed the analysis ceiling of {ceiling}; "
            f"narrow the selection (e.g. by suite) before analyzing",
            context={"count": count, "ceiling": ceiling},
        )


class SemanticHookFailure(DuplicateAnalysisError):
    """The LLM augmentation hook failed, timed out or returned unusable text."""

    def __init__(self, reason: str):
        super().__init__(
            ErrorCode.SEMANTIC_HOOK_FAILURE,
            reason,
            context={"reason": reason},
        )
        self.reason = reason
