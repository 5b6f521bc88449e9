class ValidationEngineError(Exception):
    """Base class for all answer-validation engine errors."""

class EvaluationError(ValidationEngineError):
    """Raised when an expression is syntactically invalid, uses disallowed tokens, or cannot be computed."""

class EvaluationTimeout(EvaluationError):
    """Raised when an evaluation exceeds its time budget."""

class UnsupportedShapeError(ValidationEngineError):
    """Raised when no validator is registered for the requested answer shape."""
