"""
Base validator class for the answer-validation engine.

Each answer shape subclasses ``BaseValidator`` and implements ``validate`` (format
check of a single answer) and ``_compare`` (shape-specific equivalence between two
answers that already passed ``validate``). The shared ``compare`` template handles
empty input, system errors in the correct answer and unexpected faults.
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from schemas.validation import ResultType, SelectorConfig, ValidationResult
from validation.evaluator import CompiledExpression, ExpressionEvaluator, is_finite_number
from validation.exceptions import EvaluationError, EvaluationTimeout
from validation.normalizer import INFINITY_SENTINEL, normalize

logger = logging.getLogger(__name__)

_STANDALONE_X = re.compile(r"(?<![A-Za-z])x(?![A-Za-z])")
_STANDALONE_C = re.compile(r"(?<![A-Za-z])c(?![A-Za-z])")


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def display(text: str) -> str:
    """Render the infinity sentinel back as the glyph for user-facing messages."""
    return text.replace(INFINITY_SENTINEL, "∞")


def within_tolerance(a: float, b: float, tolerance: float) -> bool:
    if math.isinf(a) or math.isinf(b):
        return a == b
    return abs(a - b) <= tolerance


def split_top_level(content: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` outside any parentheses or brackets."""
    parts, depth, current = [], 0, []
    for ch in content:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def is_enclosed(text: str, opener: str, closer: str) -> bool:
    """True when ``text`` starts with ``opener`` whose matching ``closer`` is the last character."""
    text = text.strip()
    if len(text) < 2 or text[0] != opener or text[-1] != closer:
        return False
    depth = 0
    for i, ch in enumerate(text):
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                return False
        if depth < 0:
            return False
    return depth == 0


class BaseValidator(ABC):
    """
    Abstract base class for all answer validators.

    A validator owns one immutable ``SelectorConfig`` and keeps no per-call state,
    so one instance can serve any number of ``validate``/``compare`` calls.
    """

    shape: str = ""

    def __init__(self, config: Optional[SelectorConfig] = None):
        self.config = config or SelectorConfig()
        self.evaluator = ExpressionEvaluator(timeout_ms=self.config.timeout)

    # Input handling

    def normalize_input(self, text: str) -> str:
        return normalize(text, self.config)

    def to_variable_form(self, text: str) -> str:
        """Map the user-visible variables ``x``/``c`` onto the evaluator's ``X``/``C``."""
        return _STANDALONE_C.sub("C", _STANDALONE_X.sub("X", text))

    def validate_empty(self, text: Optional[str]) -> Optional[ValidationResult]:
        if text is None or not str(text).strip():
            return ValidationResult(
                ok=None,
                title="Attention!",
                message="You have not entered an answer",
                metadata={
                    "type": ResultType.EMPTY_INPUT.value,
                    "original_input": text,
                    "timestamp": timestamp(),
                },
            )
        return None

    # Evaluation

    def compile(self, expression: str, variables: Sequence[str] = ()) -> CompiledExpression:
        return self.evaluator.compile(expression, variables)

    async def safe_evaluate(self, expression, scope: Optional[Mapping[str, float]] = None) -> Any:
        return await self.evaluator.safe_evaluate(expression, scope)

    async def sample_agreement(
        self,
        correct: CompiledExpression,
        user: CompiledExpression,
        points: Sequence[Any],
        scope_for: Callable[[Any], Dict[str, float]],
    ) -> Dict[str, Any]:
        """Evaluate both expressions at each sample point and count agreements within tolerance."""
        matches = []
        total_matches = 0
        for point in points:
            scope = scope_for(point)
            try:
                correct_value = await self.safe_evaluate(correct, scope)
                user_value = await self.safe_evaluate(user, scope)
            except EvaluationError as e:
                matches.append({
                    "x": point,
                    "correct_value": None,
                    "user_value": None,
                    "difference": None,
                    "matches": False,
                    "error": str(e),
                })
                continue

            correct_defined = is_finite_number(correct_value)
            user_defined = is_finite_number(user_value)
            if correct_defined and user_defined:
                difference = abs(correct_value - user_value)
                point_matches = difference <= self.config.tolerance
            else:
                # Both undefined at the same point (outside the domain) counts as agreement
                difference = None
                point_matches = not correct_defined and not user_defined

            matches.append({
                "x": point,
                "correct_value": correct_value if correct_defined else None,
                "user_value": user_value if user_defined else None,
                "difference": difference,
                "matches": point_matches,
            })
            if point_matches:
                total_matches += 1

        return {
            "matches": matches,
            "total_matches": total_matches,
            "total_tests": len(points),
            "success_rate": (total_matches / len(points)) * 100 if points else 0.0,
        }

    # Result builders

    def debug_log(self, message: str) -> None:
        if self.config.debug_mode:
            logger.debug(f"[{self.__class__.__name__}] {message}")

    def create_error_response(self, title: str, message: str, **metadata) -> ValidationResult:
        metadata.setdefault("type", ResultType.ERROR.value)
        metadata.setdefault("timestamp", timestamp())
        return ValidationResult(ok=False, title=title, message=message, metadata=metadata)

    def create_success_response(self, title: str, message: str, **metadata) -> ValidationResult:
        metadata.setdefault("type", ResultType.SUCCESS.value)
        metadata.setdefault("timestamp", timestamp())
        return ValidationResult(ok=True, title=title, message=message, metadata=metadata)

    def evaluation_failure(self, error: Exception, message: str, **metadata) -> ValidationResult:
        if isinstance(error, EvaluationTimeout):
            return self.create_error_response(
                "Timeout",
                f"{message} (evaluation took too long)",
                type=ResultType.TIMEOUT_ERROR.value,
                timeout_ms=self.config.timeout,
                error=str(error),
                **metadata,
            )
        return self.create_error_response(
            "Evaluation error",
            message,
            type=ResultType.EVALUATION_ERROR.value,
            error=str(error),
            **metadata,
        )

    # Public contract

    @abstractmethod
    async def validate(self, text: str) -> ValidationResult:
        """Check the format of a single answer in isolation."""

    @abstractmethod
    async def _compare(
        self,
        correct: str,
        user_input: str,
        correct_validation: ValidationResult,
        user_validation: ValidationResult,
    ) -> ValidationResult:
        """Apply the shape-specific equivalence rule to two well-formed answers."""

    async def compare(self, correct: str, user_input: str) -> ValidationResult:
        empty = self.validate_empty(user_input)
        if empty:
            return empty

        self.debug_log(f"Comparing {correct!r} vs {user_input!r}")

        correct_validation = await self.validate(correct)
        if not correct_validation.ok:
            logger.warning(
                f"Correct answer for shape '{self.shape}' failed validation: {correct_validation.message}"
            )
            return self.create_error_response(
                "System error",
                f"The correct {self.shape or 'answer'} is not valid",
                type=ResultType.SYSTEM_ERROR.value,
                source="correct_answer",
                cause=correct_validation.metadata.get("type"),
            )

        user_validation = await self.validate(user_input)
        if not user_validation.ok:
            return user_validation

        try:
            return await self._compare(correct, user_input, correct_validation, user_validation)
        except Exception as e:
            logger.error(f"Error comparing {self.shape} answers: {e}")
            return self.create_error_response(
                "Comparison error",
                f"Could not compare the {self.shape or 'answer'}s",
                type=ResultType.COMPARISON_ERROR.value,
                error=str(e),
            )

    async def validate_quick(self, text: str) -> bool:
        result = await self.validate(text)
        return result.ok is True
