from typing import Any, Dict, Optional

from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator
from validation.evaluator import is_finite_number
from validation.exceptions import EvaluationError, EvaluationTimeout

SIDE_CHECK_POINTS = [0, 1, -1, 2]
ROOT_SCAN_POINTS = [-10, -5, -2, -1, -0.5, 0, 0.5, 1, 2, 5, 10]
COMPARISON_POINTS = [-5, -2, -1, -0.5, 0, 0.5, 1, 2, 5]
REQUIRED_SUCCESS_RATE = 85


def difference_expression(left: str, right: str) -> str:
    return f"({left})-({right})"


class EquationValidator(BaseValidator):
    """Equations ``lhs = rhs`` compared through ``lhs - rhs`` sampled over ``x``."""

    shape = "equation"

    async def check_side(self, expression: str) -> Optional[str]:
        """Return an error description, or None when the side evaluates at every check point."""
        try:
            compiled = self.compile(expression, ("X",))
            for point in SIDE_CHECK_POINTS:
                value = await self.safe_evaluate(compiled, {"X": point})
                if not is_finite_number(value):
                    return f"produces an invalid result at x = {point}: {value}"
        except EvaluationTimeout:
            raise
        except EvaluationError as e:
            return str(e)
        return None

    async def analyze_equation(self, left: str, right: str) -> Dict[str, Any]:
        diff = difference_expression(left, right)
        try:
            compiled = self.compile(diff, ("X",))
        except EvaluationError as e:
            return {"analysis_error": str(e)}

        evaluations = []
        for point in ROOT_SCAN_POINTS:
            try:
                value = await self.safe_evaluate(compiled, {"X": point})
            except EvaluationError:
                continue
            if is_finite_number(value):
                evaluations.append({"x": point, "diff": value})

        possible_roots = [
            {"interval": [prev["x"], curr["x"]], "sign_change": True}
            for prev, curr in zip(evaluations, evaluations[1:])
            if prev["diff"] * curr["diff"] < 0
        ]
        return {
            "has_possible_roots": bool(possible_roots),
            "possible_root_intervals": possible_roots,
            "evaluation_points": len(evaluations),
            "diff_expression": diff,
        }

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        normalized = self.to_variable_form(self.normalize_input(text))
        self.debug_log(f"Validating equation: {normalized}")

        if "=" not in normalized:
            return self.create_error_response(
                "Invalid format",
                "An equation must contain an equals sign (=)",
                type=ResultType.MISSING_EQUALS.value,
                suggestion="Example: x^2 + 2*x = 0",
            )

        parts = normalized.split("=")
        if len(parts) != 2:
            return self.create_error_response(
                "Invalid format",
                "An equation must have exactly one equals sign",
                type=ResultType.MULTIPLE_EQUALS.value,
                parts_found=len(parts),
            )

        left, right = (part.strip() for part in parts)
        if not left or not right:
            return self.create_error_response(
                "Incomplete equation",
                "Both sides of the equation must contain an expression",
                type=ResultType.INCOMPLETE_EQUATION.value,
                left_side=left,
                right_side=right,
            )

        try:
            left_error = await self.check_side(left)
            right_error = None if left_error else await self.check_side(right)
        except EvaluationTimeout as e:
            return self.evaluation_failure(e, "The equation could not be evaluated in time")

        if left_error:
            return self.create_error_response(
                "Invalid left side",
                f"Error in the left side: {left_error}",
                type=ResultType.INVALID_LEFT_SIDE.value,
                expression=left,
                error=left_error,
            )

        if right_error:
            return self.create_error_response(
                "Invalid right side",
                f"Error in the right side: {right_error}",
                type=ResultType.INVALID_RIGHT_SIDE.value,
                expression=right,
                error=right_error,
            )

        return self.create_success_response(
            "Valid equation",
            f"{text} is a valid equation",
            type=ResultType.VALID_EQUATION.value,
            original_input=text,
            processed_input=normalized,
            left_side=left,
            right_side=right,
            analysis=await self.analyze_equation(left, right),
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_diff = self.compile(
            difference_expression(correct_validation.metadata["left_side"], correct_validation.metadata["right_side"]),
            ("X",),
        )
        user_diff = self.compile(
            difference_expression(user_validation.metadata["left_side"], user_validation.metadata["right_side"]),
            ("X",),
        )

        agreement = await self.sample_agreement(correct_diff, user_diff, COMPARISON_POINTS, lambda x: {"X": x})
        success_rate = agreement["success_rate"]
        self.debug_log(f"Equation agreement: {success_rate:.1f}%")

        if success_rate >= REQUIRED_SUCCESS_RATE:
            return self.create_success_response(
                "Excellent!",
                "Your equation is equivalent to the solution",
                type=ResultType.EQUATION_MATCH.value,
                tolerance=self.config.tolerance,
                **agreement,
            )

        return self.create_error_response(
            "Incorrect equation",
            f"Your equation matches at {success_rate:.1f}% of the tested points "
            f"({REQUIRED_SUCCESS_RATE}% required)",
            type=ResultType.EQUATION_MISMATCH.value,
            tolerance=self.config.tolerance,
            required_success_rate=REQUIRED_SUCCESS_RATE,
            suggestion="Check that both sides of your equation are correct",
            **agreement,
        )
