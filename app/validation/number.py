from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator
from validation.evaluator import is_finite_number
from validation.exceptions import EvaluationError


class NumberValidator(BaseValidator):
    """Scalar answers compared by absolute difference."""

    shape = "number"

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        normalized = self.normalize_input(text)
        self.debug_log(f"Validating number: {normalized}")

        try:
            value = await self.safe_evaluate(normalized)
        except EvaluationError as e:
            self.debug_log(f"Evaluation failed: {e}")
            return self.evaluation_failure(e, "The expression could not be evaluated as a number")

        if not is_finite_number(value):
            return self.create_error_response(
                "Careful!",
                "Your answer is not a valid number",
                type=ResultType.INVALID_NUMBER.value,
                evaluated_value=str(value),
                value_type=type(value).__name__,
            )

        return self.create_success_response(
            "Valid number",
            f"{text} is a valid number",
            type=ResultType.NUMBER_VALIDATION.value,
            original_input=text,
            processed_input=normalized,
            evaluated_value=value,
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_value = correct_validation.metadata["evaluated_value"]
        user_value = user_validation.metadata["evaluated_value"]

        difference = abs(correct_value - user_value)
        tolerance = self.config.tolerance
        self.debug_log(f"{correct_value} vs {user_value}, difference {difference}, tolerance {tolerance}")

        if difference <= tolerance:
            return self.create_success_response(
                "Excellent!",
                "You found the correct answer",
                type=ResultType.CORRECT_ANSWER.value,
                correct_value=correct_value,
                user_value=user_value,
                difference=difference,
                tolerance=tolerance,
                within_tolerance=True,
            )

        return self.create_error_response(
            "Keep trying",
            f"Your answer differs by {difference:.4f}. Allowed tolerance: ±{tolerance}",
            type=ResultType.TOLERANCE_EXCEEDED.value,
            correct_value=correct_value,
            user_value=user_value,
            difference=difference,
            tolerance=tolerance,
            within_tolerance=False,
        )
