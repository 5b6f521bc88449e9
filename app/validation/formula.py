from typing import Any, Dict, List

from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator
from validation.evaluator import is_finite_number
from validation.exceptions import EvaluationError

VALIDATION_POINTS = [0.1, 0.5, 1, 2, 5]
COMPARISON_POINTS = [-5, -2, -1, -0.5, -0.1, 0, 0.1, 0.5, 1, 2, 5, 10, 20]
REQUIRED_SUCCESS_RATE = 90


def monotonicity(evaluations: List[Dict[str, float]]) -> str:
    increasing = decreasing = True
    for prev, curr in zip(evaluations, evaluations[1:]):
        if curr["y"] < prev["y"]:
            increasing = False
        if curr["y"] > prev["y"]:
            decreasing = False
    if increasing:
        return "increasing"
    if decreasing:
        return "decreasing"
    return "neither"


class FormulaValidator(BaseValidator):
    """Functions of ``x`` compared by sampling both at a fixed set of points."""

    shape = "formula"

    def analyze_formula(self, evaluations: List[Dict[str, float]]) -> Dict[str, Any]:
        y_values = [e["y"] for e in evaluations]
        return {
            "is_constant": all(abs(y - y_values[0]) < self.config.tolerance for y in y_values),
            "monotonic": monotonicity(evaluations),
            "range": {"min": min(y_values), "max": max(y_values)},
            "average_value": sum(y_values) / len(y_values),
        }

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        normalized = self.to_variable_form(self.normalize_input(text))
        self.debug_log(f"Validating formula: {normalized}")

        try:
            compiled = self.compile(normalized, ("X",))
        except EvaluationError as e:
            return self.create_error_response(
                "Format error",
                "Your answer is not a valid formula",
                type=ResultType.PARSING_ERROR.value,
                error=str(e),
            )

        evaluations = []
        for point in VALIDATION_POINTS:
            try:
                value = await self.safe_evaluate(compiled, {"X": point})
            except EvaluationError as e:
                return self.evaluation_failure(e, f"Could not evaluate the formula at x = {point}", test_point=point)

            if not is_finite_number(value):
                return self.create_error_response(
                    "Invalid formula",
                    f"The formula does not produce a valid number at x = {point}",
                    type=ResultType.INVALID_FORMULA_OUTPUT.value,
                    test_point=point,
                    evaluated_value=str(value),
                )
            evaluations.append({"x": point, "y": value})

        return self.create_success_response(
            "Valid formula",
            f"{text} is a valid formula in x",
            type=ResultType.VALID_FORMULA.value,
            original_input=text,
            processed_input=normalized,
            evaluation_points=evaluations,
            analysis=self.analyze_formula(evaluations),
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_formula = self.compile(correct_validation.metadata["processed_input"], ("X",))
        user_formula = self.compile(user_validation.metadata["processed_input"], ("X",))

        agreement = await self.sample_agreement(
            correct_formula, user_formula, COMPARISON_POINTS, lambda x: {"X": x}
        )
        success_rate = agreement["success_rate"]
        self.debug_log(f"Formula agreement: {success_rate:.1f}%")

        if success_rate >= REQUIRED_SUCCESS_RATE:
            return self.create_success_response(
                "Excellent!",
                "Your formula matches the solution",
                type=ResultType.FORMULA_MATCH.value,
                tolerance=self.config.tolerance,
                **agreement,
            )

        return self.create_error_response(
            "Incorrect formula",
            f"Your formula matches at {success_rate:.1f}% of the tested points "
            f"({REQUIRED_SUCCESS_RATE}% required)",
            type=ResultType.FORMULA_MISMATCH.value,
            tolerance=self.config.tolerance,
            required_success_rate=REQUIRED_SUCCESS_RATE,
            **agreement,
        )
