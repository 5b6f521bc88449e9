"""
General antiderivatives ``F(x) + C``.

An answer is well formed when it evaluates over ``x`` and ``C`` and its partial
derivative with respect to ``C`` is a non-zero constant, i.e. ``C`` behaves as an
additive (or scaled additive) integration constant. Two antiderivatives are
equivalent when their derivatives with respect to ``x`` agree at the sample points.
"""

from typing import Any, Dict, List, Tuple

from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator
from validation.evaluator import CompiledExpression, is_finite_number
from validation.exceptions import EvaluationError, EvaluationTimeout

VARIABLES = ("X", "C")

EXPRESSION_CHECK_POINTS = [(1, 0), (1, 1), (1, 5), (2, 0), (2, 1), (-1, 2)]
CONSTANT_CHECK_VALUES = [1, 2, 5, 10]
CONSTANT_DERIVATIVE_POINTS = [(0, 1), (1, 1), (2, 1), (0, 5), (1, 5), (2, 5)]
COMPARISON_POINTS = [-2, -1, -0.5, 0.5, 1, 2, 3, 5]
COMPARISON_CONSTANT = 1
REQUIRED_SUCCESS_RATE = 90


class AntiderivativeValidator(BaseValidator):
    shape = "antiderivative"

    async def check_expression(self, compiled: CompiledExpression):
        for x, c in EXPRESSION_CHECK_POINTS:
            value = await self.safe_evaluate(compiled, {"X": x, "C": c})
            if not is_finite_number(value):
                return f"produces an invalid result at x = {x}, C = {c}: {value}"
        return None

    async def derivative_values(
        self, derivative: CompiledExpression, points: List[Tuple[float, float]]
    ) -> List[Dict[str, Any]]:
        evaluations = []
        for x, c in points:
            value = await self.safe_evaluate(derivative, {"X": x, "C": c})
            evaluations.append({"x": x, "c": c, "value": value if is_finite_number(value) else None})
        return evaluations

    def is_nonzero_constant(self, values: List[Any]) -> Dict[str, Any]:
        if any(v is None for v in values):
            return {"all_equal": False, "is_non_zero": False, "constant_value": None}
        first = values[0]
        all_equal = all(abs(v - first) < self.config.tolerance for v in values)
        is_non_zero = abs(first) > self.config.tolerance
        return {"all_equal": all_equal, "is_non_zero": is_non_zero, "constant_value": first}

    async def check_constant_of_integration(self, compiled: CompiledExpression) -> Dict[str, Any]:
        if "C" not in compiled.free_variables:
            return {"has_constant": False, "analysis": {"reason": "The expression does not contain C"}}

        try:
            d_dc = compiled.derivative("C")
            evaluations = await self.derivative_values(d_dc, [(1, c) for c in CONSTANT_CHECK_VALUES])
        except EvaluationTimeout:
            raise
        except EvaluationError as e:
            return {
                "has_constant": False,
                "analysis": {"reason": "Could not differentiate with respect to C", "error": str(e)},
            }

        values = [e["value"] for e in evaluations]
        check = self.is_nonzero_constant(values)
        return {
            "has_constant": check["all_equal"] and check["is_non_zero"],
            "analysis": {"derivative_values": values, **check},
        }

    async def check_derivative_with_respect_to_c(self, compiled: CompiledExpression) -> Dict[str, Any]:
        d_dc = compiled.derivative("C")
        evaluations = await self.derivative_values(d_dc, CONSTANT_DERIVATIVE_POINTS)
        check = self.is_nonzero_constant([e["value"] for e in evaluations])
        return {
            "is_valid": check["all_equal"] and check["is_non_zero"],
            "analysis": {
                "evaluations": evaluations,
                "constant_derivative": check["all_equal"],
                "non_zero_derivative": check["is_non_zero"],
                "derivative_value": check["constant_value"],
                "derivative_expression": str(d_dc),
            },
        }

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        normalized = self.to_variable_form(self.normalize_input(text))
        self.debug_log(f"Validating antiderivative: {normalized}")

        try:
            compiled = self.compile(normalized, VARIABLES)
            expression_error = await self.check_expression(compiled)
        except EvaluationTimeout as e:
            return self.evaluation_failure(e, "The expression could not be evaluated in time")
        except EvaluationError as e:
            expression_error = str(e)

        if expression_error:
            return self.create_error_response(
                "Invalid expression",
                f"The expression is not a valid antiderivative: {expression_error}",
                type=ResultType.INVALID_ANTIDERIVATIVE_EXPRESSION.value,
                error=expression_error,
            )

        try:
            constant = await self.check_constant_of_integration(compiled)
        except EvaluationTimeout as e:
            return self.evaluation_failure(e, "Could not check the constant of integration in time")
        if not constant["has_constant"]:
            return self.create_error_response(
                "Missing constant of integration",
                "A general antiderivative must include the constant of integration C",
                type=ResultType.MISSING_CONSTANT.value,
                suggestion='Add "+ C" to your answer',
                analysis=constant["analysis"],
            )

        try:
            derivative_check = await self.check_derivative_with_respect_to_c(compiled)
        except EvaluationError as e:
            return self.evaluation_failure(e, "Could not check the derivative with respect to C")

        if not derivative_check["is_valid"]:
            return self.create_error_response(
                "Not a valid antiderivative",
                "The derivative with respect to C is not a non-zero constant",
                type=ResultType.INVALID_ANTIDERIVATIVE.value,
                derivative_analysis=derivative_check["analysis"],
            )

        return self.create_success_response(
            "Valid antiderivative",
            f"{text} is a valid general antiderivative",
            type=ResultType.VALID_ANTIDERIVATIVE.value,
            original_input=text,
            processed_input=normalized,
            has_constant=True,
            constant_analysis=derivative_check["analysis"],
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_derivative = self.compile(correct_validation.metadata["processed_input"], VARIABLES).derivative("X")
        user_derivative = self.compile(user_validation.metadata["processed_input"], VARIABLES).derivative("X")

        agreement = await self.sample_agreement(
            correct_derivative,
            user_derivative,
            COMPARISON_POINTS,
            lambda x: {"X": x, "C": COMPARISON_CONSTANT},
        )
        success_rate = agreement["success_rate"]
        self.debug_log(f"Derivative agreement: {success_rate:.1f}%")

        derivative_comparison = {
            "correct_derivative": str(correct_derivative),
            "user_derivative": str(user_derivative),
            **agreement,
        }

        if success_rate >= REQUIRED_SUCCESS_RATE:
            return self.create_success_response(
                "Excellent!",
                "Your antiderivative is correct",
                type=ResultType.ANTIDERIVATIVE_MATCH.value,
                derivative_comparison=derivative_comparison,
                tolerance=self.config.tolerance,
            )

        return self.create_error_response(
            "Incorrect antiderivative",
            f"The derivatives do not match. Match rate: {success_rate:.1f}%",
            type=ResultType.ANTIDERIVATIVE_MISMATCH.value,
            derivative_comparison=derivative_comparison,
            match_rate=success_rate,
            tolerance=self.config.tolerance,
            required_success_rate=REQUIRED_SUCCESS_RATE,
            suggestion="Check your integration steps",
        )
