"""
Shared parsing for delimited tuples of scalar expressions (vectors and points).
"""

import math
from typing import List, Optional, Tuple

from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator, is_enclosed, split_top_level
from validation.evaluator import is_finite_number
from validation.exceptions import EvaluationError


class SequenceValidator(BaseValidator):
    opener = ""
    closer = ""
    noun = "component"
    expected_format = ""
    empty_item_type = ResultType.INVALID_COMPONENT
    invalid_item_type = ResultType.INVALID_COMPONENT

    def extract_items(self, normalized: str) -> List[str]:
        content = normalized.strip()[1:-1]
        if not content.strip():
            return []
        return split_top_level(content)

    async def parse(self, text: str) -> Tuple[List[float], Optional[ValidationResult]]:
        """Return evaluated items, or an empty list and the failure result."""
        normalized = self.normalize_input(text)
        self.debug_log(f"Validating {self.shape}: {normalized}")

        if not is_enclosed(normalized, self.opener, self.closer):
            return [], self.create_error_response(
                "Format error",
                f"A {self.shape} must have the form {self.expected_format}",
                type=ResultType.INVALID_FORMAT.value,
                expected_format=self.expected_format,
            )

        items = self.extract_items(normalized)
        if not items:
            return [], self.create_error_response(
                "Format error",
                f"A {self.shape} needs at least one {self.noun}",
                type=ResultType.INVALID_FORMAT.value,
                expected_format=self.expected_format,
            )

        values = []
        for i, item in enumerate(items):
            if not item:
                return [], self.create_error_response(
                    f"Empty {self.noun}",
                    f"{self.noun.capitalize()} {i + 1} is empty",
                    type=self.empty_item_type.value,
                    index=i,
                )
            try:
                value = await self.safe_evaluate(item)
            except EvaluationError as e:
                return [], self.evaluation_failure(
                    e,
                    f"Could not evaluate {self.noun} {i + 1}: {item}",
                    index=i,
                    value=item,
                )
            if not is_finite_number(value):
                return [], self.create_error_response(
                    f"Invalid {self.noun}",
                    f"{self.noun.capitalize()} {i + 1} ({item}) is not a valid number",
                    type=self.invalid_item_type.value,
                    index=i,
                    value=item,
                    evaluated_value=str(value),
                )
            values.append(value)

        return values, None

    @staticmethod
    def norm(values: List[float]) -> float:
        return math.sqrt(sum(v * v for v in values))

    def component_matches(self, correct_values: List[float], user_values: List[float]) -> List[dict]:
        matches = []
        for i, (correct_value, user_value) in enumerate(zip(correct_values, user_values)):
            difference = abs(correct_value - user_value)
            matches.append({
                "index": i,
                "matches": difference <= self.config.tolerance,
                "difference": difference,
                "correct_value": correct_value,
                "user_value": user_value,
            })
        return matches

    def dimension_mismatch(self, expected: int, actual: int) -> ValidationResult:
        return self.create_error_response(
            "Wrong dimension",
            f"Your {self.shape} has {actual} {self.noun}s, but it should have {expected}",
            type=ResultType.DIMENSION_MISMATCH.value,
            expected_dimension=expected,
            actual_dimension=actual,
        )
