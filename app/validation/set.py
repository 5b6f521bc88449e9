"""
Set answers: unions of intervals and discrete sets, e.g. ``(-∞, 0) U {1, 2} U [3, 5)``.
"""

import math
import re
from typing import Any, Dict, List, Optional, Tuple

from schemas.validation import ResultType, ValidationResult
from validation.base import BaseValidator, display, is_enclosed, split_top_level, within_tolerance
from validation.evaluator import is_finite_number
from validation.exceptions import EvaluationError

UNION_OPERATOR = re.compile(r"(?<![A-Za-z])[Uu](?![A-Za-z])")


def detect_part_type(part: str) -> str:
    if part[:1] in "([" and part[-1:] in ")]":
        return "possible_interval"
    if part.startswith("{") and part.endswith("}"):
        return "possible_discrete_set"
    return "unknown_format"


class SetValidator(BaseValidator):
    shape = "set"

    def parse_union_parts(self, normalized: str) -> List[str]:
        return [part.strip() for part in UNION_OPERATOR.split(normalized) if part.strip()]

    @staticmethod
    def is_interval(part: str) -> bool:
        if len(part) < 2 or part[0] not in "([" or part[-1] not in ")]":
            return False
        inner = part[1:-1]
        depth = 0
        for ch in inner:
            depth += {"(": 1, "[": 1, ")": -1, "]": -1}.get(ch, 0)
            if depth < 0:
                return False
        return depth == 0

    @staticmethod
    def is_discrete_set(part: str) -> bool:
        return is_enclosed(part, "{", "}")

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        normalized = self.normalize_input(text)
        self.debug_log(f"Validating set: {normalized}")

        union_parts = self.parse_union_parts(normalized)
        if not union_parts:
            return self.create_error_response(
                "Format error",
                "Your answer does not have a valid set format",
                type=ResultType.INVALID_FORMAT.value,
                expected_format="(a, b) U [c, d] U {e, f}",
            )

        parsed_parts = []
        invalid_parts = []
        for part in union_parts:
            parsed, failure = await self.validate_set_part(part)
            if failure:
                invalid_parts.append({
                    "part": display(part),
                    "type": failure.metadata.get("type"),
                    "message": failure.message,
                })
            else:
                parsed_parts.append(parsed)

        if invalid_parts:
            return self.create_error_response(
                "Invalid set",
                f"The set contains {len(invalid_parts)} invalid part(s)",
                type=ResultType.INVALID_SET.value,
                invalid_parts=invalid_parts,
                total_parts=len(union_parts),
                valid_parts=len(union_parts) - len(invalid_parts),
            )

        return self.create_success_response(
            "Valid set",
            f"{display(text)} is a valid set",
            type=ResultType.VALID_SET.value,
            parts=len(union_parts),
            original_input=text,
            processed_input=normalized,
            union_parts=union_parts,
            parsed_parts=parsed_parts,
        )

    async def validate_set_part(self, part: str) -> Tuple[Optional[Dict[str, Any]], Optional[ValidationResult]]:
        self.debug_log(f"Validating set part: {part}")

        if self.is_discrete_set(part):
            return await self.validate_discrete_set(part)
        if self.is_interval(part):
            return await self.validate_interval(part)

        return None, self.create_error_response(
            "Invalid part",
            f"{display(part)} is neither an interval nor a discrete set",
            type=ResultType.INVALID_PART.value,
            part=part,
            detected_type=detect_part_type(part),
        )

    async def validate_interval(self, interval: str):
        left_bracket, right_bracket = interval[0], interval[-1]
        bounds = split_top_level(interval[1:-1])

        if len(bounds) != 2:
            return None, self.create_error_response(
                "Format error",
                "An interval must have exactly two values separated by a comma",
                type=ResultType.INVALID_PART.value,
                part=interval,
            )

        left, right = bounds
        if not left or not right:
            return None, self.create_error_response(
                "Format error",
                "Interval bounds cannot be empty",
                type=ResultType.INVALID_PART.value,
                part=interval,
            )

        try:
            left_value = await self.safe_evaluate(left)
            right_value = await self.safe_evaluate(right)
        except EvaluationError as e:
            return None, self.evaluation_failure(e, f"Could not evaluate the interval {display(interval)}", part=interval)

        for label, source, value in (("first", left, left_value), ("second", right, right_value)):
            if not isinstance(value, float) or math.isnan(value):
                return None, self.create_error_response(
                    f"Error in the {label} value",
                    f'"{display(source)}" is not a valid number',
                    type=ResultType.INVALID_PART.value,
                    part=interval,
                )

        if left_value >= right_value:
            return None, self.create_error_response(
                "Order error",
                f"The first value ({left_value}) must be less than the second ({right_value})",
                type=ResultType.INVALID_PART.value,
                part=interval,
            )

        return {
            "kind": "interval",
            "type": ResultType.VALID_INTERVAL.value,
            "text": display(interval),
            "left": left_value,
            "right": right_value,
            "left_bracket": left_bracket,
            "right_bracket": right_bracket,
            "interval_type": f"{left_bracket}{right_bracket}",
        }, None

    async def validate_discrete_set(self, discrete_set: str):
        content = discrete_set[1:-1].strip()
        if not content:
            return {
                "kind": "discrete",
                "type": ResultType.VALID_EMPTY_SET.value,
                "text": "{}",
                "elements": [],
                "had_duplicates": False,
            }, None

        elements = []
        for element in split_top_level(content):
            if not element:
                return None, self.create_error_response(
                    "Invalid element",
                    "Discrete sets cannot contain empty elements",
                    type=ResultType.INVALID_ELEMENT.value,
                    invalid_element=element,
                )
            try:
                value = await self.safe_evaluate(element)
            except EvaluationError as e:
                return None, self.evaluation_failure(e, f"Could not evaluate the element {element}", invalid_element=element)
            if not is_finite_number(value):
                return None, self.create_error_response(
                    "Invalid element",
                    f"{display(element)} is not a valid number",
                    type=ResultType.INVALID_ELEMENT.value,
                    invalid_element=element,
                    evaluated_value=str(value),
                )
            elements.append(value)

        unique = sorted(set(elements))
        return {
            "kind": "discrete",
            "type": ResultType.VALID_DISCRETE_SET.value,
            "text": display(discrete_set),
            "elements": unique,
            "had_duplicates": len(unique) != len(elements),
        }, None

    def are_parts_equivalent(self, part1: Dict[str, Any], part2: Dict[str, Any]) -> bool:
        tolerance = self.config.tolerance
        if part1["kind"] != part2["kind"]:
            return False

        if part1["kind"] == "discrete":
            a, b = part1["elements"], part2["elements"]
            return len(a) == len(b) and all(within_tolerance(x, y, tolerance) for x, y in zip(a, b))

        return (
            part1["left_bracket"] == part2["left_bracket"]
            and part1["right_bracket"] == part2["right_bracket"]
            and within_tolerance(part1["left"], part2["left"], tolerance)
            and within_tolerance(part1["right"], part2["right"], tolerance)
        )

    def find_part_matches(self, correct_parts: List[dict], user_parts: List[dict]) -> Dict[str, Any]:
        user_remaining = list(user_parts)
        unmatched_correct = []
        perfect_matches = 0

        for correct_part in correct_parts:
            match_index = next(
                (i for i, user_part in enumerate(user_remaining) if self.are_parts_equivalent(correct_part, user_part)),
                None,
            )
            if match_index is None:
                unmatched_correct.append(correct_part["text"])
            else:
                perfect_matches += 1
                user_remaining.pop(match_index)

        return {
            "perfect_matches": perfect_matches,
            "unmatched_correct": unmatched_correct,
            "unmatched_user": [part["text"] for part in user_remaining],
        }

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_parts = correct_validation.metadata["parsed_parts"]
        user_parts = user_validation.metadata["parsed_parts"]
        self.debug_log(f"Set parts: {len(correct_parts)} correct, {len(user_parts)} user")

        if len(correct_parts) != len(user_parts):
            return self.create_error_response(
                "Wrong number of parts",
                f"Your set has {len(user_parts)} part(s), but it should have {len(correct_parts)}",
                type=ResultType.PART_COUNT_MISMATCH.value,
                expected_parts=len(correct_parts),
                actual_parts=len(user_parts),
            )

        matches = self.find_part_matches(correct_parts, user_parts)

        if matches["perfect_matches"] == len(correct_parts):
            return self.create_success_response(
                "Perfect!",
                "Your set matches the solution exactly",
                type=ResultType.PERFECT_MATCH.value,
                parts=len(correct_parts),
                matches=matches,
            )

        return self.create_error_response(
            "Parts do not match",
            f"{matches['perfect_matches']} of {len(correct_parts)} parts match",
            type=ResultType.PARTIAL_MATCH.value,
            expected_parts=len(correct_parts),
            matched_parts=matches["perfect_matches"],
            unmatched_parts=matches["unmatched_correct"],
            extra_parts=matches["unmatched_user"],
        )
