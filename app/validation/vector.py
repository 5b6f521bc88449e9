from schemas.validation import ResultType, ValidationResult
from validation.sequence import SequenceValidator


class VectorValidator(SequenceValidator):
    shape = "vector"
    opener = "["
    closer = "]"
    noun = "component"
    expected_format = "[a, b, c, ...]"

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        components, failure = await self.parse(text)
        if failure:
            return failure

        return self.create_success_response(
            "Valid vector",
            f"{text} is a vector of {len(components)} dimensions",
            type=ResultType.VALID_VECTOR.value,
            dimension=len(components),
            components=components,
            magnitude=self.norm(components),
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_values = correct_validation.metadata["components"]
        user_values = user_validation.metadata["components"]

        if len(correct_values) != len(user_values):
            return self.dimension_mismatch(len(correct_values), len(user_values))

        component_matches = self.component_matches(correct_values, user_values)
        match_count = sum(1 for m in component_matches if m["matches"])

        if match_count == len(correct_values):
            return self.create_success_response(
                "Excellent!",
                "Your vector matches the solution",
                type=ResultType.PERFECT_VECTOR_MATCH.value,
                dimension=len(correct_values),
                component_matches=component_matches,
                max_difference=max(m["difference"] for m in component_matches),
            )

        return self.create_error_response(
            "Incorrect vector",
            f"{match_count} of {len(correct_values)} components are correct",
            type=ResultType.PARTIAL_VECTOR_MATCH.value,
            dimension=len(correct_values),
            correct_components=match_count,
            component_matches=component_matches,
            tolerance=self.config.tolerance,
        )
