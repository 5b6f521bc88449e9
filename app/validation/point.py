import math

from schemas.validation import ResultType, ValidationResult
from validation.sequence import SequenceValidator


def point_type(dimension: int) -> str:
    if dimension == 2:
        return "point_2d"
    if dimension == 3:
        return "point_3d"
    if dimension > 3:
        return "point_nd"
    return "point"


class PointValidator(SequenceValidator):
    shape = "point"
    opener = "("
    closer = ")"
    noun = "coordinate"
    expected_format = "(a, b, c, ...)"
    empty_item_type = ResultType.EMPTY_COORDINATE
    invalid_item_type = ResultType.INVALID_COORDINATE

    async def validate(self, text: str) -> ValidationResult:
        empty = self.validate_empty(text)
        if empty:
            return empty

        coordinates, failure = await self.parse(text)
        if failure:
            return failure

        dimension = len(coordinates)
        return self.create_success_response(
            "Valid point",
            f"{text} is a valid point of {dimension} dimensions",
            type=ResultType.VALID_POINT.value,
            dimension=dimension,
            coordinates=coordinates,
            point_type=point_type(dimension),
            distance_from_origin=self.norm(coordinates),
        )

    async def _compare(self, correct, user_input, correct_validation, user_validation):
        correct_values = correct_validation.metadata["coordinates"]
        user_values = user_validation.metadata["coordinates"]

        if len(correct_values) != len(user_values):
            return self.dimension_mismatch(len(correct_values), len(user_values))

        coordinate_matches = self.component_matches(correct_values, user_values)
        match_count = sum(1 for m in coordinate_matches if m["matches"])
        distance = math.dist(correct_values, user_values)

        if match_count == len(correct_values):
            return self.create_success_response(
                "Excellent!",
                "Your point matches the solution",
                type=ResultType.PERFECT_POINT_MATCH.value,
                dimension=len(correct_values),
                coordinate_matches=coordinate_matches,
                euclidean_distance=distance,
                max_coordinate_difference=max(m["difference"] for m in coordinate_matches),
            )

        return self.create_error_response(
            "Incorrect point",
            f"{match_count} of {len(correct_values)} coordinates are correct",
            type=ResultType.PARTIAL_POINT_MATCH.value,
            dimension=len(correct_values),
            correct_coordinates=match_count,
            coordinate_matches=coordinate_matches,
            euclidean_distance=distance,
            tolerance=self.config.tolerance,
        )
