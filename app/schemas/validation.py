from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.json_schema import SkipJsonSchema


class AnswerShape(str, Enum):
    NUMBER = "number"
    SET = "set"
    VECTOR = "vector"
    POINT = "point"
    FORMULA = "formula"
    EQUATION = "equation"
    ANTIDERIVATIVE = "antiderivative"


# Shape names used by the LTI content authored in Spanish
SHAPE_ALIASES = {
    "numero": AnswerShape.NUMBER.value,
    "conjunto": AnswerShape.SET.value,
    "punto": AnswerShape.POINT.value,
    "ecuacion": AnswerShape.EQUATION.value,
    "antiderivada": AnswerShape.ANTIDERIVATIVE.value,
}


def canonical_shape(value: Any) -> Any:
    if isinstance(value, str) and not isinstance(value, AnswerShape):
        key = value.strip().lower()
        return SHAPE_ALIASES.get(key, key)
    return value


class ResultType(str, Enum):
    """Discriminator values carried in ``ValidationResult.metadata["type"]``."""

    # Generic
    SUCCESS = "success"
    ERROR = "error"
    EMPTY_INPUT = "empty_input"
    SYSTEM_ERROR = "system_error"
    EVALUATION_ERROR = "evaluation_error"
    TIMEOUT_ERROR = "timeout_error"
    COMPARISON_ERROR = "comparison_error"
    PARSING_ERROR = "parsing_error"
    FACTORY_ERROR = "factory_error"
    VALIDATION_ERROR = "validation_error"
    INVALID_FORMAT = "invalid_format"

    # Number
    NUMBER_VALIDATION = "number_validation"
    INVALID_NUMBER = "invalid_number"
    CORRECT_ANSWER = "correct_answer"
    TOLERANCE_EXCEEDED = "tolerance_exceeded"

    # Vector / point
    VALID_VECTOR = "valid_vector"
    INVALID_COMPONENT = "invalid_component"
    PERFECT_VECTOR_MATCH = "perfect_vector_match"
    PARTIAL_VECTOR_MATCH = "partial_vector_match"
    VALID_POINT = "valid_point"
    EMPTY_COORDINATE = "empty_coordinate"
    INVALID_COORDINATE = "invalid_coordinate"
    PERFECT_POINT_MATCH = "perfect_point_match"
    PARTIAL_POINT_MATCH = "partial_point_match"
    DIMENSION_MISMATCH = "dimension_mismatch"

    # Set
    VALID_SET = "valid_set"
    INVALID_SET = "invalid_set"
    INVALID_PART = "invalid_part"
    VALID_INTERVAL = "valid_interval"
    VALID_DISCRETE_SET = "valid_discrete_set"
    VALID_EMPTY_SET = "valid_empty_set"
    INVALID_ELEMENT = "invalid_element"
    PART_COUNT_MISMATCH = "part_count_mismatch"
    PERFECT_MATCH = "perfect_match"
    PARTIAL_MATCH = "partial_match"

    # Formula
    VALID_FORMULA = "valid_formula"
    INVALID_FORMULA_OUTPUT = "invalid_formula_output"
    FORMULA_MATCH = "formula_match"
    FORMULA_MISMATCH = "formula_mismatch"

    # Equation
    VALID_EQUATION = "valid_equation"
    MISSING_EQUALS = "missing_equals"
    MULTIPLE_EQUALS = "multiple_equals"
    INCOMPLETE_EQUATION = "incomplete_equation"
    INVALID_LEFT_SIDE = "invalid_left_side"
    INVALID_RIGHT_SIDE = "invalid_right_side"
    EQUATION_MATCH = "equation_match"
    EQUATION_MISMATCH = "equation_mismatch"

    # Antiderivative
    VALID_ANTIDERIVATIVE = "valid_antiderivative"
    INVALID_ANTIDERIVATIVE_EXPRESSION = "invalid_antiderivative_expression"
    MISSING_CONSTANT = "missing_constant"
    INVALID_ANTIDERIVATIVE = "invalid_antiderivative"
    ANTIDERIVATIVE_MATCH = "antiderivative_match"
    ANTIDERIVATIVE_MISMATCH = "antiderivative_mismatch"


class SelectorConfig(BaseModel):
    """Per-validation configuration. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    tolerance: float = Field(0.01, ge=0, description="Max absolute difference")
    case_sensitive: bool = False
    strip_spaces: bool = True
    custom_formatters: SkipJsonSchema[Dict[str, Callable[[str], str]]] = Field(default_factory=dict, exclude=True)
    timeout: int = Field(5000, gt=0, description="Evaluation budget in milliseconds")
    max_iterations: int = Field(1000, ge=1)
    debug_mode: bool = False


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Optional[bool]
    title: str
    message: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def type(self) -> Optional[str]:
        return self.metadata.get("type")


class ValidationRequest(BaseModel):
    shape: AnswerShape
    correct_answer: str
    user_answer: str
    config: Optional[SelectorConfig] = None

    @field_validator("shape", mode="before")
    def resolve_shape_alias(cls, v):
        return canonical_shape(v)


class FormatRequest(BaseModel):
    shape: AnswerShape
    input: str
    config: Optional[SelectorConfig] = None

    @field_validator("shape", mode="before")
    def resolve_shape_alias(cls, v):
        return canonical_shape(v)


class BatchValidationRequest(BaseModel):
    exercise_id: str
    items: List[ValidationRequest]

    @field_validator("exercise_id")
    def exercise_id_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("exercise_id must not be empty")
        return v


class BatchItemResult(ValidationResult):
    index: int


class BatchValidationResult(BaseModel):
    exercise_id: str
    results: List[BatchItemResult]
    total_score: int
    max_score: int
    all_correct: bool
    processing_time_ms: float


class PatternCount(BaseModel):
    pattern: str
    frequency: int


class ErrorTypeCount(BaseModel):
    type: str
    count: int


class ErrorAnalysis(BaseModel):
    common_patterns: List[PatternCount]
    error_types: List[ErrorTypeCount]
    suggestions: List[str]


class PerformanceStats(BaseModel):
    total_validations: int
    average_validation_time_ms: float
    success_rate: float
    error_rate: float
