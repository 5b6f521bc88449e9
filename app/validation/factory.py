import logging
from typing import Dict, List, Optional, Type, Union

from schemas.validation import AnswerShape, ResultType, SelectorConfig, ValidationResult, canonical_shape
from validation.antiderivative import AntiderivativeValidator
from validation.base import BaseValidator, timestamp
from validation.equation import EquationValidator
from validation.exceptions import UnsupportedShapeError
from validation.formula import FormulaValidator
from validation.number import NumberValidator
from validation.point import PointValidator
from validation.set import SetValidator
from validation.vector import VectorValidator

logger = logging.getLogger(__name__)

ShapeKey = Union[AnswerShape, str]


def resolve_shape(shape: ShapeKey) -> str:
    if isinstance(shape, AnswerShape):
        return shape.value
    return canonical_shape(str(shape))


class ValidatorFactory:
    """Registry mapping answer shapes to validator classes."""

    _validators: Dict[str, Type[BaseValidator]] = {
        AnswerShape.NUMBER.value: NumberValidator,
        AnswerShape.SET.value: SetValidator,
        AnswerShape.VECTOR.value: VectorValidator,
        AnswerShape.POINT.value: PointValidator,
        AnswerShape.FORMULA.value: FormulaValidator,
        AnswerShape.EQUATION.value: EquationValidator,
        AnswerShape.ANTIDERIVATIVE.value: AntiderivativeValidator,
    }

    @classmethod
    def create(cls, shape: ShapeKey, config: Optional[SelectorConfig] = None) -> BaseValidator:
        validator_class = cls._validators.get(resolve_shape(shape))
        if validator_class is None:
            raise UnsupportedShapeError(f"Validator for shape '{shape}' is not implemented")
        return validator_class(config)

    @classmethod
    def register(cls, shape: ShapeKey, validator_class: Type[BaseValidator]) -> None:
        key = resolve_shape(shape)
        logger.info(f"Registering validator {validator_class.__name__} for shape '{key}'")
        cls._validators[key] = validator_class

    @classmethod
    def supported_shapes(cls) -> List[str]:
        return list(cls._validators)

    @classmethod
    async def validate_response(
        cls,
        shape: ShapeKey,
        correct: str,
        user_input: str,
        config: Optional[SelectorConfig] = None,
    ) -> ValidationResult:
        """Compare ``user_input`` against ``correct``. Never raises."""
        try:
            validator = cls.create(shape, config)
            return await validator.compare(correct, user_input)
        except Exception as e:
            logger.error(f"Validator for shape '{shape}' failed: {e}")
            return ValidationResult(
                ok=False,
                title="System error",
                message=f"Error creating validator for shape '{shape}': {e}",
                metadata={
                    "type": ResultType.FACTORY_ERROR.value,
                    "shape": str(getattr(shape, "value", shape)),
                    "error": str(e),
                    "timestamp": timestamp(),
                },
            )

    @classmethod
    async def validate_format(
        cls,
        shape: ShapeKey,
        text: str,
        config: Optional[SelectorConfig] = None,
    ) -> ValidationResult:
        """Check the format of a single answer. Never raises."""
        try:
            validator = cls.create(shape, config)
            return await validator.validate(text)
        except Exception as e:
            logger.error(f"Format validation for shape '{shape}' failed: {e}")
            return ValidationResult(
                ok=False,
                title="System error",
                message=f"Error validating format for shape '{shape}': {e}",
                metadata={
                    "type": ResultType.VALIDATION_ERROR.value,
                    "shape": str(getattr(shape, "value", shape)),
                    "error": str(e),
                    "timestamp": timestamp(),
                },
            )
