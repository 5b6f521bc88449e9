import pytest

from schemas.validation import SelectorConfig
from validation.number import NumberValidator


@pytest.fixture
def validator():
    return NumberValidator()


@pytest.mark.asyncio
async def test_validate_number(validator):
    result = await validator.validate("42")
    assert result.ok is True
    assert result.type == "number_validation"
    assert result.metadata["evaluated_value"] == 42.0


@pytest.mark.asyncio
async def test_validate_expression(validator):
    result = await validator.validate("sqrt(2)^2 + 1/2")
    assert result.ok is True
    assert result.metadata["evaluated_value"] == pytest.approx(2.5)


@pytest.mark.asyncio
async def test_validate_empty_input(validator):
    result = await validator.validate("   ")
    assert result.ok is None
    assert result.type == "empty_input"
    assert result.title == "Attention!"


@pytest.mark.asyncio
async def test_validate_unknown_identifier(validator):
    result = await validator.validate("abc")
    assert result.ok is False
    assert result.type == "evaluation_error"


@pytest.mark.asyncio
async def test_validate_infinity_is_not_a_number(validator):
    result = await validator.validate("∞")
    assert result.ok is False
    assert result.type == "invalid_number"


@pytest.mark.asyncio
async def test_validate_division_by_zero(validator):
    result = await validator.validate("1/0")
    assert result.ok is False
    assert result.type in {"invalid_number", "evaluation_error"}


@pytest.mark.asyncio
async def test_compare_equal_values(validator):
    result = await validator.compare("42", "42.0")
    assert result.ok is True
    assert result.type == "correct_answer"
    assert result.metadata["difference"] == 0


@pytest.mark.asyncio
async def test_compare_outside_tolerance():
    validator = NumberValidator(SelectorConfig(tolerance=0.01))
    result = await validator.compare("10", "10.02")
    assert result.ok is False
    assert result.type == "tolerance_exceeded"
    assert result.metadata["difference"] == pytest.approx(0.02)
    assert "0.0200" in result.message


@pytest.mark.asyncio
async def test_compare_equivalent_expressions(validator):
    result = await validator.compare("1/2", "0.5")
    assert result.ok is True


@pytest.mark.asyncio
@pytest.mark.parametrize("a, b", [
    ("10", "10.005"),
    ("10", "10.02"),
    ("pi", "3.14"),
    ("pi", "3.1416"),
    ("-1", "1"),
])
async def test_compare_is_symmetric(validator, a, b):
    forward = await validator.compare(a, b)
    backward = await validator.compare(b, a)
    assert forward.ok == backward.ok


@pytest.mark.asyncio
async def test_compare_empty_user_answer(validator):
    result = await validator.compare("42", "")
    assert result.ok is None
    assert result.type == "empty_input"


@pytest.mark.asyncio
async def test_compare_invalid_correct_answer_is_system_error(validator):
    result = await validator.compare("abc", "42")
    assert result.ok is False
    assert result.type == "system_error"
    assert result.metadata["source"] == "correct_answer"


@pytest.mark.asyncio
async def test_compare_invalid_user_answer_returns_format_failure(validator):
    result = await validator.compare("42", "forty two")
    assert result.ok is False
    assert result.type == "evaluation_error"


@pytest.mark.asyncio
async def test_unexpected_fault_becomes_comparison_error(validator, monkeypatch):
    async def boom(*args):
        raise RuntimeError("boom")

    monkeypatch.setattr(validator, "_compare", boom)
    result = await validator.compare("1", "1")
    assert result.ok is False
    assert result.type == "comparison_error"


@pytest.mark.asyncio
async def test_validate_quick(validator):
    assert await validator.validate_quick("2+2") is True
    assert await validator.validate_quick("") is False
    assert await validator.validate_quick("2+") is False


@pytest.mark.asyncio
async def test_validate_power_tower_is_not_a_number(validator):
    result = await validator.validate("9^9^9^9")
    assert result.ok is False
    assert result.type == "invalid_number"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["1 000", "2 3"])
async def test_validate_rejects_space_separated_digits(validator, text):
    result = await validator.validate(text)
    assert result.ok is False
    assert result.type == "evaluation_error"
