"""Formula, equation and antiderivative validators: sampling-based equivalence over x."""

from unittest.mock import AsyncMock

import pytest

from validation.antiderivative import AntiderivativeValidator
from validation.equation import EquationValidator
from validation.formula import COMPARISON_POINTS, FormulaValidator
from validation.exceptions import EvaluationTimeout


@pytest.fixture
def formula():
    return FormulaValidator()


@pytest.fixture
def equation():
    return EquationValidator()


@pytest.fixture
def antiderivative():
    return AntiderivativeValidator()


# Formula

@pytest.mark.asyncio
async def test_validate_formula(formula):
    result = await formula.validate("x^2")
    assert result.ok is True
    assert result.type == "valid_formula"
    assert result.metadata["processed_input"] == "X^2"
    assert len(result.metadata["evaluation_points"]) == 5
    analysis = result.metadata["analysis"]
    assert analysis["monotonic"] == "increasing"
    assert analysis["is_constant"] is False
    assert analysis["range"] == {"min": pytest.approx(0.01), "max": pytest.approx(25.0)}


@pytest.mark.asyncio
async def test_validate_constant_formula(formula):
    result = await formula.validate("3")
    assert result.ok is True
    assert result.metadata["analysis"]["is_constant"] is True


@pytest.mark.asyncio
async def test_validate_formula_keeps_function_names(formula):
    result = await formula.validate("exp(x) + cos(x)")
    assert result.ok is True
    assert result.metadata["processed_input"] == "exp(X) + cos(X)"


@pytest.mark.asyncio
async def test_validate_formula_unknown_variable(formula):
    result = await formula.validate("y + 1")
    assert result.ok is False
    assert result.type == "parsing_error"


@pytest.mark.asyncio
async def test_validate_formula_undefined_at_sample_point(formula):
    result = await formula.validate("1/(x-1)")
    assert result.ok is False
    assert result.type in {"invalid_formula_output", "evaluation_error"}


@pytest.mark.asyncio
async def test_compare_equivalent_formulas(formula):
    result = await formula.compare("x^2", "x*x")
    assert result.ok is True
    assert result.type == "formula_match"
    assert result.metadata["total_tests"] == len(COMPARISON_POINTS)
    assert result.metadata["total_matches"] == len(COMPARISON_POINTS)


@pytest.mark.asyncio
async def test_compare_trigonometric_identity(formula):
    result = await formula.compare("1", "sin(x)^2 + cos(x)^2")
    assert result.ok is True


@pytest.mark.asyncio
async def test_compare_different_formulas(formula):
    result = await formula.compare("x^2", "x^3")
    assert result.ok is False
    assert result.type == "formula_mismatch"
    assert result.metadata["required_success_rate"] == 90
    assert result.metadata["success_rate"] < 90


@pytest.mark.asyncio
async def test_compare_formula_empty_answer(formula):
    result = await formula.compare("x", " ")
    assert result.ok is None


# Equation

@pytest.mark.asyncio
async def test_validate_equation(equation):
    result = await equation.validate("x = 0.25")
    assert result.ok is True
    assert result.type == "valid_equation"
    assert result.metadata["left_side"] == "X"
    assert result.metadata["right_side"] == "0.25"
    analysis = result.metadata["analysis"]
    assert analysis["has_possible_roots"] is True
    assert analysis["possible_root_intervals"] == [{"interval": [0, 0.5], "sign_change": True}]


@pytest.mark.asyncio
@pytest.mark.parametrize("text, expected_type", [
    ("x + 1", "missing_equals"),
    ("x = 1 = 2", "multiple_equals"),
    ("= 3", "incomplete_equation"),
    ("2x =", "incomplete_equation"),
    ("y = 2", "invalid_left_side"),
    ("x = y", "invalid_right_side"),
    ("1/x = 2", "invalid_left_side"),
])
async def test_validate_equation_errors(equation, text, expected_type):
    result = await equation.validate(text)
    assert result.ok is False
    assert result.type == expected_type


@pytest.mark.asyncio
async def test_compare_equivalent_equations(equation):
    result = await equation.compare("2x = 4", "2*x - 4 = 0")
    assert result.ok is True
    assert result.type == "equation_match"


@pytest.mark.asyncio
async def test_compare_rearranged_quadratic(equation):
    result = await equation.compare("x^2 = 1", "x^2 - 1 = 0")
    assert result.ok is True


@pytest.mark.asyncio
async def test_compare_different_equations(equation):
    result = await equation.compare("x = 2", "x = 3")
    assert result.ok is False
    assert result.type == "equation_mismatch"
    assert result.metadata["required_success_rate"] == 85


@pytest.mark.asyncio
async def test_compare_invalid_correct_equation(equation):
    result = await equation.compare("x + 1", "x = 1")
    assert result.ok is False
    assert result.type == "system_error"
    assert result.metadata["cause"] == "missing_equals"


# Antiderivative

@pytest.mark.asyncio
async def test_validate_antiderivative_without_constant(antiderivative):
    result = await antiderivative.validate("x^2/2")
    assert result.ok is False
    assert result.type == "missing_constant"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["x^2/2 + C", "x^2/2 + c", "exp(x) + C", "-cos(x) + 2C"])
async def test_validate_antiderivative(antiderivative, text):
    result = await antiderivative.validate(text)
    assert result.ok is True
    assert result.type == "valid_antiderivative"
    assert result.metadata["has_constant"] is True


@pytest.mark.asyncio
async def test_validate_constant_not_additive(antiderivative):
    result = await antiderivative.validate("x^2 * C")
    assert result.ok is False
    assert result.type == "invalid_antiderivative"


@pytest.mark.asyncio
async def test_validate_constant_with_varying_derivative(antiderivative):
    result = await antiderivative.validate("x + C^2")
    assert result.ok is False
    assert result.type == "missing_constant"


@pytest.mark.asyncio
async def test_validate_antiderivative_bad_expression(antiderivative):
    result = await antiderivative.validate("y + C")
    assert result.ok is False
    assert result.type == "invalid_antiderivative_expression"


@pytest.mark.asyncio
async def test_compare_antiderivatives_differing_by_constant(antiderivative):
    result = await antiderivative.compare("x^2/2 + C", "x^2/2 + 5 + C")
    assert result.ok is True
    assert result.type == "antiderivative_match"
    comparison = result.metadata["derivative_comparison"]
    assert comparison["success_rate"] == 100
    assert "X" in comparison["correct_derivative"]


@pytest.mark.asyncio
async def test_compare_wrong_antiderivative(antiderivative):
    result = await antiderivative.compare("x^2/2 + C", "x^3/3 + C")
    assert result.ok is False
    assert result.type == "antiderivative_mismatch"
    assert result.metadata["match_rate"] < 90


@pytest.mark.asyncio
async def test_compare_antiderivative_missing_constant(antiderivative):
    result = await antiderivative.compare("sin(x) + C", "sin(x)")
    assert result.ok is False
    assert result.type == "missing_constant"


@pytest.mark.asyncio
async def test_validate_antiderivative_timeout(antiderivative, monkeypatch):
    monkeypatch.setattr(antiderivative, "safe_evaluate", AsyncMock(side_effect=EvaluationTimeout("too slow")))
    result = await antiderivative.validate("x^2/2 + C")
    assert result.ok is False
    assert result.type == "timeout_error"


@pytest.mark.asyncio
async def test_validate_equation_timeout(equation, monkeypatch):
    monkeypatch.setattr(equation, "safe_evaluate", AsyncMock(side_effect=EvaluationTimeout("too slow")))
    result = await equation.validate("x = 1")
    assert result.ok is False
    assert result.type == "timeout_error"


# Points outside the domain

@pytest.mark.asyncio
async def test_compare_formulas_sharing_poles(formula):
    result = await formula.compare("1/(x^2+x)", "1/(x(x+1))")
    assert result.ok is True
    assert result.type == "formula_match"
    undefined = [m for m in result.metadata["matches"] if m["x"] in (-1, 0)]
    assert undefined and all(m["matches"] and m["correct_value"] is None for m in undefined)


@pytest.mark.asyncio
async def test_compare_formulas_with_different_domains(formula):
    result = await formula.compare("1/x", "x")
    assert result.ok is False


@pytest.mark.asyncio
async def test_compare_equations_sharing_poles(equation):
    result = await equation.compare("1/((x+2)(x-5)) = 0", "1/(x^2-3x-10) = 0")
    assert result.ok is True
    assert result.type == "equation_match"
