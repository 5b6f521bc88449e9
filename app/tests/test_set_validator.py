import pytest

from schemas.validation import SelectorConfig
from validation.set import SetValidator, detect_part_type


@pytest.fixture
def validator():
    return SetValidator()


@pytest.mark.asyncio
async def test_validate_discrete_set(validator):
    result = await validator.validate("{1,2,3}")
    assert result.ok is True
    assert result.type == "valid_set"
    assert result.metadata["parts"] == 1
    assert result.metadata["parsed_parts"][0]["type"] == "valid_discrete_set"


@pytest.mark.asyncio
async def test_discrete_set_is_deduplicated_and_sorted(validator):
    result = await validator.validate("{3, 1, 1, 2}")
    part = result.metadata["parsed_parts"][0]
    assert part["elements"] == [1.0, 2.0, 3.0]
    assert part["had_duplicates"] is True


@pytest.mark.asyncio
async def test_validate_empty_set(validator):
    result = await validator.validate("{}")
    assert result.ok is True
    assert result.metadata["parsed_parts"][0]["type"] == "valid_empty_set"


@pytest.mark.asyncio
async def test_validate_union_with_infinite_endpoints(validator):
    result = await validator.validate("(-∞, 0) ∪ {1/2} U [1, ∞)")
    assert result.ok is True
    assert result.metadata["parts"] == 3
    interval_types = [p["interval_type"] for p in result.metadata["parsed_parts"] if p["kind"] == "interval"]
    assert interval_types == ["()", "[)"]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["(5, 1)", "(1, 1)", "(1, 2, 3)", "(1)", "[a, 2]", "{1, ∞}", "abc"])
async def test_validate_invalid_parts(validator, text):
    result = await validator.validate(text)
    assert result.ok is False
    assert result.type == "invalid_set"
    assert result.metadata["valid_parts"] == 0
    assert len(result.metadata["invalid_parts"]) == 1


@pytest.mark.asyncio
async def test_invalid_set_counts_valid_parts(validator):
    result = await validator.validate("{1} U (3, 2) U [0, 1]")
    assert result.ok is False
    assert result.metadata["total_parts"] == 3
    assert result.metadata["valid_parts"] == 2
    assert "∞" not in result.metadata["invalid_parts"][0]["part"]


@pytest.mark.parametrize("part, expected", [
    ("(1 2)", "possible_interval"),
    ("{1", "unknown_format"),
    ("1, 2", "unknown_format"),
])
def test_detect_part_type(part, expected):
    assert detect_part_type(part) == expected


@pytest.mark.asyncio
async def test_compare_order_independent(validator):
    result = await validator.compare("{1,2} U (0,1)", "(0,1) U {2,1}")
    assert result.ok is True
    assert result.type == "perfect_match"


@pytest.mark.asyncio
async def test_compare_bracket_mismatch(validator):
    result = await validator.compare("(0,5)", "(0,5]")
    assert result.ok is False
    assert result.type == "partial_match"
    assert result.metadata["unmatched_parts"] == ["(0,5)"]
    assert result.metadata["extra_parts"] == ["(0,5]"]


@pytest.mark.asyncio
async def test_compare_part_count_mismatch(validator):
    result = await validator.compare("{1,2}", "{1} U {2}")
    assert result.ok is False
    assert result.type == "part_count_mismatch"
    assert result.metadata["expected_parts"] == 1
    assert result.metadata["actual_parts"] == 2


@pytest.mark.asyncio
async def test_compare_infinite_endpoints_match_only_same_infinity(validator):
    same = await validator.compare("(-∞, 0)", "(-infty, 0)")
    assert same.ok is True

    different = await validator.compare("(-∞, 0)", "(-1000000, 0)")
    assert different.ok is False
    assert different.metadata["unmatched_parts"] == ["(-∞, 0)"]


@pytest.mark.asyncio
async def test_compare_uses_tolerance():
    loose = SetValidator(SelectorConfig(tolerance=0.01))
    exact = SetValidator(SelectorConfig(tolerance=0))

    assert (await loose.compare("{0.5}", "{0.501}")).ok is True
    assert (await exact.compare("{0.5}", "{0.501}")).ok is False
    assert (await exact.compare("{1/2}", "{0.5}")).ok is True


@pytest.mark.asyncio
async def test_compare_discrete_vs_interval(validator):
    result = await validator.compare("{1, 2}", "[1, 2]")
    assert result.ok is False
    assert result.type == "partial_match"


@pytest.mark.asyncio
async def test_compare_invalid_user_set_returns_format_failure(validator):
    result = await validator.compare("{1}", "(2, 1)")
    assert result.ok is False
    assert result.type == "invalid_set"


@pytest.mark.asyncio
async def test_empty_input_laws(validator):
    assert (await validator.validate("")).ok is None
    assert (await validator.compare("{1}", "")).ok is None
