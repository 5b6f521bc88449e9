"""
Canonicalization of raw student input.

Every validator feeds its input through ``normalize`` before any parsing, so the
substitutions here define the notation the engine understands.
"""

import logging
import re

from schemas.validation import SelectorConfig

logger = logging.getLogger(__name__)

# Literal that overflows IEEE-754 doubles; the evaluator turns it into infinity.
INFINITY_SENTINEL = "1e309"

_WHITESPACE = re.compile(r"\s+")

# Applied in order
_SUBSTITUTIONS = [
    ("∞", "infty"),
    ("infty", INFINITY_SENTINEL),
    ("arcsin", "asin"),
    ("arccos", "acos"),
    ("arctan", "atan"),
    ("×", "*"),
    ("÷", "/"),
    ("π", "pi"),
    ("√", "sqrt"),
    ("∪", "U"),
    ("∩", "I"),
    ("∉", "notin"),
    ("∈", "in"),
    ("⊆", "subseteq"),
    ("⊂", "subset"),
]

# Set operators typed as standalone lowercase letters
_UNION_LETTER = re.compile(r"(?<![A-Za-z])u(?![A-Za-z])")
_INTERSECTION_LETTER = re.compile(r"(?<![A-Za-z])i(?![A-Za-z])")


def apply_mathematical_normalizations(text: str) -> str:
    for glyph, replacement in _SUBSTITUTIONS:
        text = text.replace(glyph, replacement)
    text = _UNION_LETTER.sub("U", text)
    text = _INTERSECTION_LETTER.sub("I", text)
    return _WHITESPACE.sub(" ", text)


def normalize(raw: str, config: SelectorConfig) -> str:
    """Return the canonical form of ``raw``. Never raises."""
    normalized = raw if isinstance(raw, str) else str(raw)

    if config.strip_spaces:
        normalized = _WHITESPACE.sub(" ", normalized).strip()

    if not config.case_sensitive:
        normalized = normalized.lower()

    normalized = apply_mathematical_normalizations(normalized)

    for name, formatter in config.custom_formatters.items():
        try:
            normalized = formatter(normalized)
        except Exception as e:
            logger.warning(f"Custom formatter '{name}' failed and was skipped: {e}")

    if config.debug_mode:
        logger.debug(f"Normalized input: {raw!r} -> {normalized!r}")
    return normalized
