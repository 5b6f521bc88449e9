"""
Sandboxed expression evaluation backed by sympy.

Validators never touch sympy directly: they compile strings into
``CompiledExpression`` objects and evaluate them through ``ExpressionEvaluator``,
which enforces the character and identifier whitelist and the time budget.

Parsing is symbolic, evaluation is not: a compiled expression is lowered with
``sympy.lambdify`` to plain Python float arithmetic, so values follow IEEE-754
doubles. Overflow gives infinity, and points outside the domain (division by
zero, ``sqrt(-1)``, ``log(0)``) give NaN.
"""

import asyncio
import logging
import math
import re
import time
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

import sympy
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_application,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)
from sympy.printing.pycode import PythonCodePrinter

from validation.exceptions import EvaluationError, EvaluationTimeout

logger = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 1000

ALLOWED_CHARACTERS = re.compile(r"^[0-9A-Za-z\s+\-*/^().,]*$")
NUMBER_LITERAL = re.compile(r"(?<![A-Za-z0-9.])(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
IDENTIFIER = re.compile(r"[A-Za-z][A-Za-z0-9]*")
# "1 000" or "2 3": implicit multiplication would silently read these as products
SPACED_NUMBERS = re.compile(r"[\d.]\s+[\d.]")

TRANSFORMATIONS = standard_transformations + (
    convert_xor,
    implicit_multiplication,
    implicit_application,
)

SYMBOLS = {
    "X": sympy.Symbol("X", real=True),
    "C": sympy.Symbol("C", real=True),
}

NAMESPACE = {
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "cot": sympy.cot,
    "sec": sympy.sec,
    "csc": sympy.csc,
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "sinh": sympy.sinh,
    "cosh": sympy.cosh,
    "tanh": sympy.tanh,
    "exp": sympy.exp,
    "log": sympy.log,
    "ln": sympy.log,
    "sqrt": sympy.sqrt,
    "abs": sympy.Abs,
    "pi": sympy.pi,
    "e": sympy.E,
}

# Overflowing literals are rewritten to this name before parsing
_INFINITY_NAME = "oo"

# Only the constructors parse_expr's generated code refers to
_GLOBALS: Dict[str, Any] = {
    "__builtins__": {},
    "Integer": sympy.Integer,
    "Float": sympy.Float,
    "Rational": sympy.Rational,
    "Number": sympy.Number,
    "Symbol": sympy.Symbol,
    "Function": sympy.Function,
    "Add": sympy.Add,
    "Mul": sympy.Mul,
    "Pow": sympy.Pow,
}

# Reciprocal trig functions have no counterpart in the math module
_FLOAT_FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "cot": lambda v: 1 / math.tan(v),
    "sec": lambda v: 1 / math.cos(v),
    "csc": lambda v: 1 / math.sin(v),
}


class FloatCodePrinter(PythonCodePrinter):
    """
    Prints a parsed tree as plain float arithmetic, node by node.

    Numbers are printed as float literals and every operator is fully
    parenthesized; no subexpression is rebuilt or evaluated by sympy while printing.
    """

    def _print_Float(self, expr):
        value = float(expr)
        if math.isinf(value):
            return "float('inf')" if value > 0 else "float('-inf')"
        return repr(value)

    def _print_Integer(self, expr):
        try:
            return repr(float(expr))
        except OverflowError:
            return "float('inf')" if expr.p > 0 else "float('-inf')"

    def _print_Rational(self, expr):
        return f"({self._print_Integer(sympy.Integer(expr.p))}/{self._print_Integer(sympy.Integer(expr.q))})"

    def _print_Add(self, expr, order=None):
        return "(" + " + ".join(self._print(arg) for arg in expr.args) + ")"

    def _print_Mul(self, expr):
        return "(" + "*".join(self._print(arg) for arg in expr.args) + ")"

    def _print_Pow(self, expr, rational=False):
        return f"(({self._print(expr.base)})**({self._print(expr.exp)}))"


def _float_printer() -> FloatCodePrinter:
    return FloatCodePrinter({
        "fully_qualified_modules": False,
        "inline": True,
        "allow_unknown_functions": True,
        "user_functions": {name: name for name in _FLOAT_FUNCTIONS},
    })


def _rewrite_literal(match: "re.Match") -> str:
    literal = match.group(0)
    if math.isinf(float(literal)):
        return _INFINITY_NAME
    return literal


def to_number(value: Any) -> Any:
    """Convert a sympy value to ``float`` when it is a real number; otherwise return it untouched."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, sympy.Basic) and value.is_number:
        try:
            return float(value)
        except (TypeError, ValueError):
            return value
    return value


def is_finite_number(value: Any) -> bool:
    return isinstance(value, float) and math.isfinite(value)


class CompiledExpression:
    """A parsed expression over a fixed set of free variables."""

    def __init__(self, source: str, expr: Any, variables: Iterable[str]):
        self.source = source
        self.expr = expr
        self.variables = tuple(variables)
        self._function = None
        self._arguments = ()

    @property
    def free_variables(self) -> set:
        free = getattr(self.expr, "free_symbols", set())
        return {symbol.name for symbol in free}

    def _lowered(self) -> Callable[..., Any]:
        if self._function is None:
            self._arguments = tuple(sorted(self.free_variables))
            try:
                self._function = sympy.lambdify(
                    [SYMBOLS.get(name) or sympy.Symbol(name, real=True) for name in self._arguments],
                    self.expr,
                    modules=[_FLOAT_FUNCTIONS, "math"],
                    printer=_float_printer(),
                    docstring_limit=0,
                )
            except Exception as e:
                raise EvaluationError(f"Could not evaluate '{self.source}': {e}") from e
        return self._function

    def evaluate(self, scope: Optional[Mapping[str, float]] = None) -> Any:
        if not isinstance(self.expr, sympy.Basic):
            # Tuples and other containers are not scalar answers
            return self.expr
        scope = scope or {}
        function = self._lowered()
        if any(name not in scope for name in self._arguments):
            # Unbound variables leave a symbolic, non-numeric value
            return self.expr

        arguments = [float(scope[name]) for name in self._arguments]
        try:
            value = function(*arguments)
        except OverflowError:
            return math.inf
        except (ZeroDivisionError, ValueError, TypeError):
            return math.nan
        except Exception as e:
            raise EvaluationError(f"Could not evaluate '{self.source}': {e}") from e
        return to_number(value)

    def derivative(self, variable: str) -> "CompiledExpression":
        if variable not in SYMBOLS:
            raise EvaluationError(f"Unknown variable '{variable}'")
        if not isinstance(self.expr, sympy.Basic):
            raise EvaluationError(f"'{self.source}' is not a scalar expression")
        try:
            derived = sympy.diff(self.expr, SYMBOLS[variable])
        except Exception as e:
            raise EvaluationError(f"Could not differentiate '{self.source}': {e}") from e
        return CompiledExpression(f"d/d{variable}({self.source})", derived, self.variables)

    def __str__(self) -> str:
        return sympy.sstr(self.expr, order="none").replace("**", "^")


class ExpressionEvaluator:
    """Parses and evaluates normalized expressions with a per-call time budget."""

    def __init__(self, timeout_ms: int = 5000):
        self.timeout_ms = timeout_ms

    def compile(self, expression: str, variables: Iterable[str] = ()) -> CompiledExpression:
        variables = tuple(variables)
        text = expression.strip()

        if not text:
            raise EvaluationError("Empty expression")
        if len(text) > MAX_EXPRESSION_LENGTH:
            raise EvaluationError(f"Expression longer than {MAX_EXPRESSION_LENGTH} characters")
        if not ALLOWED_CHARACTERS.match(text):
            raise EvaluationError(f"Expression '{text}' contains unsupported characters")
        if SPACED_NUMBERS.search(text):
            raise EvaluationError(f"Expression '{text}' has numbers separated only by spaces")

        for name in IDENTIFIER.findall(NUMBER_LITERAL.sub(" ", text)):
            if name not in NAMESPACE and name not in variables:
                raise EvaluationError(f"Unknown identifier '{name}'")

        local_dict = dict(NAMESPACE)
        local_dict[_INFINITY_NAME] = sympy.oo
        for name in variables:
            local_dict[name] = SYMBOLS.get(name) or sympy.Symbol(name, real=True)

        try:
            parsed = parse_expr(
                NUMBER_LITERAL.sub(_rewrite_literal, text),
                local_dict=local_dict,
                global_dict=dict(_GLOBALS),
                transformations=TRANSFORMATIONS,
                evaluate=False,
            )
        except Exception as e:
            raise EvaluationError(f"Could not parse '{text}': {e}") from e

        return CompiledExpression(text, parsed, variables)

    async def safe_evaluate(
        self,
        expression: Union[str, CompiledExpression],
        scope: Optional[Mapping[str, float]] = None,
    ) -> Any:
        """
        Evaluate ``expression`` under ``scope`` within the time budget.

        Yields to the event loop first so a caller racing this coroutine against a
        timer gets a chance to stop waiting. The computation itself is not
        preempted; exceeding the budget is reported once it returns.

        Raises:
            EvaluationError: invalid syntax, disallowed tokens or engine failure
            EvaluationTimeout: the evaluation took longer than ``timeout_ms``
        """
        await asyncio.sleep(0)
        started = time.monotonic()

        if isinstance(expression, CompiledExpression):
            compiled = expression
        else:
            compiled = self.compile(expression, tuple(scope or {}))
        value = compiled.evaluate(scope)

        elapsed_ms = (time.monotonic() - started) * 1000
        if elapsed_ms > self.timeout_ms:
            raise EvaluationTimeout(
                f"Evaluation timed out after {elapsed_ms:.0f}ms (budget {self.timeout_ms}ms)"
            )
        return value
