"""Operator and function evaluation for calckit.

Pure functions over floats. Domain guards run before computing, and the
outcome is reported as a ``CalcResult``. Results may still be non-finite
(for example ``x²`` of a huge value); deciding what that means is left to
the caller.
"""

import math

from .errors import CalcResult, ErrorKind
from .events import Function, Operator
from . import programmer

__all__ = ["apply_operator", "apply_function", "factorial", "format_number"]

MAX_FACTORIAL = 170  # 171! overflows a double
DISPLAY_DECIMALS = 10


def format_number(value: float) -> str:
    """Render a float for display.

    NaN and infinities become error texts. Finite values are printed with
    up to 10 fractional digits, then trailing zeros and a trailing decimal
    point are stripped.

    Example:
        >>> format_number(2.50)
        '2.5'
        >>> format_number(1 / 3)
        '0.3333333333'
    """
    if math.isnan(value):
        return "Error: Invalid"
    if math.isinf(value):
        return "Error: Overflow"
    text = f"{value:.{DISPLAY_DECIMALS}f}".rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        # Sign of an overflowing power: negative only for odd integer exponents
        negative = base < 0 and float(exponent).is_integer() and int(exponent) % 2 == 1
        return -math.inf if negative else math.inf
    except ValueError:
        # Negative base with a fractional exponent
        return math.nan


def _is_integer(value: float) -> bool:
    return math.isfinite(value) and float(value).is_integer()


def apply_operator(operator: Operator, left: float, right: float) -> CalcResult:
    """Evaluate ``left operator right``.

    Division and modulo by zero fail with an ARITHMETIC error. Modulo keeps
    the sign of the dividend. Bitwise operators require integer operands and
    use 64-bit two's-complement semantics.
    """
    if operator is Operator.ADD:
        return CalcResult.success(left + right)
    if operator is Operator.SUBTRACT:
        return CalcResult.success(left - right)
    if operator is Operator.MULTIPLY:
        return CalcResult.success(left * right)
    if operator is Operator.DIVIDE:
        if right == 0:
            return CalcResult.failure(ErrorKind.ARITHMETIC, "Division by zero")
        return CalcResult.success(left / right)
    if operator is Operator.MODULO:
        if right == 0:
            return CalcResult.failure(ErrorKind.ARITHMETIC, "Modulo by zero")
        return CalcResult.success(math.fmod(left, right))

    if not (_is_integer(left) and _is_integer(right)):
        return CalcResult.failure(
            ErrorKind.DOMAIN, "Bitwise operations require integer operands"
        )
    a, b = int(left), int(right)
    if operator is Operator.AND:
        return CalcResult.success(float(programmer.bit_and(a, b)))
    if operator is Operator.OR:
        return CalcResult.success(float(programmer.bit_or(a, b)))
    if operator is Operator.XOR:
        return CalcResult.success(float(programmer.bit_xor(a, b)))
    raise ValueError(f"Unknown operator: {operator}")


def factorial(n: float) -> CalcResult:
    """Iterative float factorial, defined for integers 0..170."""
    if n < 0 or not _is_integer(n):
        return CalcResult.failure(ErrorKind.DOMAIN, "Invalid input for factorial")
    if n > MAX_FACTORIAL:
        return CalcResult.failure(ErrorKind.DOMAIN, "Number too large for factorial")
    result = 1.0
    for i in range(2, int(n) + 1):
        result *= i
    return CalcResult.success(result)


def apply_function(function: Function, operand: float, accumulator: float = 0.0) -> CalcResult:
    """Apply ``function`` to ``operand``.

    Trigonometric functions take degrees. ``xʸ`` raises ``accumulator`` to
    ``operand``. ``e`` ignores its operand.
    """
    x = operand
    if function is Function.SIN:
        return CalcResult.success(math.sin(math.radians(x)))
    if function is Function.COS:
        return CalcResult.success(math.cos(math.radians(x)))
    if function is Function.TAN:
        return CalcResult.success(math.tan(math.radians(x)))
    if function is Function.LOG:
        if x <= 0:
            return CalcResult.failure(ErrorKind.DOMAIN, "Invalid input for logarithm")
        return CalcResult.success(math.log10(x))
    if function is Function.LN:
        if x <= 0:
            return CalcResult.failure(ErrorKind.DOMAIN, "Invalid input for natural logarithm")
        return CalcResult.success(math.log(x))
    if function is Function.SQRT:
        if x < 0:
            return CalcResult.failure(ErrorKind.DOMAIN, "Invalid input for square root")
        return CalcResult.success(math.sqrt(x))
    if function is Function.SQUARE:
        return CalcResult.success(_power(x, 2))
    if function is Function.CUBE:
        return CalcResult.success(_power(x, 3))
    if function is Function.POWER:
        if x == 0 and accumulator == 0:
            return CalcResult.failure(ErrorKind.DOMAIN, "0^0 is undefined")
        if accumulator == 0 and x < 0:
            return CalcResult.failure(ErrorKind.ARITHMETIC, "Division by zero")
        return CalcResult.success(_power(accumulator, x))
    if function is Function.RECIPROCAL:
        if x == 0:
            return CalcResult.failure(ErrorKind.ARITHMETIC, "Division by zero")
        return CalcResult.success(1 / x)
    if function is Function.FACTORIAL:
        return factorial(x)
    if function is Function.E:
        return CalcResult.success(math.e)
    if function is Function.NOT:
        if not _is_integer(x):
            return CalcResult.failure(
                ErrorKind.DOMAIN, "Bitwise operations require integer operands"
            )
        return CalcResult.success(float(programmer.bit_not(int(x))))
    raise ValueError(f"Unknown function: {function}")
