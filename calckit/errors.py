"""Error taxonomy and explicit result values for calckit.

Formula functions report failure by returning a ``CalcResult`` carrying a
``CalcError`` rather than raising. The engine maps the error message into
its display state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

__all__ = ["ErrorKind", "CalcError", "CalcResult"]


class ErrorKind(Enum):
    """Classes of calculation failure."""

    DOMAIN = "domain"  # log/sqrt/power/factorial out of domain
    ARITHMETIC = "arithmetic"  # divide/modulo by zero
    FORMAT = "format"  # unparseable operand, unknown unit or base symbol
    OVERFLOW = "overflow"  # non-finite result of a valid operation


@dataclass(frozen=True)
class CalcError:
    """A failed calculation.

    Attributes:
        kind: Which class of failure occurred.
        message: Text shown to the user in place of the display.
    """

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class CalcResult:
    """Outcome of a calculation: either a value or an error.

    Example:
        >>> result = CalcResult.success(4.0)
        >>> result.ok
        True
        >>> CalcResult.failure(ErrorKind.ARITHMETIC, "Division by zero").ok
        False
    """

    value: Any = None
    error: Optional[CalcError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "CalcResult":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "CalcResult":
        return cls(error=CalcError(kind, message))
