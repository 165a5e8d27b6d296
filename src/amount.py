import decimal
from decimal import Decimal
from functools import total_ordering
from typing import Union

FRACTIONAL_DIGITS = 4

# Finer input is rounded to this many fractional digits on construction.
MAX_SCALE = 28

# Largest magnitude representable by a 96-bit unsigned coefficient.
MAX_MAGNITUDE = Decimal(2**96 - 1)

_DISPLAY_QUANTUM = Decimal(1).scaleb(-FRACTIONAL_DIGITS)
_SCALE_QUANTUM = Decimal(1).scaleb(-MAX_SCALE)

# Arithmetic context: anything that would round, overflow or produce NaN raises.
_ARITHMETIC_CONTEXT = decimal.Context(
    prec=64,
    rounding=decimal.ROUND_HALF_EVEN,
    traps=[decimal.Inexact, decimal.Overflow, decimal.InvalidOperation, decimal.DivisionByZero],
)

# Rounding context: display and MAX_SCALE rescaling round on purpose.
_ROUNDING_CONTEXT = decimal.Context(
    prec=64,
    rounding=decimal.ROUND_HALF_EVEN,
    traps=[decimal.Overflow, decimal.InvalidOperation],
)


class ParseError(ValueError):
    """Raised when input text cannot be turned into a transaction or an amount."""


class AmountOverflowError(ArithmeticError):
    """Raised when an amount leaves the representable range or loses precision."""


@total_ordering
class Amount:
    """
    Exact fixed-point currency amount.

    Values keep up to MAX_SCALE fractional digits; only str() rounds, to four.
    With magnitudes capped at MAX_MAGNITUDE every sum or difference of two
    amounts fits the arithmetic context exactly, so arithmetic never rounds:
    a result whose magnitude exceeds MAX_MAGNITUDE raises AmountOverflowError.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[Decimal, int] = 0):
        if isinstance(value, Amount):
            value = value.value
        if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
            raise TypeError(f"Amount requires a Decimal or int, got {type(value).__name__}")
        value = Decimal(value)
        if not value.is_finite():
            raise AmountOverflowError(f"Amount must be finite, got {value}")
        self._value = self._rescaled(self._checked(value))

    @classmethod
    def parse(cls, text: str) -> "Amount":
        """Parse decimal text such as '1.5', ' 2 ' or '9_001_000.1'."""
        if text is None or not text.strip():
            raise ParseError("Amount text is empty")
        try:
            with decimal.localcontext(_ARITHMETIC_CONTEXT):
                value = Decimal(text.strip())
        except decimal.DecimalException as e:
            raise ParseError(f"Malformed amount {text!r}") from e
        if not value.is_finite():
            raise ParseError(f"Amount must be finite, got {text!r}")
        try:
            return cls(value)
        except AmountOverflowError as e:
            raise ParseError(f"Amount {text!r} is out of range") from e

    @classmethod
    def zero(cls) -> "Amount":
        return cls(Decimal(0))

    @property
    def value(self) -> Decimal:
        return self._value

    @staticmethod
    def _checked(value: Decimal) -> Decimal:
        # copy_abs() is exact; abs() would round to the thread's context precision.
        if value.copy_abs() > MAX_MAGNITUDE:
            raise AmountOverflowError(f"Amount {value} exceeds {MAX_MAGNITUDE}")
        return value

    @staticmethod
    def _rescaled(value: Decimal) -> Decimal:
        if value.as_tuple().exponent < -MAX_SCALE:
            return value.quantize(_SCALE_QUANTUM, context=_ROUNDING_CONTEXT)
        return value

    def _combine(self, other: "Amount", operation) -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        try:
            result = operation(self._value, other._value)
        except decimal.DecimalException as e:
            raise AmountOverflowError(f"Cannot combine {self} and {other} exactly") from e
        return Amount(result)

    def __add__(self, other: "Amount") -> "Amount":
        return self._combine(other, _ARITHMETIC_CONTEXT.add)

    def __sub__(self, other: "Amount") -> "Amount":
        return self._combine(other, _ARITHMETIC_CONTEXT.subtract)

    def __neg__(self) -> "Amount":
        return Amount(_ARITHMETIC_CONTEXT.minus(self._value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def to_display(self) -> str:
        """Format with exactly four fractional digits (banker's rounding)."""
        rounded = self._value.quantize(_DISPLAY_QUANTUM, context=_ROUNDING_CONTEXT)
        if rounded.is_zero():
            rounded = rounded.copy_abs()
        return f"{rounded:f}"

    def __str__(self) -> str:
        return self.to_display()

    def __repr__(self) -> str:
        return f"Amount('{self._value}')"
