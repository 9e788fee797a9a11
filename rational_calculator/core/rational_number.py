"""Exact rational numbers with an out-of-band sign and multi-format rendering."""
from decimal import ROUND_HALF_UP, Decimal
import math
import re
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from rational_calculator.common.errors import (
    DecimalExpansionError,
    DivisionByZeroError,
    NotIntegerError,
    ParseError,
    RationalOverflowError,
    UndefinedResultError,
)
from rational_calculator.core.display import DECIMAL, FRACTION, MIXED, DisplayFormat, FormatKind, RoundingPlace


# Numerator and denominator are 32-bit unsigned quantities
U32_MAX: int = 2**32 - 1
# Largest count of significant digits a u32 component can have
MAX_COMPONENT_DIGITS: int = len(str(U32_MAX))
# A fractional part longer than this always reduces to a denominator of at least 2**33 or 5**33
MAX_FRACTIONAL_DIGITS: int = 32
# Floats are rebuilt from this many significant digits, so the digits always fit a u32 numerator
FLOAT_SIGNIFICANT_DIGITS: int = 9
# Largest magnitude for which every integral float is exactly representable
MAX_EXACT_FLOAT_INTEGER: int = 2**53

# Textual forms, tried in this order
MIXED_NUMBER_RE = re.compile(r"\s*([+-]?)\s*([0-9]+)\s+([0-9]+)\s*/\s*([0-9]+)\s*")
FRACTION_RE = re.compile(r"\s*([+-]?)\s*([0-9]+)\s*/\s*([0-9]+)\s*")
DECIMAL_RE = re.compile(r"\s*([+-]?)\s*([0-9]+)\.?([0-9]*)\s*")
LEADING_POINT_DECIMAL_RE = re.compile(r"\s*([+-]?)\s*\.([0-9]+)\s*")

# Token placed right before the repeating block of a decimal, e.g. 7/11 -> 0.bar63
REPEATING_MARKER: str = "bar"
# Longest decimal expansion rendered before giving up on finding its repeating block
MAX_DECIMAL_DIGITS: int = 10_000

Operand = Union["RationalNumber", int]


def _parse_component(digits: str) -> int:
    """
    Convert a run of ASCII digits into an integer, rejecting values that cannot fit 32 unsigned bits.

    :param str digits: Digits matched by one of the number patterns

    :return: Integer value of the digits
    :rtype: int
    :raises RationalOverflowError: If the digits describe a value above ``U32_MAX``
    """
    significant = digits.lstrip("0")
    # Checked before int() so very long literals never reach the interpreter's digit limit
    if len(significant) > MAX_COMPONENT_DIGITS:
        raise RationalOverflowError(f"{digits} does not fit in 32 unsigned bits")
    value = int(significant or "0")
    if value > U32_MAX:
        raise RationalOverflowError(f"{digits} does not fit in 32 unsigned bits")
    return value


def _as_rational(value: object) -> Optional["RationalNumber"]:
    """Coerce an operand to a RationalNumber, or return None when it is not a supported type."""
    if isinstance(value, RationalNumber):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return RationalNumber.from_int(value)
    return None


def _evaluated_format(left: "RationalNumber", right: "RationalNumber") -> DisplayFormat:
    """A whole-number left operand defers to the right operand's display format."""
    if left.is_integer:
        return right.display_format
    return left.display_format


class RationalNumber(BaseModel):
    """
    Exact fraction with a sign stored apart from its magnitude.

    Values are never normalized in place: ``4/8`` keeps its numerator and denominator until
    ``simplify()`` is called, yet compares equal to ``1/2``. Every operation returns a new value.

    Limitations:
        - Numerator and denominator are 32-bit unsigned quantities. A result that does not fit
          raises RationalOverflowError instead of wrapping around.
        - Exponentiation goes through floating point and is therefore not exact.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    numerator: int = Field(..., ge=0, le=U32_MAX, description="Magnitude of the numerator")
    denominator: int = Field(..., ge=1, le=U32_MAX, description="Denominator, never zero")
    negative: bool = Field(default=False, description="Sign of the value")
    display_format: DisplayFormat = Field(default=DECIMAL, description="Default rendering of the value")

    @classmethod
    def _build(
        cls,
        numerator: int,
        denominator: int,
        negative: bool,
        display_format: DisplayFormat,
    ) -> "RationalNumber":
        """
        Create a value from raw arithmetic results, turning invalid components into explicit errors.

        :param int numerator: Magnitude of the numerator
        :param int denominator: Denominator
        :param bool negative: Sign of the value, ignored for zero
        :param DisplayFormat display_format: Default rendering

        :return: New rational number
        :rtype: RationalNumber
        :raises DivisionByZeroError: If the denominator is zero
        :raises RationalOverflowError: If a component does not fit in 32 unsigned bits
        """
        if denominator == 0:
            raise DivisionByZeroError(f"Division by zero: {numerator}/0")
        if numerator > U32_MAX or denominator > U32_MAX:
            raise RationalOverflowError(f"{numerator}/{denominator} does not fit in 32 unsigned bits")
        return cls(
            numerator=numerator,
            denominator=denominator,
            negative=negative and numerator != 0,
            display_format=display_format,
        )

    @classmethod
    def parse(cls, text: str) -> "RationalNumber":
        """
        Parse a mixed number, a fraction or a decimal.

        Forms are tried in this order:
            1. Mixed number: ``[sign] whole num/den`` (e.g. ``-2 1/3``)
            2. Fraction: ``[sign] num/den`` (e.g. ``7/5``)
            3. Decimal: ``[sign] digits[.digits]`` or ``[sign] .digits`` (e.g. ``3.14``, ``.5``)

        Whitespace is allowed around every token.

        :param str text: Number text

        :return: Parsed rational number
        :rtype: RationalNumber
        :raises ParseError: If the text matches none of the forms
        :raises DivisionByZeroError: If a fraction has a zero denominator
        :raises RationalOverflowError: If a component does not fit in 32 unsigned bits
        """
        match = MIXED_NUMBER_RE.fullmatch(text)
        if match:
            sign, whole_digits, numerator_digits, denominator_digits = match.groups()
            whole = _parse_component(whole_digits)
            numerator = _parse_component(numerator_digits)
            denominator = _parse_component(denominator_digits)
            return cls._build(denominator * whole + numerator, denominator, sign == "-", MIXED)

        match = FRACTION_RE.fullmatch(text)
        if match:
            sign, numerator_digits, denominator_digits = match.groups()
            numerator = _parse_component(numerator_digits)
            denominator = _parse_component(denominator_digits)
            display_format = FRACTION if numerator >= denominator else MIXED
            return cls._build(numerator, denominator, sign == "-", display_format)

        match = DECIMAL_RE.fullmatch(text)
        if match:
            sign, whole_digits, fractional_digits = match.groups()
            return cls._parse_decimal(sign, whole_digits, fractional_digits)

        match = LEADING_POINT_DECIMAL_RE.fullmatch(text)
        if match:
            sign, fractional_digits = match.groups()
            return cls._parse_decimal(sign, "0", fractional_digits)

        raise ParseError(f"Invalid number: {text!r}")

    @classmethod
    def _parse_decimal(cls, sign: str, whole_digits: str, fractional_digits: str) -> "RationalNumber":
        whole = _parse_component(whole_digits)

        # Trailing zeros vanish in the gcd reduction below anyway
        fractional_digits = fractional_digits.rstrip("0")
        if len(fractional_digits) > MAX_FRACTIONAL_DIGITS:
            raise RationalOverflowError(f"Too many fractional digits: .{fractional_digits}")

        remainder = int(fractional_digits) if fractional_digits else 0
        denominator = 10 ** len(fractional_digits)

        factor = math.gcd(remainder, denominator)
        remainder //= factor
        denominator //= factor

        return cls._build(denominator * whole + remainder, denominator, sign == "-", DECIMAL)

    @classmethod
    def from_int(cls, value: int) -> "RationalNumber":
        """Whole number rendered in decimal notation."""
        return cls._build(abs(value), 1, value < 0, DECIMAL)

    @classmethod
    def from_float(cls, value: float) -> "RationalNumber":
        """
        Rebuild a rational number from the decimal text of a float.

        Integral floats are taken exactly; anything else is rounded to nine significant digits
        first, so the digits of the result always fit a 32-bit numerator.

        :param float value: Finite float

        :return: Rational number in decimal notation
        :rtype: RationalNumber
        :raises UndefinedResultError: If the float is infinite or NaN
        :raises RationalOverflowError: If the value cannot be represented with 32-bit components
        """
        if not math.isfinite(value):
            raise UndefinedResultError(f"{value} is not a rational number")

        if value.is_integer() and abs(value) < MAX_EXACT_FLOAT_INTEGER:
            text = str(int(value))
        else:
            # "f" keeps the text in positional notation (no exponent) for the number patterns
            text = format(Decimal(format(value, f".{FLOAT_SIGNIFICANT_DIGITS}g")), "f")
        return cls.parse(text)

    def with_format(self, display_format: DisplayFormat) -> "RationalNumber":
        """Same value with another default rendering."""
        return self.model_copy(update={"display_format": display_format})

    @property
    def is_zero(self) -> bool:
        return self.numerator == 0

    @property
    def is_negative(self) -> bool:
        """True for values strictly below zero; zero is never negative."""
        return self.negative and self.numerator != 0

    @property
    def is_integer(self) -> bool:
        return self.numerator % self.denominator == 0

    def as_float(self) -> float:
        value = self.numerator / self.denominator
        return -value if self.negative else value

    def as_int(self) -> int:
        """
        Return the value as an integer.

        :return: Integer value
        :rtype: int
        :raises NotIntegerError: If the numerator is not a multiple of the denominator
        """
        quotient, remainder = divmod(self.numerator, self.denominator)
        if remainder != 0:
            raise NotIntegerError(f"{self.as_str(FRACTION)} is not an integer")
        return -quotient if self.negative else quotient

    def simplify(self) -> "RationalNumber":
        """Divide numerator and denominator by their greatest common divisor (``gcd(0, n) == n``)."""
        factor = math.gcd(self.numerator, self.denominator)
        return self._build(self.numerator // factor, self.denominator // factor, self.negative, self.display_format)

    def reciprocal(self) -> "RationalNumber":
        if self.numerator == 0:
            raise DivisionByZeroError("Zero has no reciprocal")
        return self._build(self.denominator, self.numerator, self.negative, self.display_format)

    def neg(self) -> "RationalNumber":
        return self._build(self.numerator, self.denominator, not self.negative, self.display_format)

    def abs(self) -> "RationalNumber":
        return self._build(self.numerator, self.denominator, False, self.display_format)

    def add(self, other: Operand) -> "RationalNumber":
        """
        Add two values over the least common multiple of their denominators.

        Like signs add magnitudes; unlike signs subtract the smaller magnitude from the larger
        and keep the sign of the larger.
        """
        other = _as_rational(other)
        denominator = math.lcm(self.denominator, other.denominator)
        left = self.numerator * (denominator // self.denominator)
        right = other.numerator * (denominator // other.denominator)

        if self.negative == other.negative:
            numerator, negative = left + right, self.negative
        elif left > right:
            numerator, negative = left - right, self.negative
        else:
            numerator, negative = right - left, other.negative

        return self._build(numerator, denominator, negative, _evaluated_format(self, other))

    def sub(self, other: Operand) -> "RationalNumber":
        return self.add(_as_rational(other).neg())

    def mul(self, other: Operand) -> "RationalNumber":
        other = _as_rational(other)
        return self._build(
            self.numerator * other.numerator,
            self.denominator * other.denominator,
            self.negative != other.negative,
            _evaluated_format(self, other),
        )

    def div(self, other: Operand) -> "RationalNumber":
        other = _as_rational(other)
        if other.numerator == 0:
            raise DivisionByZeroError(f"Division by zero: {self.as_str(FRACTION)} / {other.as_str(FRACTION)}")
        return self._build(
            self.numerator * other.denominator,
            self.denominator * other.numerator,
            self.negative != other.negative,
            _evaluated_format(self, other),
        )

    def pow(self, exponent: Operand) -> "RationalNumber":
        """
        Raise to a power through floating point.

        Not exact: both operands are converted to floats and the result is rebuilt with
        ``from_float``, so non-trivial exponents carry float round-trip error.

        :param exponent: Power to raise the value to

        :return: Approximate power
        :rtype: RationalNumber
        :raises DivisionByZeroError: If zero is raised to a negative power
        :raises UndefinedResultError: If the result is not a real number
        :raises RationalOverflowError: If the result is too large
        """
        exponent = _as_rational(exponent)
        operation = f"{self.as_str(FRACTION)} ^ {exponent.as_str(FRACTION)}"
        try:
            result = self.as_float() ** exponent.as_float()
        except ZeroDivisionError:
            raise DivisionByZeroError(f"{operation}: zero cannot be raised to a negative power") from None
        except OverflowError:
            raise RationalOverflowError(f"{operation} is too large") from None

        # A negative base with a fractional exponent yields a complex number
        if isinstance(result, complex):
            raise UndefinedResultError(f"{operation} is not a real number")

        return self.from_float(result).with_format(_evaluated_format(self, exponent))

    def __add__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else self.add(other)

    def __radd__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else other.add(self)

    def __sub__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else self.sub(other)

    def __rsub__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else other.sub(self)

    def __mul__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else self.mul(other)

    def __rmul__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else other.mul(self)

    def __truediv__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else self.div(other)

    def __rtruediv__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else other.div(self)

    def __pow__(self, other: object) -> "RationalNumber":
        other = _as_rational(other)
        return NotImplemented if other is None else self.pow(other)

    def __neg__(self) -> "RationalNumber":
        return self.neg()

    def __abs__(self) -> "RationalNumber":
        return self.abs()

    def _key(self) -> Tuple[bool, int, int]:
        simplified = self.simplify()
        return simplified.is_negative, simplified.numerator, simplified.denominator

    def _compare(self, other: "RationalNumber") -> int:
        if self.is_negative != other.is_negative:
            return -1 if self.is_negative else 1

        denominator = math.lcm(self.denominator, other.denominator)
        left = self.numerator * (denominator // self.denominator)
        right = other.numerator * (denominator // other.denominator)
        if left == right:
            return 0

        # Larger magnitude means smaller value below zero
        result = -1 if left < right else 1
        return -result if self.is_negative else result

    def __eq__(self, other: object) -> bool:
        other = _as_rational(other)
        if other is None:
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: object) -> bool:
        other = _as_rational(other)
        return NotImplemented if other is None else self._compare(other) < 0

    def __le__(self, other: object) -> bool:
        other = _as_rational(other)
        return NotImplemented if other is None else self._compare(other) <= 0

    def __gt__(self, other: object) -> bool:
        other = _as_rational(other)
        return NotImplemented if other is None else self._compare(other) > 0

    def __ge__(self, other: object) -> bool:
        other = _as_rational(other)
        return NotImplemented if other is None else self._compare(other) >= 0

    def as_decimal_str(self, max_digits: int = MAX_DECIMAL_DIGITS) -> Tuple[str, Optional[int]]:
        """
        Render the value by long division.

        Every remainder is recorded in the order it appears. As soon as a remainder comes back,
        the digits produced since its first occurrence repeat forever.

        Examples:
            - 1/100 -> ("0.01", None)
            - 19/270 -> ("0.0703", 3), i.e. 0.0703703...

        :param int max_digits: Most fractional digits produced before giving up

        :return: Decimal text and the length of its repeating block, if any
        :rtype: Tuple[str, Optional[int]]
        :raises DecimalExpansionError: If the expansion needs more than ``max_digits`` digits
        """
        whole, remainder = divmod(self.numerator, self.denominator)
        digits: List[str] = []
        repeating: Optional[int] = None

        if remainder:
            # Position of each remainder in the order it was seen
            positions: Dict[int, int] = {remainder: 0}
            while remainder:
                if len(digits) >= max_digits:
                    raise DecimalExpansionError(
                        f"Decimal expansion of {self.as_str(FRACTION)} is longer than {max_digits} digits"
                    )
                digit, remainder = divmod(remainder * 10, self.denominator)
                digits.append(str(digit))
                if remainder in positions:
                    repeating = len(positions) - positions[remainder]
                    break
                positions[remainder] = len(positions)

        text = f"{whole}.{''.join(digits)}" if digits else str(whole)
        if self.is_negative:
            text = f"-{text}"
        return text, repeating

    def repeating(self) -> bool:
        """True when the reduced denominator has a prime factor other than 2 and 5."""
        denominator = self.denominator // math.gcd(self.numerator, self.denominator)
        for factor in (2, 5):
            while denominator % factor == 0:
                denominator //= factor
        return denominator != 1

    def _rounded_str(self, rounding: RoundingPlace) -> str:
        places = int(rounding)
        # The digit past the rounding place decides the direction, so later digits are never needed
        truncated = self.numerator * 10 ** (places + 1) // self.denominator
        value = Decimal(-truncated if self.is_negative else truncated).scaleb(-(places + 1))
        rounded = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
        # A value rounded to zero carries no sign
        if rounded.is_zero():
            rounded = rounded.copy_abs()
        return format(rounded, "f")

    def _decimal_str(self, rounding: Optional[RoundingPlace], max_digits: int) -> str:
        if rounding is not None:
            return self._rounded_str(rounding)

        text, repeating = self.as_decimal_str(max_digits)
        if repeating is None:
            return text
        return f"{text[:-repeating]}{REPEATING_MARKER}{text[-repeating:]}"

    def as_str(self, display_format: Optional[DisplayFormat] = None, max_digits: int = MAX_DECIMAL_DIGITS) -> str:
        """
        Render the value as text.

        :param DisplayFormat display_format: Rendering override, defaults to the value's own format
        :param int max_digits: Most fractional digits an unrounded decimal may need

        :return: Rendered value
        :rtype: str
        :raises DecimalExpansionError: If an unrounded decimal needs more than ``max_digits`` digits
        """
        display_format = display_format or self.display_format
        sign = "-" if self.is_negative else ""

        if display_format.kind is FormatKind.FRACTION:
            return f"{sign}{self.numerator}/{self.denominator}"

        if display_format.kind is FormatKind.MIXED:
            if self.numerator == 0:
                return "0"
            if self.numerator < self.denominator:
                return self.as_str(FRACTION)
            whole, remainder = divmod(self.numerator, self.denominator)
            if remainder == 0:
                return f"{sign}{whole}"
            return f"{sign}{whole} {remainder}/{self.denominator}"

        return self._decimal_str(display_format.rounding, max_digits)

    def __str__(self) -> str:
        return self.as_str()
