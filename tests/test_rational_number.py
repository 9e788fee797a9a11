"""Test class RationalNumber."""
from pydantic import ValidationError
import pytest

from rational_calculator.common.errors import (
    CalculatorError,
    DecimalExpansionError,
    DivisionByZeroError,
    NotIntegerError,
    ParseError,
    RationalOverflowError,
    UndefinedResultError,
)
from rational_calculator.core.display import DECIMAL, FRACTION, MIXED, DisplayFormat, RoundingPlace
from rational_calculator.core.rational_number import U32_MAX, RationalNumber


def r(text: str) -> RationalNumber:
    return RationalNumber.parse(text)


@pytest.mark.parametrize("text,numerator,denominator,negative", [
    ("2.5", 5, 2, False),
    ("-2.5", 5, 2, True),
    ("0.15", 3, 20, False),
    (".15", 3, 20, False),
    ("- .5", 1, 2, True),
    ("3.", 3, 1, False),
    ("3.500", 7, 2, False),
    ("  42  ", 42, 1, False),
    ("10/20", 10, 20, False),
    ("+7 / 5", 7, 5, False),
    ("2 1/5", 11, 5, False),
    ("-2 1/5", 11, 5, True),
    ("0", 0, 1, False),
])
def test_parse_components(text: str, numerator: int, denominator: int, negative: bool) -> None:
    """parse recognizes decimals, fractions and mixed numbers without normalizing fractions."""
    number = r(text)
    assert number.numerator == numerator
    assert number.denominator == denominator
    assert number.negative is negative


@pytest.mark.parametrize("text,expected", [
    ("2.15", 2.15),
    ("0.15", 0.15),
    (".15", 0.15),
    ("-3/4", -0.75),
])
def test_parse_as_float(text: str, expected: float) -> None:
    """as_float converts the exact value to the nearest float."""
    assert r(text).as_float() == expected


@pytest.mark.parametrize("text", ["", "abc", "1/", "/2", "1.2.3", "1 2", "--1", "1/2/3", "½"])
def test_parse_invalid(text: str) -> None:
    """Text matching none of the number forms raises ParseError."""
    with pytest.raises(ParseError):
        r(text)


def test_parse_zero_denominator() -> None:
    """A fraction with a zero denominator is rejected explicitly."""
    with pytest.raises(DivisionByZeroError):
        r("1/0")
    with pytest.raises(DivisionByZeroError):
        r("2 1/0")


@pytest.mark.parametrize("text", ["4294967296", "1/4294967296", "99999999999999999999999", "0.0000000001"])
def test_parse_overflow(text: str) -> None:
    """Components that do not fit 32 unsigned bits raise RationalOverflowError."""
    with pytest.raises(RationalOverflowError):
        r(text)


def test_parse_largest_component() -> None:
    """The largest 32-bit unsigned value is accepted."""
    assert r(str(U32_MAX)).numerator == U32_MAX


def test_parse_formats() -> None:
    """The surface form of a number becomes its default display format."""
    assert r("2 1/3").display_format == MIXED
    assert r("7/5").display_format == FRACTION
    assert r("1/3").display_format == MIXED
    assert r("1.5").display_format == DECIMAL


def test_direct_construction_is_validated() -> None:
    """Pydantic validation guards the denominator and the 32-bit range."""
    with pytest.raises(ValidationError):
        RationalNumber(numerator=1, denominator=0)
    with pytest.raises(ValidationError):
        RationalNumber(numerator=U32_MAX + 1, denominator=1)


def test_is_frozen() -> None:
    """Rational numbers are immutable."""
    number = r("1/2")
    with pytest.raises(ValidationError):
        number.numerator = 3


def test_as_int() -> None:
    """as_int succeeds only for integral values."""
    assert r("-6/3").as_int() == -2
    assert r("4").as_int() == 4
    with pytest.raises(NotIntegerError):
        RationalNumber(numerator=3, denominator=2).as_int()


def test_from_int() -> None:
    assert RationalNumber.from_int(-7) == r("-7")
    assert RationalNumber.from_int(0).negative is False


def test_from_float() -> None:
    """from_float rebuilds the value from the float's decimal digits."""
    assert RationalNumber.from_float(0.1) == r("1/10")
    assert RationalNumber.from_float(-2.0) == -2
    assert RationalNumber.from_float(3486784401.0) == r("3486784401")
    with pytest.raises(UndefinedResultError):
        RationalNumber.from_float(float("inf"))
    with pytest.raises(UndefinedResultError):
        RationalNumber.from_float(float("nan"))


@pytest.mark.parametrize("a,b,expected", [
    ("2.5", "1.5", 4.0),
    ("-2.5", "1.5", -1.0),
    ("7", "2", 9.0),
    ("10", "3", 13.0),
])
def test_adds(a: str, b: str, expected: float) -> None:
    assert (r(a) + r(b)).as_float() == expected


@pytest.mark.parametrize("a,b,expected", [
    ("2.5", "1.5", 1.0),
    ("-2.5", "1.5", -4.0),
    ("7", "2", 5.0),
    ("10", "3", 7.0),
])
def test_subtracts(a: str, b: str, expected: float) -> None:
    assert (r(a) - r(b)).as_float() == expected


def test_add_uses_least_common_multiple() -> None:
    """Addition works over the lcm of the denominators and does not simplify the result."""
    total = r("1/4") + r("1/6")
    assert (total.numerator, total.denominator) == (5, 12)
    total = r("1/2") + r("1/2")
    assert (total.numerator, total.denominator) == (2, 2)


def test_unlike_signs_take_sign_of_larger_magnitude() -> None:
    assert r("-3/4") + r("1/4") == r("-1/2")
    assert r("3/4") + r("-1/4") == r("1/2")
    assert (r("1/2") + r("-1/2")).negative is False


def test_multiplication_and_division_sign() -> None:
    assert r("-2") * r("-3") == 6
    assert r("-2") * r("3") == -6
    assert r("-1/2") / r("1/4") == -2
    assert r("-1/2") / r("-1/4") == 2


def test_operations_accept_integers() -> None:
    assert r("1/2") + 1 == r("3/2")
    assert 1 - r("1/4") == r("3/4")
    assert 3 * r("1/3") == 1
    assert 1 / r("1/5") == 5


@pytest.mark.parametrize("a,b", [
    ("1/2", "1/3"),
    ("-2 1/4", "3.75"),
    ("7/5", "-7/5"),
    ("0", "13/17"),
    ("-0.125", "-8"),
])
def test_arithmetic_identities(a: str, b: str) -> None:
    """Commutativity and inverse operations hold under simplification-aware equality."""
    a, b = r(a), r(b)
    assert a + b == b + a
    assert a * b == b * a
    assert (a - b) + b == a
    if not b.is_zero:
        assert a / b * b == a


def test_division_by_zero() -> None:
    """Dividing by a zero-valued operand raises instead of producing a zero denominator."""
    with pytest.raises(DivisionByZeroError):
        r("1") / r("0")
    with pytest.raises(DivisionByZeroError):
        r("0/5").reciprocal()


def test_overflow() -> None:
    """Results that do not fit 32 unsigned bits raise RationalOverflowError."""
    with pytest.raises(RationalOverflowError):
        r("65536") * r("65536")
    with pytest.raises(RationalOverflowError):
        r("1/65536") * r("1/65536")
    with pytest.raises(RationalOverflowError):
        r(str(U32_MAX)) + 1


def test_pow() -> None:
    """Exponentiation goes through floating point."""
    assert r("2") ** 3 == 8
    assert r("4") ** r("0.5") == 2
    assert r("3") ** 20 == r("3486784401")
    assert r("2") ** -1 == r("1/2")
    assert abs((r("2") ** r("1/2")).as_float() - 2 ** 0.5) < 1e-8


def test_pow_errors() -> None:
    with pytest.raises(DivisionByZeroError):
        r("0") ** -1
    with pytest.raises(UndefinedResultError):
        r("-8") ** r("1/3")
    with pytest.raises(RationalOverflowError):
        r("2") ** 40


def test_result_format_follows_non_integral_operand() -> None:
    """A whole-number left operand takes the right operand's display format."""
    assert (r("2") + r("1/3")).as_str() == "2 1/3"
    assert (r("1.5") + r("1/3")).as_str() == "1.8bar3"


def test_simplify_is_pure() -> None:
    number = r("4/8")
    simplified = number.simplify()
    assert (simplified.numerator, simplified.denominator) == (1, 2)
    assert (number.numerator, number.denominator) == (4, 8)
    assert r("0/7").simplify().denominator == 1


def test_neg_abs_reciprocal() -> None:
    assert -r("2/3") == r("-2/3")
    assert abs(r("-2/3")) == r("2/3")
    assert r("-2/3").reciprocal() == r("-3/2")
    assert (-r("0")).negative is False


def test_equality_uses_simplified_form() -> None:
    assert r("4/8") == r("1/2")
    assert hash(r("4/8")) == hash(r("1/2"))
    assert r("-0") == r("0")
    assert r("1/2") != r("-1/2")
    assert r("6/3") == 2


def test_ordering() -> None:
    assert r("-1/2") < r("1/3")
    assert r("1/3") < r("1/2")
    assert r("-1/2") < r("-1/3")
    assert r("2/4") <= r("1/2")
    assert r("1") > r("-5")
    assert sorted([r("1/2"), r("-3"), r("0"), r("1/3")]) == [r("-3"), r("0"), r("1/3"), r("1/2")]


@pytest.mark.parametrize("text", ["1/3", "7/5", "10/20", "-3/4"])
def test_fraction_round_trip(text: str) -> None:
    assert r(text).as_str(FRACTION) == text


@pytest.mark.parametrize("text", ["2 1/5", "-2 1/5", "8939 5776/9593", "1 1/2"])
def test_mixed_round_trip(text: str) -> None:
    assert r(text).as_str(MIXED) == text


def test_as_str_default_format() -> None:
    assert r("1/3").as_str() == "1/3"
    assert r("7/5").as_str() == "7/5"
    assert r("10/20").as_str() == "10/20"
    assert r("5 4/10").as_str(DECIMAL) == "5.4"


@pytest.mark.parametrize("text,expected", [
    ("0", "0"),
    ("7/3", "2 1/3"),
    ("-7/3", "-2 1/3"),
    ("6/3", "2"),
    ("-2/3", "-2/3"),
])
def test_mixed_rendering(text: str, expected: str) -> None:
    assert r(text).as_str(MIXED) == expected


@pytest.mark.parametrize("text,expected", [
    ("1/2", False),
    ("1/8", False),
    ("0", False),
    ("4/2", False),
    ("4/3", True),
    ("1/7", True),
    ("14/7", False),
    ("1/11", True),
    ("3/6", False),
    ("3/12", False),
    ("1/4294967291", True),
])
def test_repeating(text: str, expected: bool) -> None:
    assert r(text).repeating() is expected


@pytest.mark.parametrize("text,expected", [
    ("1/100", ("0.01", None)),
    ("19/270", ("0.0703", 3)),
    ("0", ("0", None)),
    ("4/2", ("2", None)),
    ("4/3", ("1.3", 1)),
    ("10/3", ("3.3", 1)),
    ("1/7", ("0.142857", 6)),
    ("14/7", ("2", None)),
    ("1/11", ("0.09", 2)),
    ("-1/4", ("-0.25", None)),
])
def test_as_decimal_str(text: str, expected: tuple) -> None:
    """Long division reports the digits and the length of the repeating block."""
    assert r(text).as_decimal_str() == expected


@pytest.mark.parametrize("text,expected", [
    ("1/7", "0.bar142857"),
    ("7/11", "0.bar63"),
    ("19/270", "0.0bar703"),
    ("4/3", "1.bar3"),
    ("-1/3", "-0.bar3"),
    ("1/100", "0.01"),
    ("-22/2", "-11"),
])
def test_decimal_rendering(text: str, expected: str) -> None:
    assert r(text).as_str(DECIMAL) == expected


@pytest.mark.parametrize("text,place,expected", [
    ("1/3", RoundingPlace.HUNDREDTHS, "0.33"),
    ("2/3", RoundingPlace.HUNDREDTHS, "0.67"),
    ("-2/3", RoundingPlace.HUNDREDTHS, "-0.67"),
    ("1/2", RoundingPlace.HUNDREDTHS, "0.50"),
    ("5", RoundingPlace.TENTHS, "5.0"),
    ("1/8", RoundingPlace.HUNDREDTHS, "0.13"),
    ("-1/8", RoundingPlace.HUNDREDTHS, "-0.13"),
    ("5/9", RoundingPlace.TENTHS, "0.6"),
    ("1/7", RoundingPlace.MILLIONTHS, "0.142857"),
    ("19/270", RoundingPlace.TEN_THOUSANDTHS, "0.0704"),
    ("-1/1000", RoundingPlace.TENTHS, "0.0"),
])
def test_rounded_decimal_rendering(text: str, place: RoundingPlace, expected: str) -> None:
    """Rounding looks one digit past the rounding place and rounds half away from zero."""
    assert r(text).as_str(DisplayFormat.decimal(place)) == expected


def test_str_uses_own_format() -> None:
    assert str(r("2 1/3")) == "2 1/3"
    assert str(r("0.25")) == "0.25"


@pytest.mark.parametrize("place,expected", [
    (RoundingPlace.HUNDREDTHS, "0.00"),
    (RoundingPlace.MILLIONTHS, "0.000000"),
])
def test_rounded_rendering_ignores_cycle_length(place: RoundingPlace, expected: str) -> None:
    """A repeating block billions of digits long still rounds instantly."""
    number = RationalNumber.from_int(1).div(4294967291)
    assert number.as_str(DisplayFormat.decimal(place)) == expected
    assert number.neg().as_str(DisplayFormat.decimal(place)) == expected


def test_unrounded_rendering_digit_limit() -> None:
    """An unrounded decimal whose repeating block is too long raises instead of exhausting memory."""
    number = RationalNumber.from_int(1).div(4294967291)
    with pytest.raises(DecimalExpansionError):
        number.as_str(DECIMAL)
    assert issubclass(DecimalExpansionError, CalculatorError)
    # Other notations never need long division
    assert number.as_str(FRACTION) == "1/4294967291"


def test_as_decimal_str_max_digits() -> None:
    assert r("1/7").as_decimal_str(max_digits=6) == ("0.142857", 6)
    with pytest.raises(DecimalExpansionError):
        r("1/7").as_decimal_str(max_digits=5)
    with pytest.raises(DecimalExpansionError):
        r("1/7").as_str(DECIMAL, max_digits=5)
    # Terminating expansions shorter than the limit are unaffected
    assert r("1/8").as_str(DECIMAL, max_digits=3) == "0.125"
