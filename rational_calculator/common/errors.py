"""Errors raised while parsing and evaluating rational expressions."""


class CalculatorError(Exception):
    """Base class for every error raised by the calculator."""


class ParseError(CalculatorError, ValueError):
    """Malformed number, operator or expression text (including bad brackets)."""


class NotIntegerError(CalculatorError, ValueError):
    """An integer view was requested from a non-integral rational number."""


class DivisionByZeroError(CalculatorError, ZeroDivisionError):
    """An operation would produce a zero denominator."""


class RationalOverflowError(CalculatorError, OverflowError):
    """A numerator or denominator does not fit in 32 unsigned bits."""


class UndefinedResultError(CalculatorError, ArithmeticError):
    """Exponentiation produced a complex, infinite or NaN value."""


class DecimalExpansionError(CalculatorError, OverflowError):
    """A decimal expansion is too long to render without a rounding place."""
