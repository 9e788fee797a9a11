"""Limits applied while parsing and rendering expressions."""
from pydantic import BaseModel, ConfigDict, Field

from rational_calculator.core.rational_number import MAX_DECIMAL_DIGITS

# Each nesting level costs a few interpreter frames while parsing
MAX_NESTING_DEPTH: int = 200


class CalculatorSettings(BaseModel):
    """
    Limits guarding against pathological input.

    Parsing recurses once per bracketed group, so the nesting depth is capped explicitly
    and kept well under the interpreter's recursion limit.
    """

    model_config = ConfigDict(frozen=True)

    max_input_length: int = Field(default=10_000, ge=1, description="Maximum number of characters in an expression")
    max_nesting_depth: int = Field(
        default=64, ge=1, le=MAX_NESTING_DEPTH, description="Maximum depth of nested bracketed groups"
    )
    max_decimal_digits: int = Field(
        default=MAX_DECIMAL_DIGITS, ge=1, description="Most fractional digits rendered for an unrounded decimal"
    )
