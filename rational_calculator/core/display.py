"""Display formats used when rendering rational numbers as text."""
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FormatKind(str, Enum):
    """Notation used to render a rational number."""

    DECIMAL = "decimal"
    FRACTION = "fraction"
    MIXED = "mixed"


class RoundingPlace(IntEnum):
    """Decimal place a rendered value is rounded to; the value is the number of fractional digits."""

    TENTHS = 1
    HUNDREDTHS = 2
    THOUSANDTHS = 3
    TEN_THOUSANDTHS = 4
    HUNDRED_THOUSANDTHS = 5
    MILLIONTHS = 6


class DisplayFormat(BaseModel):
    """
    How a rational number is rendered.

    Examples:
        - ``DisplayFormat.decimal()`` renders 1/7 as ``0.bar142857``
        - ``DisplayFormat.decimal(RoundingPlace.HUNDREDTHS)`` renders 1/3 as ``0.33``
        - ``DisplayFormat.fraction()`` renders 7/3 as ``7/3``
        - ``DisplayFormat.mixed()`` renders 7/3 as ``2 1/3``
    """

    model_config = ConfigDict(frozen=True)

    kind: FormatKind = Field(..., description="Notation used for rendering")
    rounding: Optional[RoundingPlace] = Field(default=None, description="Rounding place, decimal notation only")

    @model_validator(mode="after")
    def rounding_only_for_decimal(self) -> "DisplayFormat":
        """Ensure a rounding place is only combined with decimal notation."""
        if self.rounding is not None and self.kind is not FormatKind.DECIMAL:
            raise ValueError(f"Rounding is only supported for decimal notation, not {self.kind.value}")
        return self

    @classmethod
    def decimal(cls, rounding: Optional[RoundingPlace] = None) -> "DisplayFormat":
        return cls(kind=FormatKind.DECIMAL, rounding=rounding)

    @classmethod
    def fraction(cls) -> "DisplayFormat":
        return cls(kind=FormatKind.FRACTION)

    @classmethod
    def mixed(cls) -> "DisplayFormat":
        return cls(kind=FormatKind.MIXED)

    @classmethod
    def parse(cls, text: str) -> "DisplayFormat":
        """
        Build a display format from its textual name.

        Accepted forms: ``decimal``, ``fraction``, ``mixed``, and ``decimal:<place>`` where the place
        is a rounding place name (``hundredths``) or a digit count from 1 to 6.

        :param str text: Format name

        :return: Matching display format
        :rtype: DisplayFormat
        :raises ValueError: If the name or the rounding place is unknown
        """
        name, _, place = text.strip().lower().partition(":")
        try:
            kind = FormatKind(name)
        except ValueError:
            raise ValueError(f"Unknown display format: {text!r}") from None

        if not place:
            return cls(kind=kind)

        place = place.strip().replace("-", "_")
        if place.isdigit():
            try:
                rounding = RoundingPlace(int(place))
            except ValueError:
                raise ValueError(f"Rounding place must be between 1 and 6, got {place}") from None
        else:
            try:
                rounding = RoundingPlace[place.upper()]
            except KeyError:
                raise ValueError(f"Unknown rounding place: {place!r}") from None
        return cls(kind=kind, rounding=rounding)

    def __str__(self) -> str:
        if self.rounding is None:
            return self.kind.value
        return f"{self.kind.value}:{self.rounding.name.lower()}"


DECIMAL = DisplayFormat.decimal()
FRACTION = DisplayFormat.fraction()
MIXED = DisplayFormat.mixed()
