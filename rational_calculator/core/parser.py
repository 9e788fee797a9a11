"""Parse arithmetic expression text into Expression trees."""
import re
from typing import Dict, List, Optional, Pattern, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from rational_calculator.common.errors import CalculatorError, DivisionByZeroError, ParseError, RationalOverflowError
from rational_calculator.common.logger import logger
from rational_calculator.common.settings import CalculatorSettings
from rational_calculator.core.expression import Expression, ExpressionValue, Operation
from rational_calculator.core.rational_number import RationalNumber


# Each operator symbol, tolerant of surrounding whitespace. "-:" is an alternative spelling of division.
OPERATOR_PATTERNS: List[Tuple[Pattern[str], Operation]] = [
    (re.compile(r"\s*\^\s*"), Operation.EXPONENT),
    (re.compile(r"\s*(?:/|-:)\s*"), Operation.DIVISION),
    (re.compile(r"\s*\*\s*"), Operation.MULTIPLICATION),
    (re.compile(r"\s*\+\s*"), Operation.ADDITION),
    (re.compile(r"\s*-\s*"), Operation.SUBTRACTION),
]
OPERATOR_CHARACTERS: str = "^/-:*+"

# Characters that may appear in a number after its optional leading sign
NUMBER_BODY_RE = re.compile(r"[0-9./\s]*")
LEADING_SIGN_RE = re.compile(r"\s*[+-]?")

# Opening delimiter -> matching closing delimiter
BRACKETS: Dict[str, str] = {"(": ")", "[": "]"}
CLOSING_BRACKETS: str = "".join(BRACKETS.values())


class ExpressionParser(BaseModel):
    """
    Recursive-descent parser building an Expression from text.

    Grammar:
        expression := value ((operator value) | group)*
        value      := number | group
        group      := "(" expression ")" | "[" expression "]"
        operator   := "^" | "/" | "-:" | "*" | "+" | "-"

    A group directly following a value without an operator is an implicit multiplication:
    ``3(3 + 1)`` is read as ``3 * (3 + 1)``.

    Numbers and operators are recognised by their longest valid prefix: every prefix length is
    tried and the last one that matches wins. This is what makes ``8/4`` a single fraction and
    ``5 -: 2`` a division rather than a subtraction followed by garbage.
    Scanning stops at the first character that can never belong to the token, which does not
    change which prefix is the longest valid one.
    """

    model_config = ConfigDict(frozen=True)

    settings: CalculatorSettings = Field(default_factory=CalculatorSettings, description="Parser limits")

    @staticmethod
    def _number_scan_end(text: str, start: int) -> int:
        """Index past the longest run of characters a number starting at ``start`` could use."""
        sign = LEADING_SIGN_RE.match(text, start)
        return NUMBER_BODY_RE.match(text, sign.end()).end()

    @staticmethod
    def _operator_scan_end(text: str, start: int) -> int:
        """Index past the longest run of whitespace and operator characters starting at ``start``."""
        end = start
        while end < len(text) and (text[end].isspace() or text[end] in OPERATOR_CHARACTERS):
            end += 1
        return end

    @staticmethod
    def match_number(text: str, start: int = 0) -> Optional[Tuple[RationalNumber, int]]:
        """
        Match the longest prefix of ``text[start:]`` that is a valid number.

        :param str text: Expression text
        :param int start: Index where the number would begin

        :return: Parsed number and the index just past it, or None if no prefix is a number
        :rtype: Optional[Tuple[RationalNumber, int]]
        :raises DivisionByZeroError: If the longest numeric prefix has a zero denominator
        :raises RationalOverflowError: If the longest numeric prefix does not fit in 32 bits
        """
        best: Optional[Tuple[Union[RationalNumber, CalculatorError], int]] = None
        for end in range(start + 1, ExpressionParser._number_scan_end(text, start) + 1):
            try:
                best = (RationalNumber.parse(text[start:end]), end)
            except ParseError:
                continue
            except (DivisionByZeroError, RationalOverflowError) as exc:
                # Grammatically a number, so it still counts as the longest match so far
                best = (exc, end)

        if best is None:
            return None
        number, end = best
        if isinstance(number, CalculatorError):
            raise number
        return number, end

    @staticmethod
    def match_operator(text: str, start: int = 0) -> Optional[Tuple[Operation, int]]:
        """
        Match the longest prefix of ``text[start:]`` that is an operator symbol.

        :param str text: Expression text
        :param int start: Index where the operator would begin

        :return: Operator and the index just past it, or None if no prefix is an operator
        :rtype: Optional[Tuple[Operation, int]]
        """
        best: Optional[Tuple[Operation, int]] = None
        for end in range(start + 1, ExpressionParser._operator_scan_end(text, start) + 1):
            candidate = text[start:end]
            for pattern, operation in OPERATOR_PATTERNS:
                if pattern.fullmatch(candidate):
                    best = (operation, end)
                    break
        return best

    def match_group(self, text: str, start: int = 0, depth: int = 0) -> Optional[Tuple[Expression, int]]:
        """
        Match a bracketed group starting at ``start`` (leading whitespace allowed).

        ``(...)`` and ``[...]`` are interchangeable and may be nested inside each other, but each
        closing delimiter must match the most recent opening one.

        :param str text: Expression text
        :param int start: Index where the group would begin
        :param int depth: Nesting depth of the group being matched

        :return: Expression parsed from inside the brackets and the index just past the closing
            delimiter, or None if no group starts here
        :rtype: Optional[Tuple[Expression, int]]
        :raises ParseError: If the group is empty, unbalanced, or nested too deeply
        """
        index = start
        while index < len(text) and text[index].isspace():
            index += 1
        if index >= len(text) or text[index] not in BRACKETS:
            return None

        if depth >= self.settings.max_nesting_depth:
            raise ParseError(f"Brackets nested deeper than {self.settings.max_nesting_depth} levels")

        opening = index
        # Closing delimiters still expected, innermost last
        expected: List[str] = []
        for index in range(opening, len(text)):
            char = text[index]
            if char in BRACKETS:
                expected.append(BRACKETS[char])
            elif char in CLOSING_BRACKETS:
                if char != expected[-1]:
                    raise ParseError(f"Mismatched {char!r} at position {index}, expected {expected[-1]!r}")
                expected.pop()
                if not expected:
                    inner = text[opening + 1 : index]
                    if not inner.strip():
                        raise ParseError(f"Empty group at position {opening}")
                    return self._parse_expression(inner, depth + 1), index + 1

        raise ParseError(f"Unmatched {text[opening]!r} at position {opening}")

    def _match_value(self, text: str, start: int, depth: int) -> Optional[Tuple[ExpressionValue, int]]:
        number = self.match_number(text, start)
        if number is not None:
            return number
        return self.match_group(text, start, depth)

    def _parse_expression(self, text: str, depth: int) -> Expression:
        value = self._match_value(text, 0, depth)
        if value is None:
            raise ParseError(f"Expected a number or a group at the start of {text!r}")
        operand, index = value
        expression = Expression.new(operand)

        while text[index:].strip():
            operator = self.match_operator(text, index)
            if operator is not None:
                operation, index = operator
                value = self._match_value(text, index, depth)
                if value is None:
                    raise ParseError(f"Expected a number or a group after {operation.symbol!r} at position {index}")
                operand, index = value
                expression = expression.push(operation, operand)
                continue

            group = self.match_group(text, index, depth)
            if group is not None:
                # Juxtaposed group: implicit multiplication
                operand, index = group
                expression = expression.push(Operation.MULTIPLICATION, operand)
                continue

            raise ParseError(f"Unexpected {text[index:].strip()!r} at position {index}")

        return expression

    def parse(self, text: str) -> Expression:
        """
        Parse an arithmetic expression.

        :param str text: Expression text, e.g. ``"3(3 + 1) - (2 + 1)^3"``

        :return: Parsed expression
        :rtype: Expression
        :raises ParseError: If the text is empty, too long, or malformed
        """
        if len(text) > self.settings.max_input_length:
            raise ParseError(f"Expression longer than {self.settings.max_input_length} characters")
        if not text.strip():
            raise ParseError("Empty expression")

        expression = self._parse_expression(text, 0)
        logger.debug(f"🔎 Parsed {text!r} as {expression}")
        return expression


DEFAULT_PARSER = ExpressionParser()


def parse(text: str) -> Expression:
    """Parse ``text`` with the default parser limits."""
    return DEFAULT_PARSER.parse(text)


def evaluate(text: str) -> RationalNumber:
    """Parse and evaluate ``text`` with the default parser limits."""
    return parse(text).evaluate()
