"""Arithmetic expressions over rational numbers, evaluated one reduction step at a time."""
from enum import Enum
from typing import Callable, Dict, Iterator, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rational_calculator.common.logger import logger
from rational_calculator.core.display import FRACTION
from rational_calculator.core.rational_number import RationalNumber


class Operation(Enum):
    """Binary operator with its textual symbol and its priority (higher binds tighter)."""

    EXPONENT = "^"
    DIVISION = "/"
    MULTIPLICATION = "*"
    ADDITION = "+"
    SUBTRACTION = "-"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def priority(self) -> int:
        return OPERATION_PRIORITIES[self]

    def apply(self, left: RationalNumber, right: RationalNumber) -> RationalNumber:
        """
        Compute ``left <operation> right``.

        :param RationalNumber left: Left operand
        :param RationalNumber right: Right operand

        :return: Result of the operation
        :rtype: RationalNumber
        """
        return OPERATION_FUNCTIONS[self](left, right)


# Ties between equal priorities are broken left to right by the evaluator
OPERATION_PRIORITIES: Dict[Operation, int] = {
    Operation.EXPONENT: 2,
    Operation.DIVISION: 1,
    Operation.MULTIPLICATION: 1,
    Operation.ADDITION: 0,
    Operation.SUBTRACTION: 0,
}

OPERATION_FUNCTIONS: Dict[Operation, Callable[[RationalNumber, RationalNumber], RationalNumber]] = {
    Operation.EXPONENT: RationalNumber.pow,
    Operation.DIVISION: RationalNumber.div,
    Operation.MULTIPLICATION: RationalNumber.mul,
    Operation.ADDITION: RationalNumber.add,
    Operation.SUBTRACTION: RationalNumber.sub,
}


# An operand is a number or a nested, bracketed expression
ExpressionValue = Union[RationalNumber, "Expression"]


class Expression(BaseModel):
    """
    Flat sequence of operands joined by operators; an operand may itself be a nested Expression.

    ``operations[i]`` sits between ``values[i]`` and ``values[i + 1]``.

    Expressions are immutable: ``push`` and every reduction step return a new Expression, so
    partial expressions can be shared while parsing.

    Evaluation is a rewrite loop rather than a recursive walk. Each call to ``evaluate_next``
    performs exactly one reduction step, which keeps the order of operations inspectable:

        3 * (3 + 1) - 2  ->  3 * 4 - 2  ->  12 - 2  ->  10
    """

    model_config = ConfigDict(frozen=True)

    values: Tuple[ExpressionValue, ...] = Field(..., min_length=1, description="Operands")
    operations: Tuple[Operation, ...] = Field(default=(), description="Operators between consecutive operands")

    @model_validator(mode="after")
    def one_operation_between_values(self) -> "Expression":
        """Ensure there is exactly one operator between each pair of consecutive operands."""
        if len(self.operations) != len(self.values) - 1:
            raise ValueError(
                f"Expected {len(self.values) - 1} operations for {len(self.values)} values, "
                f"got {len(self.operations)}"
            )
        return self

    @classmethod
    def new(cls, value: Union[ExpressionValue, int]) -> "Expression":
        """Single-operand expression."""
        return cls(values=(_as_value(value),))

    def push(self, operation: Operation, value: Union[ExpressionValue, int]) -> "Expression":
        """
        Return a new expression with ``operation value`` appended; this expression is left untouched.

        :param Operation operation: Operator placed after the current last operand
        :param value: Operand appended after the operator

        :return: Extended expression
        :rtype: Expression
        """
        # One value and one operation are appended, so the invariant still holds
        return Expression.model_construct(
            values=self.values + (_as_value(value),), operations=self.operations + (Operation(operation),)
        )

    def pow(self, value: Union[ExpressionValue, int]) -> "Expression":
        return self.push(Operation.EXPONENT, value)

    def divide(self, value: Union[ExpressionValue, int]) -> "Expression":
        return self.push(Operation.DIVISION, value)

    def multiply(self, value: Union[ExpressionValue, int]) -> "Expression":
        return self.push(Operation.MULTIPLICATION, value)

    def add(self, value: Union[ExpressionValue, int]) -> "Expression":
        return self.push(Operation.ADDITION, value)

    def subtract(self, value: Union[ExpressionValue, int]) -> "Expression":
        return self.push(Operation.SUBTRACTION, value)

    @property
    def is_reduced(self) -> bool:
        """True once the expression is a single bare number."""
        return len(self.values) == 1 and isinstance(self.values[0], RationalNumber)

    def _replace_value(self, index: int, value: ExpressionValue) -> "Expression":
        values = self.values[:index] + (value,) + self.values[index + 1 :]
        return Expression.model_construct(values=values, operations=self.operations)

    def evaluate_next(self) -> "Expression":
        """
        Perform a single reduction step.

        Steps:
            1. The leftmost nested expression is drained first: once reduced it is unwrapped to
               its number, otherwise one step is taken inside it.
            2. A single remaining number is the final result and is returned unchanged.
            3. Otherwise the operator with the highest priority (leftmost on ties) is applied to
               its two neighbouring numbers and the result takes their place.

        :return: Expression after one reduction step
        :rtype: Expression
        """
        for index, value in enumerate(self.values):
            if isinstance(value, Expression):
                if value.is_reduced:
                    return self._replace_value(index, value.values[0])
                return self._replace_value(index, value.evaluate_next())

        if len(self.values) == 1:
            return self

        # max() keeps the first of equal keys, i.e. the leftmost operator of the top tier
        index = max(range(len(self.operations)), key=lambda i: self.operations[i].priority)
        operation = self.operations[index]
        left, right = self.values[index], self.values[index + 1]
        result = operation.apply(left, right)
        logger.debug(
            f"🧮 {left.as_str(FRACTION)} {operation.symbol} {right.as_str(FRACTION)} = {result.as_str(FRACTION)}"
        )

        return Expression.model_construct(
            values=self.values[:index] + (result,) + self.values[index + 2 :],
            operations=self.operations[:index] + self.operations[index + 1 :],
        )

    def steps(self) -> Iterator["Expression"]:
        """
        Yield the expression after every reduction step, ending with the single-number result.

        :return: Iterator over intermediate expressions
        :rtype: Iterator[Expression]
        """
        expression = self
        while not expression.is_reduced:
            expression = expression.evaluate_next()
            yield expression

    def evaluate(self) -> RationalNumber:
        """
        Reduce the expression to a single number.

        :return: Value of the expression
        :rtype: RationalNumber
        """
        expression = self
        for expression in self.steps():
            pass
        return expression.values[0]

    def __str__(self) -> str:
        parts = []
        for index, value in enumerate(self.values):
            if index > 0:
                parts.append(self.operations[index - 1].symbol)
            parts.append(f"({value})" if isinstance(value, Expression) else str(value))
        return " ".join(parts)


Expression.model_rebuild()


def _as_value(value: Union[ExpressionValue, int]) -> ExpressionValue:
    if isinstance(value, (RationalNumber, Expression)):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return RationalNumber.from_int(value)
    raise TypeError(f"Unsupported expression value: {value!r}")
