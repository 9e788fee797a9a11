"""Evaluation of a single expression request."""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from rational_calculator.common.errors import CalculatorError
from rational_calculator.common.logger import logger
from rational_calculator.common.operations import EvaluationRequest, EvaluationResult
from rational_calculator.core.parser import DEFAULT_PARSER, ExpressionParser


class ExpressionWorker(BaseModel):
    """
    Worker responsible for evaluating a single expression request.

    Lifecycle:
        - Receives one request only
        - Parses and reduces the expression step by step
        - Returns the rendered result, or the error message if evaluation failed
    """

    # Make the Pydantic instance immutable (read-only) for safety
    model_config = ConfigDict(frozen=True)

    request: EvaluationRequest = Field(..., description="Expression to evaluate")
    line_number: int = Field(default=1, ge=1, description="Line number of the expression in the input")
    parser: ExpressionParser = Field(default=DEFAULT_PARSER, description="Parser used to read the expression")

    def run(self) -> EvaluationResult:
        """
        Evaluate the requested expression.

        Calculator errors and recursion running out on deeply nested input are reported in the
        result instead of being raised, so one bad line does not stop a batch.

        :return: Rendered value or error message
        :rtype: EvaluationResult
        """
        expression_text = self.request.expression
        logger.info(f"👷🏁 Worker started on line {self.line_number}: {expression_text}")

        steps: List[str] = []
        try:
            reduced = expression = self.parser.parse(expression_text)
            for reduced in expression.steps():
                if self.request.show_steps:
                    steps.append(str(reduced))
            # The last step is always a single bare number
            value = reduced.values[0]
            if self.request.simplify:
                value = value.simplify()
            rendered = value.as_str(self.request.display_format, max_digits=self.parser.settings.max_decimal_digits)

        except (CalculatorError, RecursionError) as exc:
            logger.error(
                f"👷❌ Worker failed on line {self.line_number}: {exc}\n"
                f"Invalid arithmetic expression, could not evaluate: {expression_text!r}"
            )
            return EvaluationResult(expression=expression_text, error=str(exc), steps=steps)

        logger.info(f"👷✅ Worker finished on line {self.line_number}: {rendered}")
        return EvaluationResult(expression=expression_text, result=rendered, steps=steps)
