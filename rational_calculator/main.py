"""
Command line entry point.

This script:
- Reads expressions from the command line and/or from a file (one expression per line)
- Evaluates each expression exactly over rational numbers
- Prints ``expression = result`` or ``expression -> ERROR: message`` per line

Examples
--------
rational-calc "3(3 + 1) - (2 + 1)^3"
rational-calc --format decimal:hundredths "1/3 + 1/3"
rational-calc --file operations.txt --format mixed
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError, field_validator

from rational_calculator.common.logger import configure_logging, logger
from rational_calculator.common.operations import EvaluationRequest, EvaluationResult
from rational_calculator.common.settings import MAX_NESTING_DEPTH, CalculatorSettings
from rational_calculator.core.display import DisplayFormat
from rational_calculator.core.parser import ExpressionParser
from rational_calculator.worker import ExpressionWorker


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    expressions : List[str]
        Expressions given directly on the command line.
    file_path : FilePath, optional
        Path to a file containing one expression per line.
    display_format : DisplayFormat, optional
        Rendering of every result.
    """

    expressions: List[str] = Field(default_factory=list)
    file_path: Optional[FilePath] = None
    display_format: Optional[DisplayFormat] = None
    simplify: bool = True
    show_steps: bool = False
    log_level: str = "WARNING"
    max_nesting_depth: int = Field(default=CalculatorSettings().max_nesting_depth, ge=1, le=MAX_NESTING_DEPTH)

    @field_validator("display_format", mode="before")
    def parse_display_format(cls, v):
        """Accept display formats by name, e.g. ``decimal:hundredths``."""
        if isinstance(v, str):
            return DisplayFormat.parse(v)
        return v

    @field_validator("log_level")
    def log_level_must_be_known(cls, v: str) -> str:
        """Ensure the logging level is one of the standard level names."""
        if not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError(f"Unknown logging level: {v}")
        return v.upper()


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments to parse, defaults to ``sys.argv[1:]``

    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(
        description="Evaluate arithmetic expressions exactly over rational numbers"
    )

    parser.add_argument("expressions", nargs="*", help="Expressions to evaluate")
    parser.add_argument("-f", "--file", dest="file_path", help="File containing one expression per line")
    parser.add_argument(
        "--format",
        dest="display_format",
        help="Result format: decimal, fraction, mixed or decimal:<place> (e.g. decimal:hundredths)",
    )
    parser.add_argument("--no-simplify", action="store_true", help="Keep results in unreduced form")
    parser.add_argument("--steps", action="store_true", help="Print every reduction step")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=CalculatorSettings().max_nesting_depth,
        help=f"Maximum nesting depth of bracketed groups (at most {MAX_NESTING_DEPTH})",
    )

    args = parser.parse_args(argv)

    if not args.expressions and args.file_path is None:
        parser.error("provide at least one expression or --file")

    try:
        return CliArgs(
            expressions=args.expressions,
            file_path=args.file_path,
            display_format=args.display_format,
            simplify=not args.no_simplify,
            show_steps=args.steps,
            log_level=args.log_level,
            max_nesting_depth=args.max_depth,
        )
    except ValidationError as exc:
        parser.error(str(exc))


def read_expressions(cli_args: CliArgs) -> List[str]:
    """
    Collect expressions from the command line followed by the non-empty lines of the input file.

    :param CliArgs cli_args: Validated CLI arguments

    :return: Expressions to evaluate
    :rtype: List[str]
    """
    expressions: List[str] = [expression.strip() for expression in cli_args.expressions if expression.strip()]
    if cli_args.file_path is not None:
        lines = cli_args.file_path.read_text(encoding="utf-8").splitlines()
        # Remove empty lines
        expressions.extend(line.strip() for line in lines if line.strip())
    return expressions


def evaluate_all(cli_args: CliArgs) -> List[EvaluationResult]:
    """
    Evaluate every expression requested on the command line.

    :param CliArgs cli_args: Validated CLI arguments

    :return: One result per expression, in input order
    :rtype: List[EvaluationResult]
    """
    parser = ExpressionParser(settings=CalculatorSettings(max_nesting_depth=cli_args.max_nesting_depth))
    results: List[EvaluationResult] = []

    for line_number, expression in enumerate(read_expressions(cli_args), start=1):
        request = EvaluationRequest(
            expression=expression,
            display_format=cli_args.display_format,
            simplify=cli_args.simplify,
            show_steps=cli_args.show_steps,
        )
        worker = ExpressionWorker(request=request, line_number=line_number, parser=parser)
        results.append(worker.run())

    return results


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function executed by the ``rational-calc`` console script.

    :return: Process exit code, 1 if any expression failed
    :rtype: int
    """
    cli_args = parse_args(argv)
    configure_logging(cli_args.log_level)

    results = evaluate_all(cli_args)
    for result in results:
        print(result)
        for step in result.steps:
            print(f"  = {step}")

    failures = sum(1 for result in results if not result.ok)
    if failures:
        logger.warning(f"⚠️ {failures} of {len(results)} expressions failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
