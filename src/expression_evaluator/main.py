"""
Command line runner for the expression evaluator.

This script:
- Evaluates expressions given as arguments, or one per line from a file
- Writes "<expression> = <value>" or "<expression> -> ERROR (<kind>)" per line

Examples
--------
expression-evaluator "2 + 3 × 4" "sin(30°)" "2π"
expression-evaluator --file operations.txt --output results.txt
"""
import argparse
from pathlib import Path
import sys
from typing import List, Optional, TextIO

from pydantic import BaseModel, Field, FilePath, ValidationError, field_validator, model_validator

from expression_evaluator.common.logger import logger, set_log_level
from expression_evaluator.common.models import EvaluationResult
from expression_evaluator.core.converter import PostfixConverter
from expression_evaluator.core.evaluator import ExpressionEvaluator
from expression_evaluator.core.tokenizer import Tokenizer

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    expressions : List[str]
        Expressions given directly on the command line.
    file_path : Optional[FilePath]
        Text file holding one expression per line.
    output : Optional[Path]
        Where results are written; stdout when omitted.
    """

    expressions: List[str] = Field(default_factory=list)
    file_path: Optional[FilePath] = None
    output: Optional[Path] = None
    precision: int = Field(default=34, ge=1)
    strict: bool = False
    explain: bool = False
    log_level: str = "WARNING"

    @field_validator("log_level")
    def log_level_must_be_known(cls, v: str) -> str:
        """Accept standard logging level names in any case."""
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()

    @model_validator(mode="after")
    def require_input(self) -> "CliArgs":
        """Ensure there is at least one source of expressions."""
        if not self.expressions and self.file_path is None:
            raise ValueError("Give at least one expression or --file")
        return self


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param Optional[List[str]] argv: Arguments, sys.argv[1:] when None

    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(description="Evaluate calculator expressions with decimal precision")
    parser.add_argument("expressions", nargs="*", help="Expressions to evaluate")
    parser.add_argument("--file", dest="file_path", help="Text file with one expression per line")
    parser.add_argument("--output", help="Write results to this file instead of stdout")
    parser.add_argument("--precision", type=int, default=34, help="Significant digits (default: 34)")
    parser.add_argument("--strict", action="store_true", help="Reject unbalanced parentheses")
    parser.add_argument("--explain", action="store_true", help="Also print tokens and RPN")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    args = parser.parse_args(argv)

    try:
        return CliArgs(**vars(args))
    except ValidationError as exc:
        parser.error(str(exc))


def read_expressions(path: Path) -> List[str]:
    """
    Read the non-empty lines of a text file, one expression per line.

    :param Path path: Path to the input file

    :return: Stripped, non-empty lines
    :rtype: List[str]
    """
    content = path.read_text(encoding="utf-8")
    return [line.strip() for line in content.splitlines() if line.strip()]


def format_result(expression: str, result: EvaluationResult) -> str:
    """
    Render one result line.

    :param str expression: Expression as given by the user
    :param EvaluationResult result: Its evaluation

    :return: "<expression> = <value>" or "<expression> -> ERROR (<kind>)"
    :rtype: str
    """
    if result.success:
        return f"{expression} = {result.display()}"
    return f"{expression} -> ERROR ({result.error_kind.value}: {result.error_message})"


def explain(expression: str) -> str:
    """Describe how an expression is tokenized and ordered, for --explain."""
    tokens = Tokenizer.tokenize(expression)
    rpn = PostfixConverter.to_postfix([token.symbol for token in tokens])
    typed = " ".join(f"{token.symbol}:{token.kind.value}" for token in tokens)
    return f"  tokens: {typed}\n  rpn: {' '.join(rpn)}"


def run(cli_args: CliArgs, out: TextIO) -> bool:
    """
    Evaluate every expression and write the results.

    :param CliArgs cli_args: Validated arguments
    :param TextIO out: Destination stream

    :return: True when every expression succeeded
    :rtype: bool
    """
    evaluator = ExpressionEvaluator(precision=cli_args.precision, auto_correct=not cli_args.strict)
    expressions = list(cli_args.expressions)
    if cli_args.file_path is not None:
        expressions.extend(read_expressions(cli_args.file_path))

    logger.info(f"🏁 Evaluating {len(expressions)} expression(s)")
    all_succeeded = True
    for expression in expressions:
        result = evaluator.evaluate_expression(expression)
        all_succeeded = all_succeeded and result.success
        out.write(format_result(expression, result) + "\n")
        if cli_args.explain and result.success:
            out.write(explain(expression) + "\n")
        # Flushing keeps partial results if the run is interrupted
        out.flush()

    logger.info(f"✅ Finished, {'all' if all_succeeded else 'not all'} expressions succeeded")
    return all_succeeded


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function executed by the console script.
    """
    cli_args = parse_args(argv)
    set_log_level(cli_args.log_level)

    if cli_args.output is None:
        succeeded = run(cli_args, sys.stdout)
    else:
        with cli_args.output.open("w", encoding="utf-8") as f_out:
            succeeded = run(cli_args, f_out)
    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
