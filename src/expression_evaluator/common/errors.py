"""Exceptions raised inside the evaluation pipeline."""


class EvaluationError(Exception):
    """Base class for every failure the evaluator reports."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ExpressionSyntaxError(EvaluationError):
    """Mismatched grouping, missing operands, unknown tokens or malformed literals."""


class ExpressionArithmeticError(EvaluationError, ArithmeticError):
    """Division by zero, factorial domain errors, non-real or non-finite results."""
