"""Evaluate calculator expressions to exact decimal results."""
from decimal import Decimal
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from expression_evaluator.common.errors import EvaluationError, ExpressionSyntaxError
from expression_evaluator.common.logger import logger
from expression_evaluator.common.models import ErrorKind, EvaluationResult
from expression_evaluator.core import operators as ops
from expression_evaluator.core.converter import PostfixConverter
from expression_evaluator.core.decimal_math import DecimalMath
from expression_evaluator.core.preprocessor import SequencePreprocessor
from expression_evaluator.core.tokenizer import Tokenizer


class ExpressionEvaluator(BaseModel):
    """
    Evaluate calculator expressions with fixed-precision decimal arithmetic.

    Pipeline:
        1. Normalize the token sequence (SequencePreprocessor)
        2. Convert it to Reverse Polish Notation (PostfixConverter)
        3. Run the RPN on a value stack (evaluate_postfix)

    An instance holds no per-call state and may be shared between threads.
    Every failure is returned as a failed EvaluationResult, never raised.
    """

    # Make the Pydantic instance immutable (read-only), settings are fixed for its lifetime
    model_config = ConfigDict(frozen=True)

    precision: int = Field(default=34, ge=1, description="Significant decimal digits of every result")
    factorial_limit: int = Field(default=4000, ge=0, description="Largest operand accepted by '!'")
    auto_correct: bool = Field(default=True, description="Balance unmatched parentheses instead of rejecting them")

    _math: DecimalMath = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._math = DecimalMath(precision=self.precision, factorial_limit=self.factorial_limit)

    @property
    def math(self) -> DecimalMath:
        return self._math

    def evaluate(self, sequence: Sequence[str]) -> EvaluationResult:
        """
        Evaluate an expression given as segmented tokens.

        :param Sequence[str] sequence: Tokens such as ["2", "+", "3", "×", "4"]

        :return: Value and normalized sequence on success, error kind and the input on failure
        :rtype: EvaluationResult
        """
        tokens: List[str] = list(sequence)
        if not tokens:
            return EvaluationResult.ok(Decimal(0), [])

        try:
            normalized = SequencePreprocessor.normalize(tokens, balance=self.auto_correct)
            logger.debug(f"🧹 Normalized {tokens} -> {normalized}")
            rpn = PostfixConverter.to_postfix(normalized, strict=not self.auto_correct)
            logger.debug(f"🔁 RPN: {rpn}")
            value = self.evaluate_postfix(rpn)
        except ArithmeticError as exc:
            logger.info(f"🧮❌ Arithmetic error in {tokens}: {exc}")
            return EvaluationResult.failure(ErrorKind.ARITHMETIC, str(exc), tokens)
        except EvaluationError as exc:
            logger.info(f"🧮❌ Syntax error in {tokens}: {exc}")
            return EvaluationResult.failure(ErrorKind.SYNTAX, str(exc), tokens)
        except Exception as exc:
            logger.error(f"🧮❌ Evaluation failed on {tokens}: {exc!r}")
            return EvaluationResult.failure(ErrorKind.SYNTAX, str(exc) or type(exc).__name__, tokens)

        logger.debug(f"🧮✅ {tokens} = {value}")
        return EvaluationResult.ok(value, normalized)

    def evaluate_expression(self, text: str) -> EvaluationResult:
        """
        Evaluate an expression typed as a single string, e.g. "2sin(30°)+1".

        :param str text: Raw expression

        :return: Same result as evaluate() on the segmented text; a syntax failure with an
            empty sequence when the text cannot be segmented
        :rtype: EvaluationResult
        """
        try:
            tokens = Tokenizer.segment(text)
        except ExpressionSyntaxError as exc:
            logger.info(f"🧮❌ Could not tokenize {text!r}: {exc}")
            return EvaluationResult.failure(ErrorKind.SYNTAX, str(exc), [])
        except Exception as exc:
            logger.error(f"🧮❌ Tokenizing {text!r} failed: {exc!r}")
            return EvaluationResult.failure(ErrorKind.SYNTAX, str(exc) or type(exc).__name__, [])
        return self.evaluate(tokens)

    def evaluate_postfix(self, rpn: Sequence[str]) -> Decimal:
        """
        Run an RPN token list on a value stack.

        :param Sequence[str] rpn: Tokens in RPN order

        :return: Result with trailing zeros stripped
        :rtype: Decimal
        :raises ExpressionSyntaxError: If an operator lacks operands, a token is unknown
            or the stack does not end with exactly one value
        :raises ArithmeticError: If an operation is undefined for its operands
        """
        stack: List[Decimal] = []
        for token in rpn:
            if ops.is_number(token):
                stack.append(self._math.context.create_decimal(token))
            elif ops.is_constant(token):
                stack.append(self._math.constant(token))
            elif ops.is_operator(token):
                arity = ops.OPERATORS[token].arity
                if len(stack) < arity:
                    raise ExpressionSyntaxError(f"Operator '{token}' needs {arity} operand(s)")
                # First popped is the rightmost operand
                operands = stack[-arity:]
                del stack[-arity:]
                stack.append(self._math.apply(token, operands))
            else:
                raise ExpressionSyntaxError(f"Unknown token in expression: {token}")

        if len(stack) != 1:
            raise ExpressionSyntaxError("The expression is invalid or incomplete")
        return self._strip_trailing_zeros(stack[0])

    def _strip_trailing_zeros(self, value: Decimal) -> Decimal:
        # normalize() would keep the sign of -0
        if value == 0:
            return Decimal(0)
        return value.normalize(self._math.context)
