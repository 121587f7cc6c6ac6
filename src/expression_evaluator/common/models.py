"""Pydantic models shared by the tokenizer, the converter and the evaluator."""
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Fixity(str, Enum):
    """Where an operator stands relative to its operand(s)."""

    BINARY = "binary"
    PREFIX = "prefix"
    POSTFIX = "postfix"


class TokenKind(str, Enum):
    """Semantic category of a token."""

    NUMBER = "number"
    OPERATOR = "operator"
    FUNCTION = "function"
    LEFT_PAREN = "left_paren"
    RIGHT_PAREN = "right_paren"
    ABS_BAR_OPEN = "abs_bar_open"
    ABS_BAR_CLOSE = "abs_bar_close"
    CONSTANT = "constant"


class ErrorKind(str, Enum):
    """Coarse failure category reported to callers."""

    SYNTAX = "syntax"
    ARITHMETIC = "arithmetic"


class OperatorInfo(BaseModel):
    """Precedence, associativity and arity of one operator symbol."""

    model_config = ConfigDict(frozen=True)

    precedence: int = Field(..., ge=0, description="Binding strength, higher binds tighter")
    right_associative: bool = Field(default=False, description="Associativity used on precedence ties")
    arity: Literal[1, 2] = Field(..., description="Number of operands consumed")
    fixity: Fixity = Field(..., description="Position of the operator relative to its operands")


class Token(BaseModel):
    """A classified token as produced by the typed tokenizer."""

    model_config = ConfigDict(frozen=True)

    kind: TokenKind = Field(..., description="Semantic category of the token")
    symbol: str = Field(..., min_length=1, description="Canonical symbol of the token")


class EvaluationResult(BaseModel):
    """
    Outcome of one evaluation.

    On success ``value`` holds the result and ``normalized_sequence`` the
    sequence that was actually evaluated (auto-inserted parentheses, unary
    minus and implicit multiplication markers included). On failure
    ``normalized_sequence`` is the caller's input, unchanged.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = Field(..., description="Whether the expression could be evaluated")
    value: Optional[Decimal] = Field(default=None, description="Result of the evaluation")
    normalized_sequence: List[str] = Field(default_factory=list, description="Evaluated token sequence")
    error_kind: Optional[ErrorKind] = Field(default=None, description="Failure category")
    error_message: Optional[str] = Field(default=None, description="Human readable failure reason")

    @model_validator(mode="after")
    def check_payload(self) -> "EvaluationResult":
        """Ensure a success carries a value and a failure carries an error kind."""
        if self.success and self.value is None:
            raise ValueError("A successful result needs a value")
        if not self.success and self.error_kind is None:
            raise ValueError("A failed result needs an error kind")
        return self

    @classmethod
    def ok(cls, value: Decimal, normalized_sequence: List[str]) -> "EvaluationResult":
        return cls(success=True, value=value, normalized_sequence=normalized_sequence)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, sequence: List[str]) -> "EvaluationResult":
        return cls(success=False, error_kind=kind, error_message=message, normalized_sequence=sequence)

    def display(self) -> str:
        """
        Render the value in plain notation, e.g. ``120`` instead of ``1.2E+2``.

        :return: Plain string of the value, or an empty string on failure
        :rtype: str
        """
        if self.value is None:
            return ""
        return format(self.value, "f")
