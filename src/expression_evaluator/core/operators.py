"""Operator vocabulary, precedence table and token classification."""
import re
from typing import Dict, FrozenSet, Optional

from expression_evaluator.common.models import Fixity, OperatorInfo, TokenKind

# Binary operators
PLUS = "+"
MINUS = "-"
MULTIPLY = "×"
DIVIDE = "÷"
POWER = "^"
# Emitted by the preprocessor between juxtaposed factors, e.g. "2π"
IMPLICIT_MULTIPLY = "i×"

# Unary prefix operators
NEGATE = "_"
SQUARE_ROOT = "√"
CUBE_ROOT = "∛"
LOG10 = "lg"
LN = "ln"
SIN = "sin"
COS = "cos"
TAN = "tan"
ASIN = "asin"
ACOS = "acos"
ATAN = "atan"
SINH = "sinh"
COSH = "cosh"
TANH = "tanh"
ASINH = "asinh"
ACOSH = "acosh"
ATANH = "atanh"

# Unary postfix operators
FACTORIAL = "!"
DEGREES = "°"
RAD_TO_DEG = "rad>°"
RAD_TO_DEG_ARROW = "rad→°"
# Emitted by the converter when an absolute value bar pair closes
ABS = "abs"

# Grouping
LEFT_PAREN = "("
RIGHT_PAREN = ")"
ABS_BAR = "|"
ABS_OPEN = "|("
ABS_CLOSE = ")|"

# Constants
PI = "π"
E = "e"

# Precedence bands: binary +/- < explicit ×/÷ < prefix < implicit × < ^ < postfix
BINARY_OPERATORS: Dict[str, OperatorInfo] = {
    PLUS: OperatorInfo(precedence=2, arity=2, fixity=Fixity.BINARY),
    MINUS: OperatorInfo(precedence=2, arity=2, fixity=Fixity.BINARY),
    MULTIPLY: OperatorInfo(precedence=3, arity=2, fixity=Fixity.BINARY),
    DIVIDE: OperatorInfo(precedence=3, arity=2, fixity=Fixity.BINARY),
    IMPLICIT_MULTIPLY: OperatorInfo(precedence=7, arity=2, fixity=Fixity.BINARY),
    POWER: OperatorInfo(precedence=8, right_associative=True, arity=2, fixity=Fixity.BINARY),
}

_PREFIX_INFO = OperatorInfo(precedence=6, right_associative=True, arity=1, fixity=Fixity.PREFIX)
_POSTFIX_INFO = OperatorInfo(precedence=9, arity=1, fixity=Fixity.POSTFIX)

PREFIX_OPERATORS: Dict[str, OperatorInfo] = {
    symbol: _PREFIX_INFO
    for symbol in (
        NEGATE, SQUARE_ROOT, CUBE_ROOT, LOG10, LN,
        SIN, COS, TAN, ASIN, ACOS, ATAN,
        SINH, COSH, TANH, ASINH, ACOSH, ATANH,
    )
}

POSTFIX_OPERATORS: Dict[str, OperatorInfo] = {
    symbol: _POSTFIX_INFO for symbol in (FACTORIAL, DEGREES, RAD_TO_DEG, RAD_TO_DEG_ARROW, ABS)
}

OPERATORS: Dict[str, OperatorInfo] = {**BINARY_OPERATORS, **PREFIX_OPERATORS, **POSTFIX_OPERATORS}

CONSTANTS: FrozenSet[str] = frozenset({PI, E})

OPENING_SYMBOLS: FrozenSet[str] = frozenset({LEFT_PAREN, ABS_OPEN})

# Digits with at most one decimal point; signs are handled by NEGATE
_NUMBER_PATTERN = re.compile(r"\d+\.?\d*|\.\d+")


def is_number(token: str) -> bool:
    """
    Determine if a token is a numeric literal.

    :param str token: Token string

    :return: True for literals such as "12", "0.5", ".5" or "5."
    :rtype: bool
    """
    return bool(_NUMBER_PATTERN.fullmatch(token))


def is_constant(token: str) -> bool:
    return token in CONSTANTS


def is_binary(token: str) -> bool:
    return token in BINARY_OPERATORS


def is_prefix(token: str) -> bool:
    return token in PREFIX_OPERATORS


def is_postfix(token: str) -> bool:
    return token in POSTFIX_OPERATORS


def is_operator(token: str) -> bool:
    return token in OPERATORS


def is_prefix_function(token: str) -> bool:
    """Named prefix functions such as sin or √; negation is not one of them."""
    return is_prefix(token) and token != NEGATE


def classify(token: str) -> Optional[TokenKind]:
    """
    Map a symbol onto its token kind.

    :param str token: Token string, as found in a normalized sequence

    :return: Token kind, or None when the symbol is not part of the vocabulary
    :rtype: Optional[TokenKind]
    """
    if is_number(token):
        return TokenKind.NUMBER
    if is_constant(token):
        return TokenKind.CONSTANT
    if is_prefix_function(token) or token == ABS:
        return TokenKind.FUNCTION
    if is_operator(token):
        return TokenKind.OPERATOR
    return {
        LEFT_PAREN: TokenKind.LEFT_PAREN,
        RIGHT_PAREN: TokenKind.RIGHT_PAREN,
        ABS_OPEN: TokenKind.ABS_BAR_OPEN,
        ABS_CLOSE: TokenKind.ABS_BAR_CLOSE,
    }.get(token)
