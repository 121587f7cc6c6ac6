"""Character-stream entry point: turn raw text into tokens."""
from typing import Dict, List

from expression_evaluator.common.errors import ExpressionSyntaxError
from expression_evaluator.common.models import Token
from expression_evaluator.core import operators as ops
from expression_evaluator.core.preprocessor import SequencePreprocessor

# Spellings accepted from a keyboard, mapped onto the canonical vocabulary
ALIASES: Dict[str, str] = {
    "*": ops.MULTIPLY,
    "/": ops.DIVIDE,
    "**": ops.POWER,
    "−": ops.MINUS,
    "sqrt": ops.SQUARE_ROOT,
    "cbrt": ops.CUBE_ROOT,
    "log": ops.LOG10,
    "pi": ops.PI,
    ops.RAD_TO_DEG_ARROW: ops.RAD_TO_DEG,
}

SYMBOLS: List[str] = [
    ops.PLUS, ops.MINUS, ops.MULTIPLY, ops.DIVIDE, ops.POWER,
    ops.SQUARE_ROOT, ops.CUBE_ROOT, ops.LOG10, ops.LN,
    ops.SIN, ops.COS, ops.TAN, ops.ASIN, ops.ACOS, ops.ATAN,
    ops.SINH, ops.COSH, ops.TANH, ops.ASINH, ops.ACOSH, ops.ATANH,
    ops.FACTORIAL, ops.DEGREES, ops.RAD_TO_DEG,
    ops.LEFT_PAREN, ops.RIGHT_PAREN, ops.ABS_BAR,
    ops.PI, ops.E,
    *ALIASES,
]

# Longest spelling first, so "asinh" wins over "asin" and "sin"
_SPELLINGS: List[str] = sorted(SYMBOLS, key=len, reverse=True)


class Tokenizer:
    """
    Split raw calculator input into tokens.

    Whitespace is ignored, numbers are runs of digits holding at most one
    decimal point, and names are matched longest first. The result of
    ``segment`` is exactly what the token-sequence entry point expects.

    Examples:
        - "2sin 30" -> ["2", "sin", "30"]
        - "3*-2" -> ["3", "×", "-", "2"]
    """

    @staticmethod
    def segment(text: str) -> List[str]:
        """
        Split a raw expression into canonical token strings.

        :param str text: Expression as typed by the user

        :return: List of token strings
        :rtype: List[str]
        :raises ExpressionSyntaxError: If a number holds two decimal points or a character is unknown
        """
        tokens: List[str] = []
        position = 0
        while position < len(text):
            char = text[position]

            if char.isspace():
                position += 1
            elif char.isdecimal() or char == ".":
                end = position
                while end < len(text) and (text[end].isdecimal() or text[end] == "."):
                    end += 1
                number = text[position:end]
                if number.count(".") > 1:
                    raise ExpressionSyntaxError(f"More than one '.' in number: {number}")
                if number == ".":
                    raise ExpressionSyntaxError(f"Decimal point without digits at position {position}")
                tokens.append(number)
                position = end
            else:
                spelling = Tokenizer._match(text, position)
                tokens.append(ALIASES.get(spelling, spelling))
                position += len(spelling)

        return tokens

    @staticmethod
    def _match(text: str, position: int) -> str:
        for spelling in _SPELLINGS:
            if text.startswith(spelling, position):
                return spelling
        raise ExpressionSyntaxError(f"Unexpected character '{text[position]}' at position {position}")

    @staticmethod
    def tokenize(text: str) -> List[Token]:
        """
        Turn raw text into classified tokens.

        Unary minus, bar direction, implicit multiplication and the parentheses
        of bare function calls are resolved the same way as for token sequences.

        :param str text: Expression as typed by the user

        :return: List of typed tokens
        :rtype: List[Token]
        :raises ExpressionSyntaxError: If the text cannot be segmented
        """
        normalized = SequencePreprocessor.normalize(Tokenizer.segment(text))
        return [Token(kind=ops.classify(symbol), symbol=symbol) for symbol in normalized]
