"""Normalize a segmented token sequence before it is converted to RPN."""
from typing import List, Optional, Sequence, Union

from expression_evaluator.core import operators as ops


class _BareArgument:
    """Argument of a function written without "(", whose ")" is still pending."""

    def __init__(self) -> None:
        self.opened = False
        self.last: Optional[str] = None

    def accepts(self, token: str) -> bool:
        """Whether ``token`` extends the argument."""
        signed_position = self.last is None or self.last == ops.POWER
        return (
            ops.is_number(token)
            or ops.is_constant(token)
            or token == ops.POWER
            or ops.is_prefix_function(token)
            or (token == ops.MINUS and signed_position)
        )


class SequencePreprocessor:
    """
    Make the calculator grammar forgiving.

    Passes, in this order:
        1. Wrap bare function arguments in parentheses ("sin 45" -> "sin ( 45 )")
        2. Balance unmatched parentheses at the edges of the sequence
        3. Tell unary minus from subtraction, and opening from closing "|" bars
        4. Insert an implicit multiplication operator between juxtaposed factors

    None of the passes ever fails: malformed input is left for the converter
    and the evaluator to reject.

    Examples:
        - ["2", "π"] -> ["2", "i×", "π"]
        - ["3", "-", "-", "2"] -> ["3", "-", "_", "2"]
        - ["|", "-", "3", "|"] -> ["|(", "_", "3", ")|"]
    """

    @staticmethod
    def normalize(tokens: Sequence[str], balance: bool = True) -> List[str]:
        """
        Run every normalization pass over a token sequence.

        :param Sequence[str] tokens: Tokens as segmented by the caller
        :param bool balance: Whether to auto-correct unmatched parentheses

        :return: Sequence ready for PostfixConverter.to_postfix
        :rtype: List[str]
        """
        normalized: List[str] = SequencePreprocessor.parenthesize_functions(tokens)
        if balance:
            normalized = SequencePreprocessor.balance_parentheses(normalized)
        return SequencePreprocessor.disambiguate(normalized)

    # -----------------------------
    # Pass 1: bare function arguments
    # -----------------------------

    @staticmethod
    def parenthesize_functions(tokens: Sequence[str]) -> List[str]:
        """
        Wrap the argument of every function not followed by "(" in parentheses.

        The argument greedily takes numbers, constants, "^" and nested
        functions, so "√ 2 ^ 2" becomes "√ ( 2 ^ 2 )". A leading "-" is part
        of the argument, as is a "-" right after "^". A group right after "^"
        or after a nested function is taken whole.

        Nesting is tracked on an explicit stack of pending closers, so chains
        such as "√ √ √ … 4" of any length are handled.

        :param Sequence[str] tokens: Token sequence

        :return: Sequence where every function is followed by "("
        :rtype: List[str]
        """
        result: List[str] = []
        # Innermost last: a _BareArgument waiting for its ")", or "(" for a group inside one
        pending: List[Union[_BareArgument, str]] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            frame = pending[-1] if pending else None

            if isinstance(frame, _BareArgument):
                if not frame.accepts(token):
                    SequencePreprocessor._close_argument(pending, result)
                    continue
                if not frame.opened:
                    result.append(ops.LEFT_PAREN)
                    frame.opened = True
                result.append(token)
                frame.last = token
                index += 1
                if token == ops.POWER or ops.is_prefix_function(token):
                    if SequencePreprocessor._opens_group(tokens, index):
                        result.append(ops.LEFT_PAREN)
                        pending.append(ops.LEFT_PAREN)
                        index += 1
                    elif token != ops.POWER:
                        pending.append(_BareArgument())
                continue

            result.append(token)
            index += 1
            if frame is not None and token == ops.LEFT_PAREN:
                pending.append(ops.LEFT_PAREN)
            elif frame is not None and token == ops.RIGHT_PAREN:
                pending.pop()
                if pending and isinstance(pending[-1], _BareArgument):
                    pending[-1].last = ops.RIGHT_PAREN
            elif ops.is_prefix_function(token) and not SequencePreprocessor._opens_group(tokens, index):
                pending.append(_BareArgument())

        # Groups left open are closed later by balance_parentheses
        while pending:
            if isinstance(pending[-1], _BareArgument):
                SequencePreprocessor._close_argument(pending, result)
            else:
                pending.pop()
        return result

    @staticmethod
    def _opens_group(tokens: Sequence[str], index: int) -> bool:
        return index < len(tokens) and tokens[index] == ops.LEFT_PAREN

    @staticmethod
    def _close_argument(pending: List[Union[_BareArgument, str]], result: List[str]) -> None:
        """Pop the innermost bare argument and emit its ")" if it took any token."""
        argument = pending.pop()
        if argument.opened:
            result.append(ops.RIGHT_PAREN)
            if pending and isinstance(pending[-1], _BareArgument):
                pending[-1].last = ops.RIGHT_PAREN

    # -----------------------------
    # Pass 2: unmatched parentheses
    # -----------------------------

    @staticmethod
    def balance_parentheses(tokens: Sequence[str]) -> List[str]:
        """
        Append missing ")" or prepend missing "(".

        :param Sequence[str] tokens: Token sequence

        :return: Sequence with as many "(" as ")"
        :rtype: List[str]
        """
        opened = sum(1 for token in tokens if token == ops.LEFT_PAREN)
        closed = sum(1 for token in tokens if token == ops.RIGHT_PAREN)
        if opened > closed:
            return [*tokens, *[ops.RIGHT_PAREN] * (opened - closed)]
        if closed > opened:
            return [*[ops.LEFT_PAREN] * (closed - opened), *tokens]
        return list(tokens)

    # -----------------------------
    # Passes 3 and 4: unary minus, bars, implicit multiplication
    # -----------------------------

    @staticmethod
    def disambiguate(tokens: Sequence[str]) -> List[str]:
        """
        Resolve "-" and "|" from their left context and insert implicit multiplication.

        :param Sequence[str] tokens: Token sequence

        :return: Sequence using NEGATE, ABS_OPEN, ABS_CLOSE and IMPLICIT_MULTIPLY
        :rtype: List[str]
        """
        result: List[str] = []
        for token in tokens:
            previous: Optional[str] = result[-1] if result else None

            if token == ops.MINUS and SequencePreprocessor._expects_operand(previous):
                token = ops.NEGATE
            elif token == ops.ABS_BAR:
                token = ops.ABS_OPEN if SequencePreprocessor._expects_operand(previous) else ops.ABS_CLOSE

            if previous is not None and SequencePreprocessor._is_juxtaposed(previous, token):
                result.append(ops.IMPLICIT_MULTIPLY)
            result.append(token)
        return result

    @staticmethod
    def _expects_operand(previous: Optional[str]) -> bool:
        """True where an operand, not an operator, must come next."""
        return (
            previous is None
            or ops.is_binary(previous)
            or previous in ops.OPENING_SYMBOLS
        )

    @staticmethod
    def _ends_factor(token: str) -> bool:
        return (
            ops.is_number(token)
            or ops.is_constant(token)
            or ops.is_postfix(token)
            or token in (ops.RIGHT_PAREN, ops.ABS_CLOSE)
        )

    @staticmethod
    def _starts_factor(token: str) -> bool:
        return (
            ops.is_number(token)
            or ops.is_constant(token)
            or ops.is_prefix(token)
            or token in ops.OPENING_SYMBOLS
        )

    @staticmethod
    def _is_juxtaposed(previous: str, current: str) -> bool:
        return SequencePreprocessor._ends_factor(previous) and SequencePreprocessor._starts_factor(current)
