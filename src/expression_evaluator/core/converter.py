"""Infix to Reverse Polish Notation conversion."""
from typing import List, Sequence

from expression_evaluator.common.errors import ExpressionSyntaxError
from expression_evaluator.core import operators as ops


class PostfixConverter:
    """
    Convert a normalized infix token sequence into Reverse Polish Notation (RPN).

    This is the Shunting-yard algorithm extended for calculator input:
        - Prefix functions wait on the operator stack and are emitted as soon
          as the group holding their argument closes
        - Postfix operators already follow their operand and go straight to output
        - A closing "|" bar emits the synthetic "abs" function

    Examples:
        - Infix: 2 + 3 × 4 -> RPN: 2 3 4 × +
        - Infix: √ ( 4 ) + 1 -> RPN: 4 √ 1 +
        - Infix: |( _ 3 )| -> RPN: 3 _ abs
    """

    @staticmethod
    def to_postfix(tokens: Sequence[str], strict: bool = False) -> List[str]:
        """
        Convert tokens into RPN order.

        :param Sequence[str] tokens: Normalized infix tokens
        :param bool strict: Reject groups still open at the end instead of closing them silently

        :return: List of tokens in RPN order
        :rtype: List[str]
        :raises ExpressionSyntaxError: If a closing symbol has no opener, or a group is left open in strict mode
        """
        output: List[str] = []
        stack: List[str] = []

        for token in tokens:
            if ops.is_number(token) or ops.is_constant(token) or ops.is_postfix(token):
                output.append(token)
            elif ops.is_prefix(token) or token in ops.OPENING_SYMBOLS:
                stack.append(token)
            elif ops.is_binary(token):
                while stack and stack[-1] not in ops.OPENING_SYMBOLS and PostfixConverter._pops_before(
                    stack[-1], token
                ):
                    output.append(stack.pop())
                stack.append(token)
            elif token == ops.RIGHT_PAREN:
                PostfixConverter._close_group(stack, output, ops.LEFT_PAREN)
            elif token == ops.ABS_CLOSE:
                PostfixConverter._close_group(stack, output, ops.ABS_OPEN)
                output.append(ops.ABS)
                PostfixConverter._pop_pending_function(stack, output)
            else:
                # Unknown symbols are reported by the evaluator
                output.append(token)

        while stack:
            token = stack.pop()
            if token in ops.OPENING_SYMBOLS:
                if strict:
                    raise ExpressionSyntaxError(f"Mismatched parentheses: '{token}' is never closed")
                continue
            output.append(token)

        return output

    @staticmethod
    def _pops_before(on_stack: str, incoming: str) -> bool:
        """Whether the operator on the stack must be output before ``incoming`` is pushed."""
        stacked = ops.OPERATORS[on_stack]
        current = ops.OPERATORS[incoming]
        if stacked.precedence != current.precedence:
            return stacked.precedence > current.precedence
        return not current.right_associative

    @staticmethod
    def _close_group(stack: List[str], output: List[str], opener: str) -> None:
        """Pop operators into ``output`` until ``opener`` is popped."""
        while stack and stack[-1] not in ops.OPENING_SYMBOLS:
            output.append(stack.pop())
        if not stack or stack[-1] != opener:
            raise ExpressionSyntaxError(f"Mismatched parentheses: no opening '{opener}' to close")
        stack.pop()
        if opener == ops.LEFT_PAREN:
            PostfixConverter._pop_pending_function(stack, output)

    @staticmethod
    def _pop_pending_function(stack: List[str], output: List[str]) -> None:
        # A prefix operator right below the group takes the group as its argument
        if stack and ops.is_prefix(stack[-1]):
            output.append(stack.pop())
