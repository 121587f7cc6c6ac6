"""
Fixed-precision decimal arithmetic for the evaluator.

Elementary operations, square roots and logarithms run on a ``decimal.Context``
and are correctly rounded. The functions ``decimal`` does not offer (cube root,
trigonometric and hyperbolic families, π) are computed with ``mpmath`` using a
few guard digits and then rounded into the same context, so every result has
the same precision and rounding mode.
"""
import decimal
from decimal import Context, Decimal, ROUND_HALF_EVEN
import math
import threading
from typing import Callable, Dict, List

import mpmath

from expression_evaluator.common.errors import ExpressionArithmeticError, ExpressionSyntaxError
from expression_evaluator.core import operators as ops

# Extra mpmath digits used before rounding into the decimal context
GUARD_DIGITS: int = 10
# Largest decimal exponent a result may carry; 4000! needs about 12674
MAX_EXPONENT: int = 999_999
# Largest decimal exponent of an argument to sin, cos and tan
TRIG_MAX_EXPONENT: int = 1000

HALF_TURN_DEGREES = Decimal(180)


class DecimalMath:
    """
    Arithmetic dispatch table bound to one precision.

    Instances are immutable after construction apart from the lazily computed
    constants π and e, which are filled at most once under a lock.
    """

    def __init__(self, precision: int = 34, factorial_limit: int = 4000) -> None:
        self.precision = precision
        self.factorial_limit = factorial_limit
        self.context = Context(
            prec=precision,
            rounding=ROUND_HALF_EVEN,
            Emax=MAX_EXPONENT,
            Emin=-MAX_EXPONENT,
            traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
        )
        # Private mpmath context: its precision never changes after this point
        self._mp = mpmath.MPContext()
        self._mp.dps = precision + GUARD_DIGITS

        self._constants: Dict[str, Decimal] = {}
        self._lock = threading.Lock()

        self._binary: Dict[str, Callable[[Decimal, Decimal], Decimal]] = {
            ops.PLUS: self.context.add,
            ops.MINUS: self.context.subtract,
            ops.MULTIPLY: self.context.multiply,
            ops.IMPLICIT_MULTIPLY: self.context.multiply,
            ops.DIVIDE: self.divide,
            ops.POWER: self.power,
        }
        self._unary: Dict[str, Callable[[Decimal], Decimal]] = {
            ops.NEGATE: self.context.minus,
            ops.SQUARE_ROOT: self.context.sqrt,
            ops.CUBE_ROOT: self.cube_root,
            ops.LOG10: self.context.log10,
            ops.LN: self.context.ln,
            ops.SIN: self._periodic(self._mp.sin),
            ops.COS: self._periodic(self._mp.cos),
            ops.TAN: self._periodic(self._mp.tan),
            ops.ASIN: self._mpmath_function(self._mp.asin),
            ops.ACOS: self._mpmath_function(self._mp.acos),
            ops.ATAN: self._mpmath_function(self._mp.atan),
            ops.SINH: self._mpmath_function(self._mp.sinh),
            ops.COSH: self._mpmath_function(self._mp.cosh),
            ops.TANH: self._mpmath_function(self._mp.tanh),
            ops.ASINH: self._mpmath_function(self._mp.asinh),
            ops.ACOSH: self._mpmath_function(self._mp.acosh),
            ops.ATANH: self._mpmath_function(self._mp.atanh),
            ops.FACTORIAL: self.factorial,
            ops.DEGREES: self.to_radians,
            ops.RAD_TO_DEG: self.to_degrees,
            ops.RAD_TO_DEG_ARROW: self.to_degrees,
            ops.ABS: self.context.abs,
        }

    # -----------------------------
    # Constants
    # -----------------------------

    @property
    def pi(self) -> Decimal:
        return self._constant(ops.PI, lambda: self._from_mpmath(self._mp.mpf(self._mp.pi)))

    @property
    def e(self) -> Decimal:
        return self._constant(ops.E, lambda: self.context.exp(Decimal(1)))

    def constant(self, name: str) -> Decimal:
        """
        Look up a named constant.

        :param str name: Constant symbol, "π" or "e"

        :return: Value rounded to the context precision
        :rtype: Decimal
        :raises ExpressionSyntaxError: If the name is not a known constant
        """
        if name == ops.PI:
            return self.pi
        if name == ops.E:
            return self.e
        raise ExpressionSyntaxError(f"Unknown constant: {name}")

    def _constant(self, name: str, compute: Callable[[], Decimal]) -> Decimal:
        value = self._constants.get(name)
        if value is None:
            with self._lock:
                value = self._constants.get(name)
                if value is None:
                    value = compute()
                    self._constants[name] = value
        return value

    # -----------------------------
    # Dispatch
    # -----------------------------

    def apply(self, symbol: str, operands: List[Decimal]) -> Decimal:
        """
        Apply the operation named by ``symbol`` to its operands.

        :param str symbol: Operator symbol from the operator table
        :param List[Decimal] operands: One or two operands, leftmost first

        :return: Finite result rounded to the context precision
        :rtype: Decimal
        :raises ExpressionSyntaxError: If the symbol has no operation for this operand count
        :raises ArithmeticError: If the operation is undefined for the operands
        """
        if len(operands) == 2 and symbol in self._binary:
            result = self._binary[symbol](operands[0], operands[1])
        elif len(operands) == 1 and symbol in self._unary:
            result = self._unary[symbol](operands[0])
        else:
            raise ExpressionSyntaxError(f"Unknown operator: {symbol}")

        if not result.is_finite():
            raise ExpressionArithmeticError(f"'{symbol}' has no finite result for {operands}")
        return result

    # -----------------------------
    # Operations
    # -----------------------------

    def divide(self, dividend: Decimal, divisor: Decimal) -> Decimal:
        if divisor == 0:
            raise ExpressionArithmeticError("Division by zero")
        return self.context.divide(dividend, divisor)

    def power(self, base: Decimal, exponent: Decimal) -> Decimal:
        """Raise ``base`` to ``exponent``; 0^0 is defined as 1."""
        if base == 0 and exponent == 0:
            return Decimal(1)
        return self.context.power(base, exponent)

    def cube_root(self, value: Decimal) -> Decimal:
        """Real cube root, negative for negative input."""
        root = self._mpmath_function(self._mp.cbrt)(self.context.abs(value))
        return self.context.minus(root) if value < 0 else root

    def factorial(self, value: Decimal) -> Decimal:
        """
        Factorial of a non-negative integer no larger than ``factorial_limit``.

        :param Decimal value: Operand

        :return: value! rounded to the context precision
        :rtype: Decimal
        :raises ExpressionArithmeticError: If the operand is negative, fractional or too large
        """
        if value < 0 or value > self.factorial_limit:
            raise ExpressionArithmeticError(
                f"Factorial is only defined for integers between 0 and {self.factorial_limit}: {value}"
            )
        if value != value.to_integral_value():
            raise ExpressionArithmeticError(f"Factorial is only defined for integers: {value}")
        return self.context.create_decimal(math.factorial(int(value)))

    def to_radians(self, degrees: Decimal) -> Decimal:
        return self.context.divide(self.context.multiply(degrees, self.pi), HALF_TURN_DEGREES)

    def to_degrees(self, radians: Decimal) -> Decimal:
        return self.context.divide(self.context.multiply(radians, HALF_TURN_DEGREES), self.pi)

    # -----------------------------
    # mpmath bridge
    # -----------------------------

    def _mpmath_function(self, function: Callable) -> Callable[[Decimal], Decimal]:
        """Wrap an mpmath function so it takes and returns Decimal values."""

        def wrapper(value: Decimal) -> Decimal:
            try:
                result = function(self._mp.mpf(format(value, "e")))
            except (ValueError, ZeroDivisionError) as exc:
                name = getattr(function, "__name__", "function")
                raise ExpressionArithmeticError(f"{name}({value}) is undefined: {exc}") from exc
            return self._from_mpmath(result)

        return wrapper

    def _periodic(self, function: Callable) -> Callable[[Decimal], Decimal]:
        """Wrap a periodic mpmath function, rejecting arguments too large to reduce cheaply."""
        evaluate = self._mpmath_function(function)

        def wrapper(value: Decimal) -> Decimal:
            if value.adjusted() > TRIG_MAX_EXPONENT:
                name = getattr(function, "__name__", "function")
                raise ExpressionArithmeticError(f"{name} argument is too large: {value:.6e}")
            return evaluate(value)

        return wrapper

    def _from_mpmath(self, value) -> Decimal:
        if isinstance(value, self._mp.mpc):
            if value.imag != 0:
                raise ExpressionArithmeticError(f"Result is not a real number: {value}")
            value = value.real
        if not self._mp.isfinite(value):
            raise ExpressionArithmeticError(f"Result is not finite: {value}")
        if value == 0:
            return Decimal(0)
        return self.context.plus(Decimal(self._mp.nstr(value, self._mp.dps)))
