"""Test class ExpressionEvaluator."""
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from pydantic import ValidationError
import pytest

from expression_evaluator.common.errors import ExpressionSyntaxError
from expression_evaluator.common.models import ErrorKind
from expression_evaluator.core.evaluator import ExpressionEvaluator
from expression_evaluator.core.preprocessor import SequencePreprocessor
from expression_evaluator.core.tokenizer import Tokenizer

TOLERANCE = Decimal("1e-30")


@pytest.fixture(scope="module")
def evaluator() -> ExpressionEvaluator:
    """One evaluator shared by every test, as callers are expected to do."""
    return ExpressionEvaluator()


@pytest.mark.parametrize("tokens,expected", [
    (["2", "+", "3", "×", "4"], "14"),
    (["(", "2", "+", "3", ")", "×", "4"], "20"),
    (["3", "-", "-", "2"], "5"),
    (["-", "2", "^", "2"], "-4"),
    (["2", "^", "3", "^", "2"], "512"),
    (["2", "^", "-", "1"], "0.5"),
    (["5", "!"], "120"),
    (["3", "!", "!"], "720"),
    (["√", "4"], "2"),
    (["√", "2", "^", "2"], "2"),
    (["∛", "-", "8"], "-2"),
    (["lg", "1000"], "3"),
    (["|", "-", "3", "|"], "3"),
    (["2", "×", "|", "-", "3", "|"], "6"),
    (["(", "1", "+", "2", ")", "(", "3", "+", "4", ")"], "21"),
    (["6", "÷", "2", "(", "1", "+", "2", ")"], "1"),
    (["1", "÷", "3"], "0.3333333333333333333333333333333333"),
    (["2", "sin", "0"], "0"),
    (["cos", "0"], "1"),
    (["0.1", "+", "0.2"], "0.3"),
])
def test_evaluate_valid(evaluator: ExpressionEvaluator, tokens, expected) -> None:
    """evaluate returns the exact decimal result for valid sequences."""
    result = evaluator.evaluate(tokens)
    assert result.success, result.error_message
    assert result.value == Decimal(expected)


def test_implicit_multiplication_matches_explicit(evaluator: ExpressionEvaluator) -> None:
    """2π is the same value as 2 × π."""
    implicit = evaluator.evaluate(["2", "π"])
    explicit = evaluator.evaluate(["2", "×", "π"])
    assert implicit.value == explicit.value
    assert implicit.display().startswith("6.283185307")


def test_empty_input_is_zero(evaluator: ExpressionEvaluator) -> None:
    """An empty sequence is a success with value 0."""
    result = evaluator.evaluate([])
    assert result.success
    assert result.value == 0
    assert result.normalized_sequence == []


def test_bare_function_call(evaluator: ExpressionEvaluator) -> None:
    """sin 0 evaluates like sin(0) and reports the inserted parentheses."""
    result = evaluator.evaluate(["sin", "0"])
    assert result.value == 0
    assert result.normalized_sequence == ["sin", "(", "0", ")"]


def test_unbalanced_parentheses_are_closed(evaluator: ExpressionEvaluator) -> None:
    """Missing closing parentheses are supplied automatically."""
    open_ended = evaluator.evaluate(["(", "(", "3", "+", "2"])
    closed = evaluator.evaluate(["(", "(", "3", "+", "2", ")", ")"])
    assert open_ended.success
    assert open_ended.value == closed.value == 5
    assert open_ended.normalized_sequence == ["(", "(", "3", "+", "2", ")", ")"]


def test_extra_closing_parenthesis_is_opened(evaluator: ExpressionEvaluator) -> None:
    """A surplus ')' gets a matching '(' at the start."""
    result = evaluator.evaluate(["3", "+", "2", ")", "×", "2"])
    assert result.value == 10


@pytest.mark.parametrize("tokens", [
    ["5", "÷", "0"],
    ["4001", "!"],
    ["2.5", "!"],
    ["asin", "2"],
    ["√", "-", "1"],
    ["ln", "0"],
])
def test_evaluate_arithmetic_error(evaluator: ExpressionEvaluator, tokens) -> None:
    """Undefined operations fail with an arithmetic error and return the input unchanged."""
    result = evaluator.evaluate(tokens)
    assert not result.success
    assert result.value is None
    assert result.error_kind == ErrorKind.ARITHMETIC
    assert result.normalized_sequence == tokens


@pytest.mark.parametrize("tokens", [
    ["+"],
    ["2", "+"],
    ["2", "3", "+"],
    ["foo"],
    ["sin"],
    [")", "("],
    ["2", "|", "3", "|"],
    ["-", "-", "2"],
])
def test_evaluate_syntax_error(evaluator: ExpressionEvaluator, tokens) -> None:
    """Malformed sequences fail with a syntax error."""
    result = evaluator.evaluate(tokens)
    assert not result.success
    assert result.error_kind == ErrorKind.SYNTAX


def test_strict_mode_rejects_unclosed_groups() -> None:
    """Without auto correction an unclosed group is a syntax error."""
    strict = ExpressionEvaluator(auto_correct=False)
    result = strict.evaluate(["(", "3", "+", "2"])
    assert result.error_kind == ErrorKind.SYNTAX
    assert strict.evaluate(["(", "3", "+", "2", ")"]).value == 5


def test_trailing_zeros_are_stripped(evaluator: ExpressionEvaluator) -> None:
    """Results carry no trailing zeros but keep their value."""
    result = evaluator.evaluate(["2.50", "×", "4"])
    assert result.value == 10
    assert result.value.as_tuple().digits == (1,)
    assert result.display() == "10"


@pytest.mark.parametrize("tokens", [
    ["2", "÷", "3"],
    ["10", "×", "10"],
    ["π"],
    ["1", "÷", "8"],
])
def test_result_reevaluates_to_itself(evaluator: ExpressionEvaluator, tokens) -> None:
    """Feeding a displayed result back in yields the same value."""
    first = evaluator.evaluate(tokens)
    again = evaluator.evaluate([first.display()])
    assert again.value == first.value


def test_degrees_inside_sine(evaluator: ExpressionEvaluator) -> None:
    """sin(30°) is one half."""
    result = evaluator.evaluate(["sin", "(", "30", "°", ")"])
    assert abs(result.value - Decimal("0.5")) < TOLERANCE


def test_radians_to_degrees(evaluator: ExpressionEvaluator) -> None:
    """π rad>° is 180, and the arrow spelling is accepted too."""
    for symbol in ("rad>°", "rad→°"):
        result = evaluator.evaluate(["π", symbol])
        assert abs(result.value - 180) < TOLERANCE


def test_evaluate_postfix(evaluator: ExpressionEvaluator) -> None:
    """RPN can be evaluated directly."""
    assert evaluator.evaluate_postfix(["2", "3", "4", "×", "+"]) == 14


def test_evaluate_postfix_leftover_operands(evaluator: ExpressionEvaluator) -> None:
    """A stack holding more than one value is a syntax error."""
    with pytest.raises(ExpressionSyntaxError):
        evaluator.evaluate_postfix(["2", "3"])


@pytest.mark.parametrize("text,expected", [
    ("2 + 3 × 4", "14"),
    ("2*3/4", "1.5"),
    ("2**10", "1024"),
    ("sqrt 16", "4"),
    ("|-3|+1", "4"),
    ("5!", "120"),
    ("((3+2", "5"),
])
def test_evaluate_expression(evaluator: ExpressionEvaluator, text, expected) -> None:
    """Raw text is tokenized and evaluated like a token sequence."""
    result = evaluator.evaluate_expression(text)
    assert result.success, result.error_message
    assert result.value == Decimal(expected)


def test_evaluate_expression_constants(evaluator: ExpressionEvaluator) -> None:
    """Constant spellings in text evaluate like their symbols."""
    assert evaluator.evaluate_expression("2pi").value == evaluator.evaluate(["2", "×", "π"]).value


@pytest.mark.parametrize("text", ["1..2", "2 # 3"])
def test_evaluate_expression_untokenizable(evaluator: ExpressionEvaluator, text) -> None:
    """Text that cannot be tokenized is a syntax failure with an empty sequence."""
    result = evaluator.evaluate_expression(text)
    assert result.error_kind == ErrorKind.SYNTAX
    assert result.normalized_sequence == []


def test_deterministic_across_threads(evaluator: ExpressionEvaluator) -> None:
    """A shared evaluator gives the same answer from every thread."""
    tokens = ["sin", "1", "+", "π", "e"]
    with ThreadPoolExecutor(max_workers=8) as pool:
        values = list(pool.map(lambda _: evaluator.evaluate(tokens).value, range(32)))
    assert len(set(values)) == 1


def test_precision_must_be_positive() -> None:
    """Configuration is validated by pydantic."""
    with pytest.raises(ValidationError):
        ExpressionEvaluator(precision=0)


def test_evaluator_is_immutable(evaluator: ExpressionEvaluator) -> None:
    """Settings cannot change after construction."""
    with pytest.raises(ValidationError):
        evaluator.precision = 10


def test_custom_precision() -> None:
    """Results follow the configured precision."""
    result = ExpressionEvaluator(precision=5).evaluate(["1", "÷", "3"])
    assert result.value == Decimal("0.33333")


def test_constants_shared_across_calls(evaluator: ExpressionEvaluator) -> None:
    """π is computed once per evaluator and reused by every evaluation."""
    evaluator.evaluate(["π"])
    first = evaluator.math.pi
    evaluator.evaluate(["2", "π"])
    assert evaluator.math.pi is first


def test_long_bare_function_chain(evaluator: ExpressionEvaluator) -> None:
    """A deep chain of bare square roots is evaluated, not rejected by the call stack."""
    depth = 3000
    result = evaluator.evaluate(["√"] * depth + ["4"])
    assert result.success, result.error_message
    assert result.value == 1
    assert result.normalized_sequence[:2] == ["√", "("]
    assert result.normalized_sequence[-1] == ")"


def test_unexpected_error_is_a_failure(evaluator: ExpressionEvaluator, monkeypatch) -> None:
    """An unforeseen exception inside the pipeline becomes a syntax failure."""

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(SequencePreprocessor, "normalize", staticmethod(broken))
    result = evaluator.evaluate(["1", "+", "1"])
    assert not result.success
    assert result.error_kind == ErrorKind.SYNTAX
    assert result.error_message == "boom"
    assert result.normalized_sequence == ["1", "+", "1"]


def test_unexpected_tokenizer_error_is_a_failure(evaluator: ExpressionEvaluator, monkeypatch) -> None:
    """An unforeseen exception while segmenting text becomes a syntax failure."""

    def broken(text):
        raise RecursionError()

    monkeypatch.setattr(Tokenizer, "segment", staticmethod(broken))
    result = evaluator.evaluate_expression("1+1")
    assert result.error_kind == ErrorKind.SYNTAX
    assert result.error_message == "RecursionError"
    assert result.normalized_sequence == []
