import pytest

from intcalc.evaluator import Evaluator
from intcalc.utils import I64_MAX, I64_MIN


def eval_lines(code: str) -> int:
    """Feeds ';'-separated lines to one evaluator, returns the last result"""
    evaluator = Evaluator()
    results = [evaluator.evaluate(line) for line in code.split(";")]
    return results[-1]


@pytest.mark.parametrize(
    "code, expected_ret_val",
    [
        pytest.param("1", 1),
        pytest.param("1+2", 3),
        pytest.param("(1+2)", 3),
        pytest.param("(((1)))", 1),
        pytest.param("1 + 2 * 3", 7),
        pytest.param("(1 + 2) * 3", 9),
        pytest.param("1 * 4 + 5", 9),
        pytest.param("1 + 4 * 5", 21),
        pytest.param("10 - 4 - 3", 3),
        pytest.param("2 - 5", -3),
        pytest.param("100 / 5 / 2 / 2", 5),
        pytest.param("10 + 2 * (5 + 3 - 1)", 24),
        pytest.param("007 + 1", 8),
        # division truncates toward zero
        pytest.param("3 / 2", 1),
        pytest.param("(2 - 7) / 2", -2),
        pytest.param("7 / (0 - 2)", -3),
        pytest.param("(0 - 7) / (0 - 2)", 3),
        # 64-bit bounds
        pytest.param("9223372036854775807", I64_MAX),
        pytest.param("0 - 9223372036854775807 - 1", I64_MIN),
        # variables
        pytest.param("x = 5; x", 5),
        pytest.param("x = 5; x = 10; x + 1", 11),
        pytest.param("a = 1; b = 2; c = a + b", 3),
        pytest.param("a1_b = 42; a1_b * 2", 84),
        pytest.param("x = 3; x = x * x; x", 9),
        pytest.param("größe = 4; größe * größe", 16),
        # leftover tokens are ignored
        pytest.param("1 + 2 3", 3),
        pytest.param("4 )", 4),
    ],
)
def test_eval_arithmetic(code: str, expected_ret_val: int) -> None:
    assert eval_lines(code) == expected_ret_val


def test_assignment_returns_assigned_value() -> None:
    evaluator = Evaluator()
    assert evaluator.evaluate("total = 6 * 7") == 42
    assert evaluator.variables == {"total": 42}


def test_pure_expression_is_idempotent() -> None:
    evaluator = Evaluator()
    evaluator.evaluate("x = 5")
    before = dict(evaluator.variables)
    first = evaluator.evaluate("x * 2 + (x - 1) / 2")
    second = evaluator.evaluate("x * 2 + (x - 1) / 2")
    assert first == second == 12
    assert evaluator.variables == before


def test_injected_variable_table_is_shared() -> None:
    variables: dict[str, int] = {"seed": 3}
    a = Evaluator(variables)
    b = Evaluator(variables)
    a.evaluate("x = seed + 1")
    assert b.evaluate("x * 2") == 8
    assert Evaluator().variables == {}


def test_token_sequence_is_replaced_per_line() -> None:
    evaluator = Evaluator()
    assert evaluator.tokens is None
    evaluator.evaluate("1 + 2")
    assert evaluator.tokens is not None and len(evaluator.tokens) == 3
    evaluator.evaluate("7")
    assert len(evaluator.tokens) == 1
    assert evaluator.cursor == 1


def test_nesting_within_default_limit() -> None:
    evaluator = Evaluator()
    depth = evaluator.max_depth
    assert evaluator.evaluate("(" * depth + "1" + ")" * depth) == 1


def test_run_prints_result(capsys: pytest.CaptureFixture[str]) -> None:
    evaluator = Evaluator()
    assert evaluator.run("x = 2 * 21") == 42
    assert evaluator.run("x + 1") == 43
    captured = capsys.readouterr()
    assert captured.out == "42\n43\n"
    assert captured.err == ""
