import operator
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from intcalc.tokenizer import LexError, Token, TokenType, tokenize
from intcalc.utils import fits_i64, point_at, truncating_div

# eval_factor -> eval_calc -> _eval_chain -> eval_term -> _eval_chain per parenthesis
FRAMES_PER_LEVEL = 5
# frames reserved for the caller (REPL loop, test runner)
FRAME_HEADROOM = 200

DEFAULT_MAX_DEPTH = 100


def max_safe_depth() -> int:
    """Deepest nesting the evaluator can follow under the current recursion limit"""
    return max(1, (sys.getrecursionlimit() - FRAME_HEADROOM) // FRAMES_PER_LEVEL)


@dataclass
class EvalError(Exception):
    code: str
    error_char_idx: int

    @property
    def errmsg(self) -> str:
        return "Evaluation failed"

    def __str__(self) -> str:
        return "\n".join([f"[Evaluation error] {self.errmsg}", *point_at(self.code, self.error_char_idx)])


@dataclass
class UnexpectedEndOfInput(EvalError):
    @property
    def errmsg(self) -> str:
        return "Unexpectedly reached the end of the tokens"


@dataclass
class UnexpectedToken(EvalError):
    expected: TokenType
    actual: Token

    @property
    def errmsg(self) -> str:
        return f"Expected {self.expected}, but got {self.actual}"


@dataclass
class UnknownIdentifier(EvalError):
    name: str

    @property
    def errmsg(self) -> str:
        return f"Unknown identifier: {self.name!r}"


@dataclass
class ExpectedFactor(EvalError):
    actual: Token

    @property
    def errmsg(self) -> str:
        return f"Expected a factor, but got {self.actual}"


@dataclass
class DivisionByZero(EvalError):
    @property
    def errmsg(self) -> str:
        return "Division by zero"


@dataclass
class IntegerOverflow(EvalError):
    operator: TokenType
    left: int
    right: int

    @property
    def errmsg(self) -> str:
        op_name = OPERATION_NAMES[self.operator]
        return f"{op_name} of {self.left} and {self.right} does not fit in a 64-bit signed integer"


@dataclass
class NestingTooDeep(EvalError):
    limit: int

    @property
    def errmsg(self) -> str:
        return f"Parentheses are nested deeper than {self.limit} levels"


@dataclass
class TrailingInput(EvalError):
    actual: Token

    @property
    def errmsg(self) -> str:
        return f"Unexpected {self.actual} after a complete expression"


BinaryOperationImpl = Callable[[int, int], int]

BINARY_OPERATIONS: dict[TokenType, BinaryOperationImpl] = {
    TokenType.PLUS: operator.add,
    TokenType.MINUS: operator.sub,
    TokenType.STAR: operator.mul,
    TokenType.SLASH: truncating_div,
}

OPERATION_NAMES = {
    TokenType.PLUS: "Addition",
    TokenType.MINUS: "Subtraction",
    TokenType.STAR: "Multiplication",
    TokenType.SLASH: "Division",
}

ADDITIVE_OPERATORS = frozenset({TokenType.PLUS, TokenType.MINUS})
MULTIPLICATIVE_OPERATORS = frozenset({TokenType.STAR, TokenType.SLASH})


class Evaluator:
    """Single-pass recursive-descent evaluator over one line of tokens

    assign := IDENT '=' calc | calc
    calc   := term (('+'|'-') term)*
    term   := factor (('*'|'/') factor)*
    factor := VALUE | IDENT | '(' calc ')'

    Tokens left over after a complete expression are ignored unless strict is set.
    """

    def __init__(
        self,
        variables: Optional[dict[str, int]] = None,
        *,
        strict: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if not 1 <= max_depth <= max_safe_depth():
            raise ValueError(f"max_depth must be between 1 and {max_safe_depth()}, got {max_depth}")
        self.variables: dict[str, int] = variables if variables is not None else dict()
        self.strict = strict
        self.max_depth = max_depth
        self.tokens: Optional[list[Token]] = None
        self.code = ""
        self.cursor = 0
        self._depth = 0

    def _char_idx(self, token_idx: int) -> int:
        if self.tokens is not None and token_idx < len(self.tokens):
            return self.tokens[token_idx].pos
        return len(self.code)

    def _peek_ahead(self, count: int) -> Optional[Token]:
        if self.tokens is None:
            return None
        i = self.cursor + count
        return self.tokens[i] if i < len(self.tokens) else None

    def _peek(self) -> Optional[Token]:
        return self._peek_ahead(0)

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise UnexpectedEndOfInput(self.code, self._char_idx(self.cursor))
        self.cursor += 1
        return token

    def _consume(self, expected: TokenType) -> Token:
        actual = self._next()
        if actual.type is not expected:
            raise UnexpectedToken(self.code, actual.pos, expected=expected, actual=actual)
        return actual

    def _check_end(self) -> None:
        trailing = self._peek()
        if self.strict and trailing is not None:
            raise TrailingInput(self.code, trailing.pos, actual=trailing)

    def _apply(self, op_token: Token, left: int, right: int) -> int:
        if op_token.type is TokenType.SLASH and right == 0:
            raise DivisionByZero(self.code, op_token.pos)
        result = BINARY_OPERATIONS[op_token.type](left, right)
        if not fits_i64(result):
            raise IntegerOverflow(self.code, op_token.pos, operator=op_token.type, left=left, right=right)
        return result

    def _eval_chain(self, eval_operand: Callable[[], int], operators: frozenset[TokenType]) -> int:
        result = eval_operand()
        while True:
            op_token = self._peek()
            if op_token is None or op_token.type not in operators:
                return result
            self.cursor += 1
            result = self._apply(op_token, result, eval_operand())

    def eval_factor(self) -> int:
        token = self._next()
        if token.type is TokenType.NUMBER:
            assert isinstance(token.value, int)
            return token.value
        elif token.type is TokenType.IDENTIFIER:
            name = token.lexeme
            if name not in self.variables:
                raise UnknownIdentifier(self.code, token.pos, name=name)
            return self.variables[name]
        elif token.type is TokenType.BRACKET_OPEN:
            if self._depth >= self.max_depth:
                raise NestingTooDeep(self.code, token.pos, limit=self.max_depth)
            self._depth += 1
            try:
                result = self.eval_calc()
            finally:
                self._depth -= 1
            self._consume(TokenType.BRACKET_CLOSE)
            return result
        else:
            raise ExpectedFactor(self.code, token.pos, actual=token)

    def eval_term(self) -> int:
        return self._eval_chain(self.eval_factor, MULTIPLICATIVE_OPERATORS)

    def eval_calc(self) -> int:
        return self._eval_chain(self.eval_term, ADDITIVE_OPERATORS)

    def eval_assign(self) -> int:
        name = self._consume(TokenType.IDENTIFIER).lexeme
        self._consume(TokenType.EQUALS)
        result = self.eval_calc()
        # nothing is stored unless the whole line evaluated
        self._check_end()
        self.variables[name] = result
        return result

    def evaluate(self, code: str) -> int:
        self.tokens = tokenize(code)
        self.code = code
        self.cursor = 0
        self._depth = 0

        lookahead = self._peek_ahead(1)
        if lookahead is not None and lookahead.type is TokenType.EQUALS:
            return self.eval_assign()
        result = self.eval_calc()
        self._check_end()
        return result

    def run(self, code: str) -> Optional[int]:
        try:
            result = self.evaluate(code)
        except (LexError, EvalError) as e:
            print(e, file=sys.stderr)
            return None
        print(result)
        return result
