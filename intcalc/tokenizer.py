import enum
from dataclasses import dataclass, field
from typing import Callable, Optional

from intcalc.utils import I64_MAX, PrintableEnum, fits_i64, point_at


@dataclass
class LexError(Exception):
    errmsg: str
    code: str
    error_char_idx: int

    def __str__(self) -> str:
        return "\n".join([f"[Tokenizer error] {self.errmsg}", *point_at(self.code, self.error_char_idx)])


class TokenType(PrintableEnum):
    EQUALS = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    STAR = enum.auto()
    SLASH = enum.auto()
    BRACKET_OPEN = enum.auto()
    BRACKET_CLOSE = enum.auto()
    IDENTIFIER = enum.auto()
    NUMBER = enum.auto()


SINGLE_CHAR_TOKENS = {
    "=": TokenType.EQUALS,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.BRACKET_OPEN,
    ")": TokenType.BRACKET_CLOSE,
}


@dataclass(frozen=True)
class Token:
    """Equality covers type and payload only: identifier name or integer value"""

    type: TokenType
    value: int | str | None = None
    lexeme: str = field(default="", compare=False)
    pos: int = field(default=0, compare=False)

    @classmethod
    def ident(cls, name: str, pos: int = 0) -> "Token":
        return cls(type=TokenType.IDENTIFIER, value=name, lexeme=name, pos=pos)

    @classmethod
    def number(cls, n: int, pos: int = 0) -> "Token":
        return cls(type=TokenType.NUMBER, value=n, lexeme=str(n), pos=pos)

    @classmethod
    def punct(cls, char: str, pos: int = 0) -> "Token":
        return cls(type=SINGLE_CHAR_TOKENS[char], lexeme=char, pos=pos)

    def __str__(self) -> str:
        return f"<{self.type}>{self.lexeme}"


def _is_valid_in_identifier(s: str) -> bool:
    return s.isalnum() or s == "_"


class Tokenizer:
    def __init__(self, code: str) -> None:
        self.code = code
        self.cursor = 0

    def _error(self, errmsg: str, idx: Optional[int] = None) -> LexError:
        return LexError(errmsg, code=self.code, error_char_idx=self.cursor if idx is None else idx)

    def _peek(self) -> Optional[str]:
        if self.cursor >= len(self.code):
            return None
        return self.code[self.cursor]

    def _collect_while(self, predicate: Callable[[str], bool]) -> str:
        start = self.cursor
        while self.cursor < len(self.code) and predicate(self.code[self.cursor]):
            self.cursor += 1
        return self.code[start : self.cursor]

    def _skip_whitespace(self) -> None:
        self._collect_while(str.isspace)

    def _tokenize_identifier(self) -> Token:
        start = self.cursor
        return Token.ident(self._collect_while(_is_valid_in_identifier), pos=start)

    def _tokenize_number(self) -> Token:
        start = self.cursor
        literal = self._collect_while(str.isnumeric)
        following = self._peek()
        after = f"got {following!r}" if following is not None else "reached the end of the content"
        # isnumeric() also admits '½', '٣' or fullwidth digits, only ASCII decimals are literals
        if not (literal.isascii() and literal.isdigit()):
            raise self._error(f"Expected numeric value, but {literal!r} is not an integer ({after})", idx=start)
        # reject by length first, int() refuses very long digit strings on its own
        if len(literal.lstrip("0")) > len(str(I64_MAX)) or not fits_i64(int(literal)):
            raise self._error(
                f"Numeric literal of {len(literal)} digits does not fit in a 64-bit signed integer ({after})",
                idx=start,
            )
        return Token(type=TokenType.NUMBER, value=int(literal), lexeme=literal, pos=start)

    def _tokenize(self) -> Token:
        char = self._peek()
        if char is None:
            raise self._error("Unexpectedly reached the end of the content")

        if char.isalpha():
            return self._tokenize_identifier()
        if char.isnumeric():
            return self._tokenize_number()

        if char not in SINGLE_CHAR_TOKENS:
            raise self._error(f"Unexpected character: {char!r}")
        token = Token.punct(char, pos=self.cursor)
        self.cursor += 1
        return token

    def run(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_whitespace()
            if self._peek() is None:
                break
            tokens.append(self._tokenize())
        return tokens


def tokenize(code: str) -> list[Token]:
    return Tokenizer(code).run()
