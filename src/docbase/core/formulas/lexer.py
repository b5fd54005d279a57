"""Lexer for arithmetic formula expressions."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .exceptions import FormulaSyntaxError

class TokenType(Enum):
    """Types of tokens in arithmetic expressions."""
    INTEGER = auto()
    FLOAT = auto()

    # Operators
    PLUS = auto()     # +
    MINUS = auto()    # -
    STAR = auto()     # *
    SLASH = auto()    # /
    PERCENT = auto()  # %
    POWER = auto()    # **
    INCREMENT = auto()  # ++, never valid in an expression
    DECREMENT = auto()  # --, never valid in an expression

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()

    EOF = auto()

SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}

@dataclass
class Token:
    """A single token in the arithmetic expression."""
    type: TokenType
    value: str | int | float | None
    position: int

class Lexer:
    """Tokenizes arithmetic strings."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.current_char = self.text[0] if self.text else None

    def error(self, message: str) -> None:
        """Raise a syntax error."""
        raise FormulaSyntaxError(message, self.pos)

    def advance(self) -> None:
        """Move one character forward."""
        self.pos += 1
        if self.pos < len(self.text):
            self.current_char = self.text[self.pos]
        else:
            self.current_char = None

    def peek(self) -> str | None:
        """Look at the next character without moving."""
        peek_pos = self.pos + 1
        return self.text[peek_pos] if peek_pos < len(self.text) else None

    def skip_whitespace(self) -> None:
        """Skip over whitespace characters."""
        while self.current_char is not None and self.current_char.isspace():
            self.advance()

    def _number(self) -> Token:
        """Parse integer or float, including forms like '.5' and '5.'."""
        start_pos = self.pos
        result = ""
        while self.current_char is not None and self.current_char.isdigit():
            result += self.current_char
            self.advance()

        if self.current_char == ".":
            result += "."
            self.advance()
            while self.current_char is not None and self.current_char.isdigit():
                result += self.current_char
                self.advance()
            if result == ".":
                self.error("Expected digits around '.'")
            return Token(TokenType.FLOAT, float(result), start_pos)

        try:
            value = int(result)
        except ValueError:
            self.error("Integer literal is too long")
        return Token(TokenType.INTEGER, value, start_pos)

    def get_next_token(self) -> Token:
        """Get the next token from input."""
        while self.current_char is not None:

            if self.current_char.isspace():
                self.skip_whitespace()
                continue

            if self.current_char.isdigit() or self.current_char == ".":
                return self._number()

            start_pos = self.pos

            if self.current_char == "*":
                if self.peek() == "*":
                    self.advance()
                    self.advance()
                    return Token(TokenType.POWER, "**", start_pos)
                self.advance()
                return Token(TokenType.STAR, "*", start_pos)

            if self.current_char in "+-" and self.peek() == self.current_char:
                doubled = self.current_char * 2
                self.advance()
                self.advance()
                token_type = TokenType.INCREMENT if doubled == "++" else TokenType.DECREMENT
                return Token(token_type, doubled, start_pos)

            token_type = SINGLE_CHAR_TOKENS.get(self.current_char)
            if token_type is not None:
                char = self.current_char
                self.advance()
                return Token(token_type, char, start_pos)

            self.error(f"Invalid character '{self.current_char}'")

        return Token(TokenType.EOF, None, self.pos)

    def tokenize(self) -> Iterator[Token]:
        """Generator that yields all tokens."""
        while True:
            token = self.get_next_token()
            yield token
            if token.type == TokenType.EOF:
                break
