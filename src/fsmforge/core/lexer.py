"""
Lexer/Tokenizer for the fsmforge DSL.

Converts raw DSL text into a stream of tokens with source location tracking.
Blocks are brace-delimited, so newlines are insignificant. Every token keeps
its character offsets, which lets the parser slice raw Python regions
(patterns, expressions, statement blocks) straight out of the source.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import make_parse_error


class TokenType(Enum):
    """Token types in the fsmforge DSL."""

    # Literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    LIFETIME = "LIFETIME"

    # Keywords
    MACHINE = "machine"
    TRANSITIONS = "transitions"
    METHODS = "methods"
    DYNAMIC = "dynamic"
    ATTRIBUTES = "attributes"
    EVENT = "event"
    FN = "fn"
    DEFAULT = "default"

    # Punctuation
    COLON = ":"
    COMMA = ","
    SEMICOLON = ";"
    DOT = "."
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    FAT_ARROW = "=>"
    ARROW = "->"
    EQUALS = "="
    AMPERSAND = "&"

    # Any other Python operator, only meaningful inside raw regions
    OPERATOR = "OPERATOR"

    EOF = "EOF"


# Keywords mapping. `get`, `set`, `initial`, `error` and `none` are read as
# identifiers and checked by value where the grammar expects them, so they
# stay usable as state, field and event names.
KEYWORDS = {
    "machine",
    "transitions",
    "methods",
    "dynamic",
    "attributes",
    "event",
    "fn",
    "default",
}

_SINGLE_CHAR_TOKENS = {
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ".": TokenType.DOT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "&": TokenType.AMPERSAND,
}

_OPERATOR_CHARS = set("+-*/%|^~@!<>=")


@dataclass
class Token:
    """A single token with source location."""

    type: TokenType
    value: str
    line: int
    column: int
    start: int = 0
    end: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """
    Tokenizer for fsmforge DSL files.

    Whitespace and newlines separate tokens but are otherwise dropped;
    `#` starts a comment running to the end of the line.
    """

    def __init__(self, text: str, file: Path):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.text = text
        self.file = file
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace(self) -> None:
        """Skip whitespace characters, newlines included."""
        while self.current_char() in (" ", "\t", "\r", "\n"):
            self.advance()

    def skip_comment(self) -> None:
        """Skip comment (from # to end of line)."""
        if self.current_char() == "#":
            while self.current_char() and self.current_char() != "\n":
                self.advance()

    def read_string(self) -> str:
        """Read a quoted string."""
        start_line = self.line
        start_col = self.column
        quote = self.current_char()  # " or '
        self.advance()  # skip opening quote

        chars = []
        while True:
            current = self.current_char()
            if not current or current == quote or current == "\n":
                break

            if current == "\\":
                self.advance()
                escape_char = self.current_char()
                if escape_char == "n":
                    chars.append("\n")
                elif escape_char == "t":
                    chars.append("\t")
                elif escape_char:
                    chars.append(escape_char)
                self.advance()
            else:
                chars.append(current)
                self.advance()

        if self.current_char() != quote:
            raise make_parse_error(
                "Unterminated string literal",
                self.file,
                start_line,
                start_col,
                text=self.text,
            )

        self.advance()  # skip closing quote
        return "".join(chars)

    def read_number(self) -> str:
        """Read a numeric literal (ints, floats, hex, underscores)."""
        chars = []
        current = self.current_char()
        while current and (current.isalnum() or current in "._"):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        chars = []
        current = self.current_char()
        while current and (current.isalnum() or current == "_"):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def at_lifetime(self) -> bool:
        """
        Check whether the quote at the cursor opens a lifetime (`'a`).

        Lifetimes only appear in generic parameter lists, so the previous token
        must be `<`, `[` or `,` and the name must be followed by `,`, `>` or `]`.
        """
        if not self.tokens or self.tokens[-1].type not in (
            TokenType.LESS_THAN,
            TokenType.LBRACKET,
            TokenType.COMMA,
        ):
            return False

        offset = 1
        first = self.peek_char(offset)
        if not first or not (first.isalpha() or first == "_"):
            return False
        while (ch := self.peek_char(offset)) and (ch.isalnum() or ch == "_"):
            offset += 1
        while self.peek_char(offset) in (" ", "\t"):
            offset += 1
        return self.peek_char(offset) in (",", ">", "]")

    def read_operator(self) -> tuple[TokenType, str]:
        """Read an operator, preferring the longest match."""
        ch = self.current_char() or ""
        nxt = self.peek_char() or ""

        if ch == "=" and nxt == ">":
            return TokenType.FAT_ARROW, "=>"
        if ch == "-" and nxt == ">":
            return TokenType.ARROW, "->"
        if ch + nxt in ("==", "!=", "<=", ">=", "**", "//", "<<", ">>", ":="):
            return TokenType.OPERATOR, ch + nxt
        if ch == "<":
            return TokenType.LESS_THAN, "<"
        if ch == ">":
            return TokenType.GREATER_THAN, ">"
        if ch == "=":
            return TokenType.EQUALS, "="
        return TokenType.OPERATOR, ch

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens ending with EOF

        Raises:
            ParseError: If an unexpected character is encountered
        """
        while True:
            self.skip_whitespace()
            ch = self.current_char()
            if ch is None:
                break

            token_line = self.line
            token_col = self.column
            token_start = self.pos

            if ch == "#":
                self.skip_comment()
                continue

            if ch == "'" and self.at_lifetime():
                self.advance()
                name = self.read_identifier()
                token_type, value = TokenType.LIFETIME, f"'{name}"

            elif ch in ('"', "'"):
                token_type, value = TokenType.STRING, self.read_string()

            elif ch.isdigit():
                token_type, value = TokenType.NUMBER, self.read_number()

            elif ch.isalpha() or ch == "_":
                value = self.read_identifier()
                token_type = TokenType(value) if value in KEYWORDS else TokenType.IDENTIFIER

            elif ch in _SINGLE_CHAR_TOKENS and not (ch == ":" and self.peek_char() == "="):
                self.advance()
                token_type, value = _SINGLE_CHAR_TOKENS[ch], ch

            elif ch in _OPERATOR_CHARS or ch == ":":
                token_type, value = self.read_operator()
                for _ in value:
                    self.advance()

            else:
                raise make_parse_error(
                    f"Unexpected character: {ch!r}",
                    self.file,
                    token_line,
                    token_col,
                    text=self.text,
                )

            self.tokens.append(
                Token(token_type, value, token_line, token_col, token_start, self.pos)
            )

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.column, self.pos, self.pos))
        return self.tokens


def tokenize(text: str, file: Path) -> list[Token]:
    """
    Convenience function to tokenize DSL text.

    Args:
        text: Source text
        file: Source file path

    Returns:
        List of tokens
    """
    lexer = Lexer(text, file)
    return lexer.tokenize()
