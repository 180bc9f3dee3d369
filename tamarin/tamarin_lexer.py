"""
Converts Tamarin source text into a stream of tokens.
"""
from typing import List

from tamarin.tamarin_token import Token, TokenType, lookup_ident

WHITESPACE = " \t\r\n"

# Two-character operators keyed by their first character.
_TWO_CHAR = {
    "=": ("=", TokenType.EQ),
    "!": ("=", TokenType.NOT_EQ),
    "<": ("=", TokenType.LT_EQ),
    ">": ("=", TokenType.GT_EQ),
}

_SINGLE_CHAR = {
    "=": TokenType.ASSIGN,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "!": TokenType.BANG,
    "*": TokenType.ASTERISK,
    "/": TokenType.SLASH,
    "<": TokenType.LT,
    ">": TokenType.GT,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}


def _is_letter(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Lexer:
    """Single forward pass over a source buffer.

    `next_token()` advances the cursor and returns the next token. Once the
    input is exhausted every further call returns an EOF token.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_whitespace(self):
        while self._peek() and self._peek() in WHITESPACE:
            self._advance()

    def _read_while(self, pred) -> str:
        start = self.pos
        while self._peek() and pred(self._peek()):
            self._advance()
        return self.source[start:self.pos]

    def _read_string(self, line: int, col: int) -> Token:
        self._advance()  # opening quote
        start = self.pos
        while self._peek() and self._peek() != '"':
            self._advance()
        if not self._peek():
            # Unterminated: surface the rest of the input as one illegal token.
            return Token(TokenType.ILLEGAL, '"' + self.source[start:self.pos], line, col)
        text = self.source[start:self.pos]
        self._advance()  # closing quote
        return Token(TokenType.STRING, text, line, col)

    def next_token(self) -> Token:
        self._skip_whitespace()
        line, col = self.line, self.col
        ch = self._peek()

        if not ch:
            return Token(TokenType.EOF, "", line, col)

        if _is_letter(ch):
            ident = self._read_while(lambda c: _is_letter(c) or _is_digit(c))
            return Token(lookup_ident(ident), ident, line, col)

        if _is_digit(ch):
            return Token(TokenType.INT, self._read_while(_is_digit), line, col)

        if ch == '"':
            return self._read_string(line, col)

        two = _TWO_CHAR.get(ch)
        if two is not None and self._peek(1) == two[0]:
            self._advance()
            self._advance()
            return Token(two[1], ch + two[0], line, col)

        self._advance()
        tok_type = _SINGLE_CHAR.get(ch, TokenType.ILLEGAL)
        return Token(tok_type, ch, line, col)

    def __iter__(self):
        while True:
            tok = self.next_token()
            yield tok
            if tok.type is TokenType.EOF:
                return


def tokenize(source: str) -> List[Token]:
    """Lex the whole source, including the trailing EOF token."""
    return list(Lexer(source))
