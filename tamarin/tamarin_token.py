"""
Token types and the Token record produced by the lexer.
"""

from dataclasses import dataclass, field
from enum import Enum


class TokenType(Enum):
    """The closed set of token tags. The value is the text used in diagnostics."""
    ILLEGAL = "ILLEGAL"
    EOF = "EOF"

    # Identifiers and literals
    IDENT = "IDENT"
    INT = "INT"
    STRING = "STRING"

    # Operators
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    BANG = "!"
    ASTERISK = "*"
    SLASH = "/"
    LT = "<"
    GT = ">"
    LT_EQ = "<="
    GT_EQ = ">="
    EQ = "=="
    NOT_EQ = "!="

    # Delimiters
    COMMA = ","
    SEMICOLON = ";"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"

    # Keywords
    FUNCTION = "FUNCTION"
    LET = "LET"
    TRUE = "TRUE"
    FALSE = "FALSE"
    IF = "IF"
    ELSE = "ELSE"
    RETURN = "RETURN"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Token:
    """A tag plus the literal source text it matched.

    Line and column are 1-based and excluded from equality, so two tokens
    compare equal when their tag and text agree.
    """
    type: TokenType
    literal: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.literal!r})"


KEYWORDS = {
    "fn": TokenType.FUNCTION,
    "let": TokenType.LET,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
}


def lookup_ident(ident: str) -> TokenType:
    """Resolve reserved words to keyword tokens; everything else is an identifier."""
    return KEYWORDS.get(ident, TokenType.IDENT)
