"""
Defines the abstract syntax tree produced by the parser.

Every node is a dataclass. The token a node was built from is kept for
diagnostics but excluded from equality, so two trees compare equal when they
mean the same thing regardless of spacing or source position.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import List, Optional

from tamarin.tamarin_token import Token


class Node(ABC):
    """Abstract base class for all AST nodes."""

    def token_literal(self) -> str:
        token = getattr(self, "token", None)
        return token.literal if token is not None else ""

    def __str__(self) -> str:
        from tamarin.tamarin_printer import Printer
        return Printer().pformat(self)


class Statement(Node):
    pass


class Expression(Node):
    pass


# =================================================================
# Expressions
# =================================================================

@dataclass(eq=True)
class Identifier(Expression):
    value: str
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class IntegerLiteral(Expression):
    value: int
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class BooleanLiteral(Expression):
    value: bool
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class StringLiteral(Expression):
    value: str
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class ArrayLiteral(Expression):
    elements: List[Expression] = field(default_factory=list)
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class PrefixExpression(Expression):
    operator: str
    right: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class InfixExpression(Expression):
    left: Expression
    operator: str
    right: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class IfExpression(Expression):
    condition: Expression
    consequence: "BlockStatement"
    alternative: Optional["BlockStatement"] = None
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class FunctionLiteral(Expression):
    """`fn(<params>) { <body> }`. Parameters are identifiers in declaration order."""
    parameters: List[Identifier]
    body: "BlockStatement"
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class CallExpression(Expression):
    function: Expression
    arguments: List[Expression] = field(default_factory=list)
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class IndexExpression(Expression):
    left: Expression
    index: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)


# =================================================================
# Statements
# =================================================================

@dataclass(eq=True)
class BlockStatement(Statement):
    """An ordered statement sequence. Gets its own scope when evaluated."""
    statements: List[Statement] = field(default_factory=list)
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class LetStatement(Statement):
    name: Identifier
    value: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class ReturnStatement(Statement):
    # None for a bare `return`, which returns null.
    return_value: Optional[Expression] = None
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class ExpressionStatement(Statement):
    expression: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)


@dataclass(eq=True)
class Program(Node):
    """The parse root. Immutable after parsing, so it can be evaluated repeatedly."""
    statements: List[Statement] = field(default_factory=list)
