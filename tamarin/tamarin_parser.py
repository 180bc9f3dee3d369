"""
Operator-precedence (Pratt) parser turning a token stream into an AST.

Every token type that can start an expression has a prefix parse function;
every binary/postfix token has an infix parse function and a precedence.
Errors are collected as readable strings; parsing never raises.
"""
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple

from tamarin.tamarin_token import Token, TokenType
from tamarin.tamarin_lexer import Lexer
from tamarin.tamarin_ast import (
    Program, Statement, Expression, Identifier, IntegerLiteral, BooleanLiteral,
    StringLiteral, ArrayLiteral, PrefixExpression, InfixExpression, IfExpression,
    BlockStatement, FunctionLiteral, CallExpression, IndexExpression,
    LetStatement, ReturnStatement, ExpressionStatement,
)

INT64_MAX = 2 ** 63 - 1
INT64_MAX_DIGITS = len(str(INT64_MAX))


class Precedence(IntEnum):
    LOWEST = 1
    EQUALS = 2       # == !=
    LESSGREATER = 3  # < > <= >=
    SUM = 4          # + -
    PRODUCT = 5      # * /
    PREFIX = 6       # -x !x
    CALL = 7         # f(x)
    INDEX = 8        # a[i]


PRECEDENCES: Dict[TokenType, Precedence] = {
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NOT_EQ: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.LT_EQ: Precedence.LESSGREATER,
    TokenType.GT_EQ: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.INDEX,
}

PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Expression], Optional[Expression]]


class Parser:
    """Parses one source buffer. Create a new parser per buffer."""

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[str] = []
        self.cur_token: Token = Token(TokenType.ILLEGAL, "")
        self.peek_token: Token = Token(TokenType.ILLEGAL, "")

        self.prefix_parse_fns: Dict[TokenType, PrefixParseFn] = {
            TokenType.IDENT: self.parse_identifier,
            TokenType.INT: self.parse_integer_literal,
            TokenType.STRING: self.parse_string_literal,
            TokenType.TRUE: self.parse_boolean,
            TokenType.FALSE: self.parse_boolean,
            TokenType.BANG: self.parse_prefix_expression,
            TokenType.MINUS: self.parse_prefix_expression,
            TokenType.LPAREN: self.parse_grouped_expression,
            TokenType.IF: self.parse_if_expression,
            TokenType.FUNCTION: self.parse_function_literal,
            TokenType.LBRACKET: self.parse_array_literal,
        }
        self.infix_parse_fns: Dict[TokenType, InfixParseFn] = {
            TokenType.PLUS: self.parse_infix_expression,
            TokenType.MINUS: self.parse_infix_expression,
            TokenType.ASTERISK: self.parse_infix_expression,
            TokenType.SLASH: self.parse_infix_expression,
            TokenType.EQ: self.parse_infix_expression,
            TokenType.NOT_EQ: self.parse_infix_expression,
            TokenType.LT: self.parse_infix_expression,
            TokenType.GT: self.parse_infix_expression,
            TokenType.LT_EQ: self.parse_infix_expression,
            TokenType.GT_EQ: self.parse_infix_expression,
            TokenType.LPAREN: self.parse_call_expression,
            TokenType.LBRACKET: self.parse_index_expression,
        }

        # Fill cur_token and peek_token.
        self.next_token()
        self.next_token()

    # --- Token cursor ---

    def next_token(self):
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def cur_token_is(self, t: TokenType) -> bool:
        return self.cur_token.type is t

    def peek_token_is(self, t: TokenType) -> bool:
        return self.peek_token.type is t

    def expect_peek(self, t: TokenType) -> bool:
        """Advance when the next token has type `t`; otherwise record an error."""
        if self.peek_token_is(t):
            self.next_token()
            return True
        self.peek_error(t)
        return False

    def peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek_token.type, Precedence.LOWEST)

    def cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur_token.type, Precedence.LOWEST)

    # --- Errors ---

    def peek_error(self, t: TokenType):
        self.errors.append(
            f"expected next token to be {t.value}, got {self.peek_token.type.value} instead"
        )

    def no_prefix_parse_fn_error(self, t: TokenType):
        self.errors.append(f"no prefix parse function for {t.value} found")

    def _skip_statement(self, stop_at_rbrace: bool):
        """Recover from a failed statement by skipping to its boundary."""
        while not self.cur_token_is(TokenType.SEMICOLON) and not self.cur_token_is(TokenType.EOF):
            if stop_at_rbrace and self.cur_token_is(TokenType.RBRACE):
                return
            self.next_token()

    # --- Statements ---

    def parse_program(self) -> Program:
        program = Program()
        while not self.cur_token_is(TokenType.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                program.statements.append(stmt)
            else:
                self._skip_statement(stop_at_rbrace=False)
            self.next_token()
        return program

    def parse_statement(self) -> Optional[Statement]:
        match self.cur_token.type:
            case TokenType.LET:
                return self.parse_let_statement()
            case TokenType.RETURN:
                return self.parse_return_statement()
            case _:
                return self.parse_expression_statement()

    def parse_let_statement(self) -> Optional[LetStatement]:
        token = self.cur_token
        if not self.expect_peek(TokenType.IDENT):
            return None
        name = Identifier(self.cur_token.literal, token=self.cur_token)
        if not self.expect_peek(TokenType.ASSIGN):
            return None
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        return LetStatement(name, value, token=token)

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self.cur_token
        if self.peek_token.type in (TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            if self.peek_token_is(TokenType.SEMICOLON):
                self.next_token()
            return ReturnStatement(None, token=token)
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        return ReturnStatement(value, token=token)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.cur_token
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        return ExpressionStatement(expression, token=token)

    def parse_block_statement(self) -> BlockStatement:
        """Parse `{ ... }` with cur_token on the opening brace; ends on the closing brace."""
        block = BlockStatement(token=self.cur_token)
        self.next_token()
        while not self.cur_token_is(TokenType.RBRACE) and not self.cur_token_is(TokenType.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                block.statements.append(stmt)
            else:
                self._skip_statement(stop_at_rbrace=True)
                if self.cur_token_is(TokenType.RBRACE):
                    break
            self.next_token()
        if self.cur_token_is(TokenType.EOF):
            self.errors.append(
                f"expected next token to be {TokenType.RBRACE.value}, got {TokenType.EOF.value} instead"
            )
        return block

    # --- Expressions ---

    def parse_expression(self, precedence: Precedence) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token.type)
            return None
        left = prefix()

        while (left is not None
               and not self.peek_token_is(TokenType.SEMICOLON)
               and precedence < self.peek_precedence()):
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
        return left

    def parse_identifier(self) -> Expression:
        return Identifier(self.cur_token.literal, token=self.cur_token)

    def parse_integer_literal(self) -> Optional[Expression]:
        literal = self.cur_token.literal
        digits = literal.lstrip("0") or "0"
        # Checked by length first: int() refuses very long digit strings.
        if len(digits) > INT64_MAX_DIGITS or int(digits) > INT64_MAX:
            self.errors.append(f"could not parse {literal} as integer")
            return None
        return IntegerLiteral(int(digits), token=self.cur_token)

    def parse_string_literal(self) -> Expression:
        return StringLiteral(self.cur_token.literal, token=self.cur_token)

    def parse_boolean(self) -> Expression:
        return BooleanLiteral(self.cur_token_is(TokenType.TRUE), token=self.cur_token)

    def parse_prefix_expression(self) -> Optional[Expression]:
        token = self.cur_token
        self.next_token()
        right = self.parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(token.literal, right, token=token)

    def parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        # Same precedence on the right keeps binary operators left-associative.
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(left, token.literal, right, token=token)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.next_token()
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        if not self.expect_peek(TokenType.RPAREN):
            return None
        return expression

    def parse_if_expression(self) -> Optional[Expression]:
        token = self.cur_token
        if not self.expect_peek(TokenType.LPAREN):
            return None
        self.next_token()
        condition = self.parse_expression(Precedence.LOWEST)
        if condition is None:
            return None
        if not self.expect_peek(TokenType.RPAREN):
            return None
        if not self.expect_peek(TokenType.LBRACE):
            return None
        consequence = self.parse_block_statement()

        alternative = None
        if self.peek_token_is(TokenType.ELSE):
            self.next_token()
            if not self.expect_peek(TokenType.LBRACE):
                return None
            alternative = self.parse_block_statement()
        return IfExpression(condition, consequence, alternative, token=token)

    def parse_function_literal(self) -> Optional[Expression]:
        token = self.cur_token
        if not self.expect_peek(TokenType.LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None
        if not self.expect_peek(TokenType.LBRACE):
            return None
        body = self.parse_block_statement()
        return FunctionLiteral(parameters, body, token=token)

    def parse_function_parameters(self) -> Optional[List[Identifier]]:
        params: List[Identifier] = []
        if self.peek_token_is(TokenType.RPAREN):
            self.next_token()
            return params

        if not self.expect_peek(TokenType.IDENT):
            return None
        params.append(Identifier(self.cur_token.literal, token=self.cur_token))
        while self.peek_token_is(TokenType.COMMA):
            self.next_token()
            if not self.expect_peek(TokenType.IDENT):
                return None
            params.append(Identifier(self.cur_token.literal, token=self.cur_token))

        if not self.expect_peek(TokenType.RPAREN):
            return None
        return params

    def parse_call_expression(self, function: Expression) -> Optional[Expression]:
        token = self.cur_token
        arguments = self.parse_expression_list(TokenType.RPAREN)
        if arguments is None:
            return None
        return CallExpression(function, arguments, token=token)

    def parse_index_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        self.next_token()
        index = self.parse_expression(Precedence.LOWEST)
        if index is None:
            return None
        if not self.expect_peek(TokenType.RBRACKET):
            return None
        return IndexExpression(left, index, token=token)

    def parse_array_literal(self) -> Optional[Expression]:
        token = self.cur_token
        elements = self.parse_expression_list(TokenType.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(elements, token=token)

    def parse_expression_list(self, end: TokenType) -> Optional[List[Expression]]:
        """Comma-separated expressions up to `end`; shared by calls and array literals."""
        items: List[Expression] = []
        if self.peek_token_is(end):
            self.next_token()
            return items

        self.next_token()
        item = self.parse_expression(Precedence.LOWEST)
        if item is None:
            return None
        items.append(item)
        while self.peek_token_is(TokenType.COMMA):
            self.next_token()
            self.next_token()
            item = self.parse_expression(Precedence.LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self.expect_peek(end):
            return None
        return items


def parse(source: str) -> Tuple[Program, List[str]]:
    """Parse source text into a Program plus the list of syntax errors."""
    parser = Parser(Lexer(source))
    program = parser.parse_program()
    return program, parser.errors
