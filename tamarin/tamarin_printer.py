"""
A pretty-printer for Tamarin syntax trees and runtime values.

AST nodes print in their canonical, fully parenthesised form, so
`1 + 2 * 3` prints as `(1 + (2 * 3))`. Values print in their inspection
form, which is what the shell shows for a result.
"""

from tamarin.tamarin_ast import (
    Program, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    ArrayLiteral, PrefixExpression, InfixExpression, IfExpression,
    BlockStatement, FunctionLiteral, CallExpression, IndexExpression,
    LetStatement, ReturnStatement, ExpressionStatement,
)
from tamarin.tamarin_object import (
    Integer, Boolean, String, Array, Function, NativeFunction, Error, Null,
)


class Printer:
    """Formats Tamarin nodes and values into readable strings."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format an object."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            # Unknown types (e.g. a raw Python value) fall back to repr.
            return repr(obj)
        return handler(obj)

    def _create_handlers(self):
        return {
            # AST
            Program: self._pformat_program,
            Identifier: self._pformat_identifier,
            IntegerLiteral: self._pformat_literal,
            BooleanLiteral: self._pformat_boolean_literal,
            StringLiteral: self._pformat_string_literal,
            ArrayLiteral: self._pformat_array_literal,
            PrefixExpression: self._pformat_prefix,
            InfixExpression: self._pformat_infix,
            IfExpression: self._pformat_if,
            BlockStatement: self._pformat_block,
            FunctionLiteral: self._pformat_function_literal,
            CallExpression: self._pformat_call,
            IndexExpression: self._pformat_index,
            LetStatement: self._pformat_let,
            ReturnStatement: self._pformat_return,
            ExpressionStatement: self._pformat_expression_statement,
            # Values
            Integer: self._pformat_integer,
            Boolean: self._pformat_boolean,
            String: self._pformat_string,
            Array: self._pformat_array,
            Function: self._pformat_function,
            NativeFunction: self._pformat_native,
            Error: self._pformat_error,
            Null: self._pformat_null,
        }

    def _join(self, items, sep=", ") -> str:
        return sep.join(self.pformat(i) for i in items)

    # --- AST ---

    def _pformat_program(self, node):
        return "".join(self.pformat(s) for s in node.statements)

    def _pformat_identifier(self, node):
        return node.value

    def _pformat_literal(self, node):
        return str(node.value)

    def _pformat_boolean_literal(self, node):
        return 'true' if node.value else 'false'

    def _pformat_string_literal(self, node):
        return node.value

    def _pformat_array_literal(self, node):
        return f"[{self._join(node.elements)}]"

    def _pformat_prefix(self, node):
        return f"({node.operator}{self.pformat(node.right)})"

    def _pformat_infix(self, node):
        return f"({self.pformat(node.left)} {node.operator} {self.pformat(node.right)})"

    def _pformat_if(self, node):
        out = f"if{self.pformat(node.condition)} {self.pformat(node.consequence)}"
        if node.alternative is not None:
            out += f"else {self.pformat(node.alternative)}"
        return out

    def _pformat_block(self, node):
        return "".join(self.pformat(s) for s in node.statements)

    def _pformat_function_literal(self, node):
        return f"fn({self._join(node.parameters)}) {self.pformat(node.body)}"

    def _pformat_call(self, node):
        return f"{self.pformat(node.function)}({self._join(node.arguments)})"

    def _pformat_index(self, node):
        return f"({self.pformat(node.left)}[{self.pformat(node.index)}])"

    def _pformat_let(self, node):
        return f"let {self.pformat(node.name)} = {self.pformat(node.value)};"

    def _pformat_return(self, node):
        if node.return_value is None:
            return "return;"
        return f"return {self.pformat(node.return_value)};"

    def _pformat_expression_statement(self, node):
        return self.pformat(node.expression)

    # --- Values ---

    def _pformat_integer(self, obj):
        return str(obj.value)

    def _pformat_boolean(self, obj):
        return 'true' if obj.value else 'false'

    def _pformat_string(self, obj):
        return obj.value

    def _pformat_array(self, obj):
        return f"[{self._join(obj.elements)}]"

    def _pformat_function(self, obj):
        params = ", ".join(obj.parameters)
        return f"fn({params}) {{\n{self.pformat(obj.body)}\n}}"

    def _pformat_native(self, obj):
        return "builtin function"

    def _pformat_error(self, obj):
        return f"ERROR: {obj.message}"

    def _pformat_null(self, obj):
        return 'null'


def inspect(value) -> str:
    """The inspection form of a value, as the shell displays it."""
    return Printer().pformat(value)
