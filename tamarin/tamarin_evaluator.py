"""
The tree-walking evaluator.

`Evaluator.evaluate(node, env)` reduces an AST node in an environment to a
value. Evaluation errors are ordinary `Error` values and short-circuit any
expression that contains them. A `return` travels upward as a `ReturnSignal`
until a function call boundary (or the program root) unwraps it.
"""
import os
import sys
from typing import Any, List, Optional, Union

from tamarin.tamarin_ast import (
    Node, Program, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    ArrayLiteral, PrefixExpression, InfixExpression, IfExpression,
    BlockStatement, FunctionLiteral, CallExpression, IndexExpression,
    LetStatement, ReturnStatement, ExpressionStatement, Expression,
)
from tamarin.tamarin_object import (
    Object, Integer, String, Array, Function, NativeFunction, Error, Environment,
    NULL, native_bool, is_error, is_truthy, wrap_int,
)
from tamarin.tamarin_builtins import NativeRegistry, default_registry, arity_error
from tamarin.tamarin_convert import to_value

DEFAULT_MAX_CALL_DEPTH = 100


class ReturnSignal:
    """Completion marker for a pending `return`. Never visible to Tamarin code."""
    __slots__ = ("value",)

    def __init__(self, value: Object):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"


def is_return(x) -> bool:
    return isinstance(x, ReturnSignal)


def unwrap_return(x):
    return x.value if is_return(x) else x


def _max_call_depth_from_env() -> int:
    raw = os.environ.get("TAMARIN_MAX_CALL_DEPTH")
    if raw is None:
        return DEFAULT_MAX_CALL_DEPTH
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_MAX_CALL_DEPTH


class Evaluator:
    """The Tamarin execution engine. One per interpreter session."""

    def __init__(self, natives: Optional[NativeRegistry] = None, max_call_depth: Optional[int] = None):
        self.natives = natives if natives is not None else default_registry()
        self.max_call_depth = max_call_depth if max_call_depth is not None else _max_call_depth_from_env()
        self.call_depth = 0
        self.current_node: Optional[Node] = None

    def _dbg(self, *parts):
        if os.environ.get("TAMARIN_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def evaluate(self, node: Node, env: Environment) -> Object:
        """Public entry point for evaluation. Unwraps a pending return."""
        return unwrap_return(self._eval(node, env))

    def _eval(self, node: Node, env: Environment) -> Union[Object, ReturnSignal]:
        """Recursive dispatcher for evaluating any AST node."""
        self.current_node = node
        match node:
            # Statements
            case Program():
                return self._eval_program(node, env)

            case ExpressionStatement():
                return self._eval(node.expression, env)

            case BlockStatement():
                # Each block gets its own scope, created here rather than at parse time.
                return self._eval_statements(node.statements, env.extend())

            case LetStatement():
                value = self._eval(node.value, env)
                if is_error(value):
                    return value
                env.set(node.name.value, value)
                return NULL

            case ReturnStatement():
                if node.return_value is None:
                    return ReturnSignal(NULL)
                value = self._eval(node.return_value, env)
                if is_error(value):
                    return value
                return ReturnSignal(value)

            # Literals
            case IntegerLiteral():
                return Integer(node.value)

            case BooleanLiteral():
                return native_bool(node.value)

            case StringLiteral():
                return String(node.value)

            case ArrayLiteral():
                elements = self._eval_expressions(node.elements, env)
                if is_error(elements):
                    return elements
                return Array(elements)

            case FunctionLiteral():
                params = [p.value for p in node.parameters]
                return Function(params, node.body, env)

            # Expressions
            case Identifier():
                return self._eval_identifier(node, env)

            case PrefixExpression():
                right = self._eval(node.right, env)
                if is_error(right):
                    return right
                return self._eval_prefix_expression(node.operator, right)

            case InfixExpression():
                left = self._eval(node.left, env)
                if is_error(left):
                    return left
                right = self._eval(node.right, env)
                if is_error(right):
                    return right
                return self._eval_infix_expression(node.operator, left, right)

            case IfExpression():
                condition = self._eval(node.condition, env)
                if is_error(condition):
                    return condition
                if is_truthy(condition):
                    return self._eval(node.consequence, env)
                if node.alternative is not None:
                    return self._eval(node.alternative, env)
                return NULL

            case CallExpression():
                function = self._eval(node.function, env)
                if is_error(function):
                    return function
                args = self._eval_expressions(node.arguments, env)
                if is_error(args):
                    return args
                return self.apply_function(function, args)

            case IndexExpression():
                left = self._eval(node.left, env)
                if is_error(left):
                    return left
                index = self._eval(node.index, env)
                if is_error(index):
                    return index
                return self._eval_index_expression(left, index)

            case _:
                raise TypeError(f"cannot evaluate node of type {type(node).__name__}")

    def _eval_program(self, program: Program, env: Environment) -> Object:
        result: Object = NULL
        for stmt in program.statements:
            result = self._eval(stmt, env)
            if is_return(result):
                return result.value
            if is_error(result):
                return result
        return result

    def _eval_statements(self, statements, env: Environment) -> Union[Object, ReturnSignal]:
        """Run statements in order; stop at the first return signal or error and pass it up unchanged."""
        result: Union[Object, ReturnSignal] = NULL
        for stmt in statements:
            result = self._eval(stmt, env)
            if is_return(result) or is_error(result):
                return result
        return result

    def _eval_expressions(self, exprs: List[Expression], env: Environment) -> Union[List[Object], Error]:
        """Evaluate left to right, stopping at the first error."""
        values = []
        for expr in exprs:
            value = self._eval(expr, env)
            if is_error(value):
                return value
            values.append(value)
        return values

    def _eval_identifier(self, node: Identifier, env: Environment) -> Object:
        value = env.get(node.value)
        if value is not None:
            return value
        native = self.natives.get(node.value)
        if native is not None:
            return native
        return Error(f"identifier not found: {node.value}")

    def _eval_prefix_expression(self, operator: str, right: Object) -> Object:
        match operator:
            case "!":
                return native_bool(not is_truthy(right))
            case "-":
                if not isinstance(right, Integer):
                    return Error(f"unknown operator: -{right.type_name}")
                return Integer(wrap_int(-right.value))
            case _:
                return Error(f"unknown operator: {operator}{right.type_name}")

    def _eval_infix_expression(self, operator: str, left: Object, right: Object) -> Object:
        match left, right:
            case Integer(), Integer():
                return self._eval_integer_infix(operator, left.value, right.value)
            case String(), String():
                return self._eval_string_infix(operator, left, right)
            case _ if left.type_name != right.type_name:
                return Error(f"type mismatch: {left.type_name} {operator} {right.type_name}")
            case _ if operator == "==":
                return native_bool(left == right)
            case _ if operator == "!=":
                return native_bool(left != right)
            case _:
                return Error(f"unknown operator: {left.type_name} {operator} {right.type_name}")

    def _eval_integer_infix(self, operator: str, a: int, b: int) -> Object:
        match operator:
            case "+":
                return Integer(wrap_int(a + b))
            case "-":
                return Integer(wrap_int(a - b))
            case "*":
                return Integer(wrap_int(a * b))
            case "/":
                if b == 0:
                    return Error("division by zero")
                # Truncate toward zero, not toward negative infinity.
                q = abs(a) // abs(b)
                if (a < 0) != (b < 0):
                    q = -q
                return Integer(wrap_int(q))
            case "<":
                return native_bool(a < b)
            case ">":
                return native_bool(a > b)
            case "<=":
                return native_bool(a <= b)
            case ">=":
                return native_bool(a >= b)
            case "==":
                return native_bool(a == b)
            case "!=":
                return native_bool(a != b)
            case _:
                return Error(f"unknown operator: INTEGER {operator} INTEGER")

    def _eval_string_infix(self, operator: str, left: String, right: String) -> Object:
        match operator:
            case "+":
                return String(left.value + right.value)
            case "==":
                return native_bool(left.value == right.value)
            case "!=":
                return native_bool(left.value != right.value)
            case _:
                return Error(f"unknown operator: STRING {operator} STRING")

    def _eval_index_expression(self, left: Object, index: Object) -> Object:
        if isinstance(left, Array) and isinstance(index, Integer):
            i = index.value
            if 0 <= i < len(left.elements):
                return left.elements[i]
            return NULL
        return Error(f"index operator not supported: {left.type_name}[{index.type_name}]")

    def apply_function(self, fn: Any, args: List[Object]) -> Object:
        """Call a Function or NativeFunction with already-evaluated arguments."""
        match fn:
            case Function():
                if len(args) != len(fn.parameters):
                    return arity_error(len(args), len(fn.parameters))
                if self.call_depth >= self.max_call_depth:
                    return Error(f"maximum call depth exceeded ({self.max_call_depth})")
                # Extend the captured environment, not the caller's.
                call_env = fn.env.extend()
                for name, value in zip(fn.parameters, args):
                    call_env.set(name, value)
                self._dbg("Function call", fn.parameters, "depth", self.call_depth + 1)
                self.call_depth += 1
                try:
                    result = self._eval_statements(fn.body.statements, call_env)
                finally:
                    self.call_depth -= 1
                return unwrap_return(result)

            case NativeFunction():
                self._dbg("Native call", fn.name, "argc", len(args))
                try:
                    result = fn.fn(*args)
                except Exception as e:
                    self._dbg("Native raised", fn.name, type(e).__name__, e)
                    return Error(f"{fn.name}: {e}")
                return to_value(result)

            case _:
                return Error(f"not a function: {fn.type_name}")


def evaluate(node: Node, env: Environment, natives: Optional[NativeRegistry] = None) -> Object:
    """Evaluate `node` in `env` with a fresh evaluator (core built-ins unless `natives` is given)."""
    return Evaluator(natives).evaluate(node, env)
