"""
Script execution: parse, evaluate and render one chunk of source against a
persistent session environment.
"""
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, List, Literal, Optional, Tuple

from tamarin.tamarin_token import Token
from tamarin.tamarin_ast import LetStatement
from tamarin.tamarin_parser import parse
from tamarin.tamarin_evaluator import Evaluator
from tamarin.tamarin_builtins import NativeRegistry, default_registry
from tamarin.tamarin_object import Object, Environment, Error, Null
from tamarin.tamarin_printer import Printer

# Python frames used per nested user-function call, with headroom.
_FRAMES_PER_CALL = 16
_BASE_FRAMES = 1000


def format_parse_errors(errors: List[str]) -> str:
    lines = ["Woops!", " parser errors:"]
    lines.extend(f"\t{msg}" for msg in errors)
    return "\n".join(lines) + "\n"


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Optional[Object] = None
    output: str = ""
    error_message: Optional[str] = None
    parse_errors: List[str] = field(default_factory=list)
    error_token: Optional[Token] = None

    def format_error(self) -> str:
        """The message to show for a failed run; empty for a successful one."""
        if self.status != 'error':
            return ""
        if self.output:
            return self.output.rstrip("\n")
        return str(self.error_message or "Unknown error")


class ScriptRunner:
    """Parses and executes Tamarin code in one session.

    The session owns a root Environment (the global scope), a NativeRegistry
    and an Evaluator. Bindings made by one `handle_script` call are visible to
    the next one.
    """

    def __init__(self,
                 natives: Optional[NativeRegistry] = None,
                 env: Optional[Environment] = None,
                 max_call_depth: Optional[int] = None):
        self.natives = natives if natives is not None else default_registry()
        self.root_env = env if env is not None else Environment()
        self.evaluator = Evaluator(self.natives, max_call_depth=max_call_depth)
        self.printer = Printer()
        self._ensure_recursion_headroom()

    def _ensure_recursion_headroom(self):
        needed = _BASE_FRAMES + self.evaluator.max_call_depth * _FRAMES_PER_CALL
        if sys.getrecursionlimit() < needed:
            self._dbg("Raising recursion limit to", needed)
            sys.setrecursionlimit(needed)

    def _dbg(self, *parts):
        self.evaluator._dbg(*parts)

    def register(self, name: str, fn: Callable[..., Object]):
        """Add a host native function to this session."""
        return self.natives.register(name, fn)

    def register_host(self, host: Any) -> List[str]:
        """Add every @native_method of `host` to this session."""
        return self.natives.register_host(host)

    def bindings(self) -> List[Tuple[str, str]]:
        """The live global bindings as (name, inspection text), in definition order."""
        return [(name, self.printer.pformat(value)) for name, value in self.root_env.items()]

    def _format_internal_error(self, e: Exception) -> Tuple[str, Optional[Token]]:
        msg = f"InternalError: {type(e).__name__}: {e}"
        node = self.evaluator.current_node
        token = getattr(node, "token", None)
        if token is not None and token.line:
            return f"{msg} (line {token.line}, col {token.col})", token
        return msg, None

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a chunk of source."""
        self.evaluator.current_node = None
        try:
            program, errors = parse(source_code)
            if errors:
                self._dbg("Parse failed", len(errors), "errors")
                return ExecutionResult(
                    status='error',
                    output=format_parse_errors(errors),
                    error_message="parser errors",
                    parse_errors=list(errors),
                )
            value = self.evaluator.evaluate(program, self.root_env)
        except Exception as e:
            # Parser or evaluator failure, e.g. RecursionError on deeply nested input.
            self._dbg("Script raised", type(e).__name__, e)
            msg, token = self._format_internal_error(e)
            return ExecutionResult(status='error', output=msg + "\n", error_message=msg, error_token=token)
        finally:
            self.evaluator.call_depth = 0

        if isinstance(value, Error):
            output = self.printer.pformat(value) + "\n"
            return ExecutionResult(status='error', value=value, output=output, error_message=value.message)
        if isinstance(value, Null) and program.statements and isinstance(program.statements[-1], LetStatement):
            # A trailing binding has nothing to show.
            return ExecutionResult(status='success', value=value, output="")
        output = self.printer.pformat(value) + "\n"
        return ExecutionResult(status='success', value=value, output=output)


def run_source(source_text: str, env: Environment,
               natives: Optional[NativeRegistry] = None) -> Tuple[str, Optional[str]]:
    """
    Parse then evaluate `source_text` against `env`.

    Returns the display text (the result's inspection form, or the parser
    error report) and an error description, or None when the run succeeded.
    """
    result = ScriptRunner(natives=natives, env=env).handle_script(source_text)
    if result.status == 'error':
        return result.output, result.error_message
    return result.output, None
