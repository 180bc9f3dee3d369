from tamarin.tamarin_lexer import Lexer, tokenize
from tamarin.tamarin_parser import Parser, parse
from tamarin.tamarin_object import Environment
from tamarin.tamarin_builtins import NativeRegistry, native_method, default_registry
from tamarin.tamarin_evaluator import Evaluator, evaluate
from tamarin.tamarin_runtime import ScriptRunner, ExecutionResult, run_source

__all__ = [
    "Lexer", "tokenize", "Parser", "parse", "Environment",
    "NativeRegistry", "native_method", "default_registry",
    "Evaluator", "evaluate", "ScriptRunner", "ExecutionResult", "run_source",
]
