"""
The native-function registry and the core built-in functions.

A registry is an explicit value owned by one interpreter session; nothing
here is process-wide state. Hosts add their own natives with `register` or
by passing an object whose methods carry the `@native_method` decorator to
`register_host`.
"""
import inspect
import sys
from typing import Any, Callable, Dict, List, Optional

from tamarin.tamarin_object import (
    Object, Integer, String, Array, NativeFunction, Error, NULL,
)


def native_method(func):
    """A decorator to explicitly mark host methods as callable from Tamarin code."""
    func._is_tamarin_native = True
    return func


def _is_native_member(member) -> bool:
    if getattr(member, "_is_tamarin_native", False):
        return True
    func = getattr(member, "__func__", None)
    return func is not None and getattr(func, "_is_tamarin_native", False)


class NativeRegistry:
    """Maps names to NativeFunction values. Consulted after user bindings."""

    def __init__(self):
        self._natives: Dict[str, NativeFunction] = {}

    def register(self, name: str, fn: Callable[..., Object]) -> NativeFunction:
        if isinstance(fn, NativeFunction):
            native = fn
        elif callable(fn):
            native = NativeFunction(name, fn)
        else:
            raise TypeError(f"native '{name}' must be callable, not {type(fn).__name__}")
        self._natives[name] = native
        return native

    def unregister(self, name: str):
        del self._natives[name]

    def get(self, name: str) -> Optional[NativeFunction]:
        return self._natives.get(name)

    def names(self) -> List[str]:
        return list(self._natives.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._natives

    def __len__(self) -> int:
        return len(self._natives)

    def load_stdlib(self, stdlib: Any):
        """Bind every `_name` method of `stdlib` under `name`."""
        for name, member in inspect.getmembers(stdlib):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                self.register(name[1:], member)

    def register_host(self, host: Any) -> List[str]:
        """Bind the @native_method methods of `host` under their Python names."""
        bound = []
        for name, member in inspect.getmembers(host):
            if not callable(member) or not _is_native_member(member):
                continue
            self.register(name, member)
            bound.append(name)
        return bound

    def __repr__(self) -> str:
        return f"<NativeRegistry natives=[{', '.join(self._natives)}]>"


def arity_error(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments. got={got}, want={want}")


class CoreNatives:
    """Python implementations of the built-in functions every session starts with."""

    def __init__(self, out=None):
        # None means "whatever sys.stdout is at call time".
        self.out = out

    def _len(self, *args):
        if len(args) != 1:
            return arity_error(len(args), 1)
        match args[0]:
            case String(value=s):
                # Byte length of the UTF-8 encoding.
                return Integer(len(s.encode('utf-8')))
            case Array(elements=els):
                return Integer(len(els))
            case other:
                return Error(f"argument to `len` not supported, got {other.type_name}")

    def _first(self, *args):
        if len(args) != 1:
            return arity_error(len(args), 1)
        arr = args[0]
        if not isinstance(arr, Array):
            return Error(f"argument to `first` must be ARRAY, got {arr.type_name}")
        if arr.elements:
            return arr.elements[0]
        return NULL

    def _last(self, *args):
        if len(args) != 1:
            return arity_error(len(args), 1)
        arr = args[0]
        if not isinstance(arr, Array):
            return Error(f"argument to `last` must be ARRAY, got {arr.type_name}")
        if arr.elements:
            return arr.elements[-1]
        return NULL

    def _rest(self, *args):
        if len(args) != 1:
            return arity_error(len(args), 1)
        arr = args[0]
        if not isinstance(arr, Array):
            return Error(f"argument to `rest` must be ARRAY, got {arr.type_name}")
        if arr.elements:
            return Array(arr.elements[1:])
        return NULL

    def _push(self, *args):
        if len(args) != 2:
            return arity_error(len(args), 2)
        arr, value = args
        if not isinstance(arr, Array):
            return Error(f"argument to `push` must be ARRAY, got {arr.type_name}")
        return Array(arr.elements + (value,))

    def _type(self, *args):
        if len(args) != 1:
            return arity_error(len(args), 1)
        return String(args[0].type_name)

    def _puts(self, *args):
        out = self.out if self.out is not None else sys.stdout
        for arg in args:
            print(arg.inspect(), file=out)
        return NULL


def default_registry(out=None) -> NativeRegistry:
    """A fresh registry holding only the core built-ins."""
    registry = NativeRegistry()
    registry.load_stdlib(CoreNatives(out))
    return registry
