"""
Defines the runtime values of the Tamarin language and the Environment.

Values are immutable once built. Arrays hold a tuple, so built-ins that
"change" an array return a new one. Booleans and null are compared by value,
never by identity; the module-level TRUE/FALSE/NULL are conveniences only.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING
import collections.abc

if TYPE_CHECKING:
    from tamarin.tamarin_ast import BlockStatement

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def wrap_int(n: int) -> int:
    """Reduce a Python int into the signed 64-bit range (two's complement)."""
    n &= 0xFFFFFFFFFFFFFFFF
    if n > INT64_MAX:
        n -= 1 << 64
    return n


# =================================================================
# Value types
# =================================================================

class Object(ABC):
    """Abstract base class for all Tamarin values."""
    type_name: str = "OBJECT"

    def inspect(self) -> str:
        from tamarin.tamarin_printer import Printer
        return Printer().pformat(self)

    def __str__(self) -> str:
        return self.inspect()


@dataclass(frozen=True)
class Integer(Object):
    value: int
    type_name = "INTEGER"


@dataclass(frozen=True)
class Boolean(Object):
    value: bool
    type_name = "BOOLEAN"


@dataclass(frozen=True)
class String(Object):
    value: str
    type_name = "STRING"


@dataclass(frozen=True)
class Array(Object):
    elements: Tuple[Object, ...] = ()
    type_name = "ARRAY"

    def __post_init__(self):
        # Accept any iterable; store an immutable tuple.
        if not isinstance(self.elements, tuple):
            object.__setattr__(self, "elements", tuple(self.elements))

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True)
class Error(Object):
    """An evaluation error. Flows through the same channel as ordinary values."""
    message: str
    type_name = "ERROR"


class Null(Object):
    """The absence of a value. All Null instances are equal."""
    type_name = "NULL"

    def __eq__(self, other):
        return isinstance(other, Null)

    def __hash__(self):
        return hash(Null)

    def __repr__(self) -> str:
        return "Null()"


@dataclass(eq=False)
class Function(Object):
    """A closure: parameter names, the body block, and the defining Environment.

    The environment is shared, not copied, so later bindings in the defining
    scope remain visible to the function. Functions compare by identity.
    """
    parameters: List[str]
    body: "BlockStatement"
    env: "Environment" = field(repr=False)
    type_name = "FUNCTION"


@dataclass(eq=False)
class NativeFunction(Object):
    """A host-supplied callable taking Tamarin values and returning one."""
    name: str
    fn: Callable[..., Object] = field(repr=False)
    type_name = "BUILTIN"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool(flag: bool) -> Boolean:
    return TRUE if flag else FALSE


def is_error(obj: Any) -> bool:
    return isinstance(obj, Error)


def is_truthy(obj: Object) -> bool:
    """Only false and null are falsy; 0, "" and [] are truthy."""
    match obj:
        case Null():
            return False
        case Boolean(value=v):
            return v
        case _:
            return True


# =================================================================
# Environment
# =================================================================

class Environment:
    """A chained name-to-value scope.

    Lookup checks this scope first, then walks the outer links. Binding always
    writes into this scope, shadowing any outer binding of the same name.
    Insertion order of names is preserved for display.
    """
    def __init__(self, outer: Optional['Environment'] = None):
        self.store: Dict[str, Object] = {}
        self.outer = outer

    def extend(self) -> 'Environment':
        """Create a child scope whose outer link is this environment."""
        return Environment(outer=self)

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the Environment in the lookup chain that binds `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                return env
            env = env.outer
        return None

    def get(self, name: str, default: Optional[Object] = None) -> Optional[Object]:
        owner = self.find_owner(name)
        if owner is not None:
            return owner.store[name]
        return default

    def set(self, name: str, value: Object) -> Object:
        self.store[name] = value
        return value

    def keys(self) -> collections.abc.KeysView:
        """Names bound in this scope only, in insertion order."""
        return self.store.keys()

    def items(self) -> collections.abc.ItemsView:
        return self.store.items()

    def __getitem__(self, name: str) -> Object:
        owner = self.find_owner(name)
        if owner is None:
            raise KeyError(f"'{name}'")
        return owner.store[name]

    def __setitem__(self, name: str, value: Object):
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_owner(name) is not None

    def __len__(self) -> int:
        return len(self.store)

    def __repr__(self) -> str:
        keys = ', '.join(self.store.keys())
        outer_id = f", outer=#{id(self.outer)}" if self.outer else ""
        return f"<Environment bindings=[{keys}]{outer_id}>"
