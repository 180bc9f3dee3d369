"""
Conversion between plain Python data and Tamarin values.

Used at the host boundary: native functions written against Python data and
decoded network payloads pass through here.
"""
from __future__ import annotations

from typing import Any
import collections.abc

from tamarin.tamarin_object import (
    Object, Integer, Boolean, String, Array, Error, Null, NULL, native_bool, wrap_int,
)


def to_value(obj: Any) -> Object:
    """
    Convert a Python value to a Tamarin value.

    Mappings have no Tamarin counterpart and become an Array of
    `[key, value]` pairs, in iteration order. Floats are truncated.
    """
    match obj:
        case Object():
            return obj
        case None:
            return NULL
        case bool():
            return native_bool(obj)
        case int():
            return Integer(wrap_int(obj))
        case float():
            return Integer(wrap_int(int(obj)))
        case str():
            return String(obj)
        case bytes() | bytearray():
            return String(bytes(obj).decode('utf-8', errors='replace'))
    if isinstance(obj, collections.abc.Mapping):
        return Array(Array((to_value(k), to_value(v))) for k, v in obj.items())
    if isinstance(obj, collections.abc.Iterable):
        return Array(to_value(x) for x in obj)
    return Error(f"cannot convert {type(obj).__name__} to a value")


def to_python(value: Object) -> Any:
    """Convert a Tamarin value to plain Python data (inverse of `to_value` for scalars and arrays)."""
    match value:
        case Null():
            return None
        case Boolean(value=v) | Integer(value=v) | String(value=v):
            return v
        case Array(elements=els):
            return [to_python(e) for e in els]
        case Error(message=m):
            return m
        case _:
            return value
