import io

import pytest

from tamarin.tamarin_builtins import NativeRegistry, CoreNatives, default_registry, arity_error
from tamarin.tamarin_object import (
    Integer, String, Array, NativeFunction, Error, TRUE, NULL,
)
from tamarin.tamarin_runtime import ScriptRunner


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


def assert_err(res, message):
    assert res.status == "error", f"expected error, got {res}"
    assert res.error_message == message


def ints(*ns):
    return Array([Integer(n) for n in ns])


@pytest.fixture
def runner():
    return ScriptRunner()


# --- Core built-ins through the language ---

@pytest.mark.parametrize("src, expected", [
    ('len("")', Integer(0)),
    ('len("four")', Integer(4)),
    ('len("hello world")', Integer(11)),
    ('len("héllo")', Integer(6)),  # UTF-8 byte count
    ("len([1, 2, 3])", Integer(3)),
    ("len([])", Integer(0)),
    ("first([1, 2, 3])", Integer(1)),
    ("first([])", NULL),
    ("last([1, 2, 3])", Integer(3)),
    ("last([])", NULL),
    ("rest([1, 2, 3])", ints(2, 3)),
    ("rest([1])", ints()),
    ("rest([])", NULL),
    ("push([], 1)", ints(1)),
    ("push([1], [2])", Array([Integer(1), ints(2)])),
    ("type(1)", String("INTEGER")),
    ('type("s")', String("STRING")),
    ("type(len)", String("BUILTIN")),
    ("type(fn() { 1 })", String("FUNCTION")),
    ("type(first([]))", String("NULL")),
])
def test_builtin_results(runner, src, expected):
    assert_ok(runner.handle_script(src), expected)


@pytest.mark.parametrize("src, message", [
    ("len(1)", "argument to `len` not supported, got INTEGER"),
    ("len(true)", "argument to `len` not supported, got BOOLEAN"),
    ('len("one", "two")', "wrong number of arguments. got=2, want=1"),
    ("len()", "wrong number of arguments. got=0, want=1"),
    ("first(1)", "argument to `first` must be ARRAY, got INTEGER"),
    ('last("abc")', "argument to `last` must be ARRAY, got STRING"),
    ("rest(true)", "argument to `rest` must be ARRAY, got BOOLEAN"),
    ("push(1, 1)", "argument to `push` must be ARRAY, got INTEGER"),
    ("push([1])", "wrong number of arguments. got=1, want=2"),
    ("type()", "wrong number of arguments. got=0, want=1"),
])
def test_builtin_argument_errors(runner, src, message):
    assert_err(runner.handle_script(src), message)


def test_rest_and_push_leave_the_original_array_unchanged(runner):
    assert_ok(runner.handle_script("let a = [1, 2, 3];"))
    assert_ok(runner.handle_script("let b = rest(a);"))
    assert_ok(runner.handle_script("let c = push(a, 4);"))
    assert_ok(runner.handle_script("a"), ints(1, 2, 3))
    assert_ok(runner.handle_script("b"), ints(2, 3))
    assert_ok(runner.handle_script("c"), ints(1, 2, 3, 4))


def test_puts_writes_inspection_lines_and_returns_null():
    out = io.StringIO()
    runner = ScriptRunner(natives=default_registry(out))
    res = runner.handle_script('puts("hello", 1, [true, "x"])')
    assert_ok(res, NULL)
    assert out.getvalue() == "hello\n1\n[true, x]\n"


def test_puts_defaults_to_stdout(runner, capsys):
    assert_ok(runner.handle_script('puts("to stdout")'), NULL)
    assert capsys.readouterr().out == "to stdout\n"


def test_builtins_are_first_class_values(runner):
    assert_ok(runner.handle_script("let f = first; f([9, 8])"), Integer(9))
    res = runner.handle_script("len")
    assert_ok(res)
    assert res.output == "builtin function\n"


# --- CoreNatives called directly ---

def test_core_natives_direct_calls():
    core = CoreNatives()
    assert core._len(String("abc")) == Integer(3)
    assert core._push(ints(1), TRUE) == Array([Integer(1), TRUE])
    assert core._first(ints()) is NULL


def test_arity_error_message():
    assert arity_error(3, 1) == Error("wrong number of arguments. got=3, want=1")


# --- Registry ---

def test_default_registry_holds_core_builtins():
    registry = default_registry()
    assert sorted(registry.names()) == ["first", "last", "len", "push", "puts", "rest", "type"]
    assert "len" in registry
    assert len(registry) == 7
    assert isinstance(registry.get("len"), NativeFunction)
    assert registry.get("missing") is None


def test_register_wraps_callables_and_accepts_native_functions():
    registry = NativeRegistry()
    native = registry.register("one", lambda: Integer(1))
    assert isinstance(native, NativeFunction)
    assert native.name == "one"
    existing = NativeFunction("two", lambda: Integer(2))
    assert registry.register("two", existing) is existing
    assert registry.names() == ["one", "two"]


def test_register_rejects_non_callables():
    with pytest.raises(TypeError, match="must be callable"):
        NativeRegistry().register("nope", 42)


def test_unregister_removes_a_native(runner):
    runner.natives.unregister("len")
    assert_err(runner.handle_script("len([])"), "identifier not found: len")
    with pytest.raises(KeyError):
        runner.natives.unregister("len")


def test_load_stdlib_binds_underscore_methods():
    class Extras:
        def _double(self, x):
            return Integer(x.value * 2)

        def helper(self):
            return NULL

    registry = NativeRegistry()
    registry.load_stdlib(Extras())
    assert registry.names() == ["double"]


def test_registry_repr_lists_names():
    registry = NativeRegistry()
    registry.register("a", lambda: NULL)
    assert repr(registry) == "<NativeRegistry natives=[a]>"
