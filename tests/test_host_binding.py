import pytest

from tamarin import ScriptRunner, native_method
from tamarin.tamarin_object import Integer, String, Array, Error, NULL


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


class GameHost:
    def __init__(self):
        self.hp = 100
        self.log = []

    @native_method
    def take_damage(self, amount):
        self.hp -= amount.value
        return self.hp

    # Name chosen to collide with the core `len` to test shadowing
    @native_method
    def len(self, *args):
        return 1000

    @native_method
    def inventory(self):
        return ["sword", "shield"]

    @native_method
    def note(self, message):
        self.log.append(message.value)

    @native_method
    def stats(self):
        return {"hp": self.hp}

    def secret(self):
        return "not exported"


@pytest.fixture
def host():
    return GameHost()


@pytest.fixture
def runner(host):
    r = ScriptRunner()
    r.register_host(host)
    return r


def test_only_marked_methods_are_bound(host):
    r = ScriptRunner()
    bound = r.register_host(host)
    assert sorted(bound) == ["inventory", "len", "note", "stats", "take_damage"]
    assert "secret" not in r.natives


def test_host_method_is_callable_and_changes_host_state(runner, host):
    assert_ok(runner.handle_script("take_damage(5)"), Integer(95))
    assert host.hp == 95


def test_python_results_are_converted(runner):
    assert_ok(runner.handle_script("inventory()"), Array([String("sword"), String("shield")]))
    assert_ok(runner.handle_script("note(\"saved\")"), NULL)
    assert_ok(runner.handle_script("stats()"), Array([Array([String("hp"), Integer(100)])]))


def test_host_method_shadows_core_native_and_user_binding_shadows_host(runner):
    assert_ok(runner.handle_script("len([1])"), Integer(1000))
    assert_ok(runner.handle_script("let f = fn(x) { let len = fn(a) { 7 }; len(x) }; f([1])"), Integer(7))
    assert_ok(runner.handle_script("len([1])"), Integer(1000))


def test_host_exceptions_become_error_values(runner):
    res = runner.handle_script('take_damage("ten")')
    assert res.status == "error"
    assert res.value == Error("take_damage: unsupported operand type(s) for -=: 'int' and 'str'")


def test_host_arity_mismatch_becomes_error_value(runner):
    res = runner.handle_script("take_damage()")
    assert res.status == "error"
    assert res.error_message.startswith("take_damage: ")


def test_hosts_are_per_session(host):
    bound = ScriptRunner()
    bound.register_host(host)
    unbound = ScriptRunner()
    assert_ok(bound.handle_script("take_damage(1)"), Integer(99))
    assert unbound.handle_script("take_damage(1)").error_message == "identifier not found: take_damage"
