import importlib.util
import sys
from pathlib import Path
import uuid


def _load_repl_module():
    """Dynamically load the top-level tamarin_shell.py as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "tamarin_shell.py"
    mod_name = f"tamarin_repl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


def _feed(monkeypatch, repl, lines):
    it = iter(lines)
    prompts = []

    def fake_read_line(prompt: str) -> str:
        prompts.append(prompt)
        return next(it)
    monkeypatch.setattr(repl, "read_line", fake_read_line)
    return prompts


def test_repl_exit_immediately(monkeypatch, capsys):
    repl = _load_repl_module()
    prompts = _feed(monkeypatch, repl, ["exit\n"])

    assert repl.main([]) == 0
    out = capsys.readouterr().out
    assert "Tamarin Shell v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit" in out
    assert prompts == [">> "]


def test_repl_prints_side_effects_and_values(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        'puts("hello from tamarin")\n',
        "1 + 2\n",
        "exit\n",
    ])

    repl.main([])
    out, err = capsys.readouterr()
    assert "hello from tamarin\nnull\n" in out
    assert "3\n" in out
    assert err == ""


def test_repl_keeps_bindings_between_lines(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        "let double = fn(x) { x * 2 };\n",
        "double(21)\n",
        "exit\n",
    ])

    repl.main([])
    out = capsys.readouterr().out
    assert "null" not in out
    assert "42\n" in out


def test_repl_errors_print_to_stderr(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        "5 + true\n",
        "let = 1\n",
        "exit\n",
    ])

    repl.main([])
    out, err = capsys.readouterr()
    assert "Tamarin Shell v0.1" in out
    assert "ERROR: type mismatch: INTEGER + BOOLEAN" in err
    assert "Woops!\n parser errors:\n\texpected next token to be IDENT, got = instead" in err


def test_repl_env_command_lists_bindings(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        "let a = 1;\n",
        'let b = "two";\n',
        ":env\n",
        "exit\n",
    ])

    repl.main([])
    out = capsys.readouterr().out
    assert "a: 1\nb: two\n" in out


def test_repl_skips_blank_lines_and_quits_on_eof(monkeypatch, capsys):
    repl = _load_repl_module()
    prompts = _feed(monkeypatch, repl, ["\n", "   \n", ""])

    assert repl.main([]) == 0
    out = capsys.readouterr().out
    assert out.rstrip().endswith("Exiting.")
    assert len(prompts) == 3


def test_run_script_file(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "prog.tm"
    script.write_text("let fib = fn(n) { if (n < 2) { n } else { fib(n - 1) + fib(n - 2) } };\nfib(10)\n",
                      encoding="utf-8")

    assert repl.main([str(script)]) == 0
    assert capsys.readouterr().out == "55\n"


def test_run_script_file_reports_errors(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "bad.tm"
    script.write_text("missing + 1", encoding="utf-8")

    assert repl.run_script_file(str(script)) == 1
    assert "ERROR: identifier not found: missing" in capsys.readouterr().err


def test_run_script_file_missing(tmp_path, capsys):
    repl = _load_repl_module()
    missing = tmp_path / "nope.tm"

    assert repl.run_script_file(str(missing)) == 1
    assert "Error: file not found" in capsys.readouterr().err


def test_shell_sessions_expose_http_get():
    repl = _load_repl_module()
    runner = repl.make_runner()
    assert "http_get" in runner.natives
    assert runner.handle_script("type(http_get)").value.value == "BUILTIN"


def test_repl_survives_pathological_lines(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        "1" * 5000 + "\n",
        "(" * 20000 + "1" + ")" * 20000 + "\n",
        "7 * 6\n",
        "exit\n",
    ])

    assert repl.main([]) == 0
    out, err = capsys.readouterr()
    assert "could not parse" in err
    assert "InternalError: RecursionError" in err
    assert "42\n" in out
