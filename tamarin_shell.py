import sys
from pathlib import Path

from tamarin.tamarin_runtime import ScriptRunner
from tamarin.tamarin_http import HttpNatives

BANNER = "Tamarin Shell v0.1"


# A basic input prompt; returns "" at end of input.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def make_runner() -> ScriptRunner:
    runner = ScriptRunner()
    runner.register_host(HttpNatives())
    return runner


def print_bindings(runner: ScriptRunner):
    for name, text in runner.bindings():
        print(f"{name}: {text}")


def run_script_file(file_path: str) -> int:
    """Run a Tamarin script file non-interactively and return an exit status."""
    runner = make_runner()
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        return 1
    result = runner.handle_script(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    sys.stdout.write(result.output)
    return 0


def main(argv=None) -> int:
    """Run a script file when provided, otherwise start the interactive shell."""
    argv = sys.argv[1:] if argv is None else argv
    if argv and not argv[0].startswith("-"):
        return run_script_file(argv[0])

    print(BANNER)
    print("Type 'exit' or press Ctrl+D to quit, ':env' to list bindings.")

    runner = make_runner()
    while True:
        raw = read_line(">> ")
        if raw == "":
            print("\nExiting.")
            break
        line = raw.strip()
        if not line:
            continue
        if line == "exit":
            break
        if line == ":env":
            print_bindings(runner)
            continue

        result = runner.handle_script(line)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            continue
        sys.stdout.write(result.output)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
