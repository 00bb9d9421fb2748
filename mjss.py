import os
import sys
from pathlib import Path

import yaml

from mjss.mjss_config import load_config, make_store, set_debug
from mjss.mjss_datatypes import ErrorLog, MergePolicy, StderrSink
from mjss.mjss_engine import Document, ScriptEngine
from mjss.mjss_interpreter import Interpreter

USAGE = """usage:
  mjss.py run <file>               run a command script
  mjss.py apply <file> [--replace] apply a property script to the saved state
  mjss.py show                     print the saved property script
  mjss.py export <json|yaml|xml>   print the saved properties in another format
  mjss.py                          interactive command REPL
"""


def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def _read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)


def _open_engine(config, on_error) -> ScriptEngine:
    doc = Document()
    doc.create_element("div", "app")
    return ScriptEngine(
        "app",
        document=doc,
        store=make_store(config),
        storage_key=config.storage_key,
        strict=config.strict,
        on_error=on_error,
    )


def run_script_file(file_path: str) -> int:
    """Run a command script non-interactively; print the environment as YAML."""
    source = _read_source(file_path)
    interp = Interpreter(StderrSink())
    result = interp.parse(source)
    if interp.env:
        print(yaml.safe_dump(interp.env, sort_keys=False).rstrip())
    return 0 if result.status == 'success' else 1


def apply_script_file(config, file_path: str, replace: bool = False) -> int:
    source = _read_source(file_path)
    errors = ErrorLog()
    engine = _open_engine(config, errors)
    mode = MergePolicy.REPLACE if replace else MergePolicy.MERGE
    engine.update(source, mode)
    for event in errors:
        print(event.format(), file=sys.stderr)
    print(engine.script)
    return 1 if len(errors) else 0


def show(config, fmt=None) -> int:
    errors = ErrorLog()
    engine = _open_engine(config, errors)
    for event in errors:
        print(event.format(), file=sys.stderr)
    if fmt is None:
        print(engine.script)
    else:
        try:
            print(engine.export(fmt).rstrip())
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 1 if len(errors) else 0


def repl() -> int:
    print("MJSS REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")
    interp = Interpreter(StderrSink())

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
        if line == "env":
            print(yaml.safe_dump(interp.env, sort_keys=False).rstrip() if interp.env else "{}")
            continue
        interp.parse(line)
    return 0


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    config = load_config(os.environ.get("MJSS_CONFIG"))
    if config.debug:
        set_debug(True)

    if not args:
        return repl()

    cmd, rest = args[0], args[1:]
    if cmd == "run" and len(rest) == 1:
        return run_script_file(rest[0])
    if cmd == "apply" and rest:
        replace = "--replace" in rest
        files = [a for a in rest if a != "--replace"]
        if len(files) == 1:
            return apply_script_file(config, files[0], replace)
    if cmd == "show" and not rest:
        return show(config)
    if cmd == "export" and len(rest) == 1:
        return show(config, rest[0])

    print(USAGE, file=sys.stderr, end="")
    return 2


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
