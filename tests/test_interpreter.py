import pytest

from mjss.mjss_datatypes import (
    ErrorLog, ArityError, CommandExecutionFailure, InvalidRegistration, UnrecognizedCommand,
)
from mjss.mjss_interpreter import CommandRegistry, Interpreter, mjss_command, LAST_ANIMATION_KEY


def make_interp(**kwargs):
    log = ErrorLog()
    return Interpreter(log, **kwargs), log


def assert_ok(res):
    assert res.status == "success", f"expected success, got {res.format_errors()}"


# ---- registry ----

def test_register_rejects_empty_name():
    reg = CommandRegistry()
    with pytest.raises(InvalidRegistration):
        reg.register("", lambda args, env: None)
    with pytest.raises(InvalidRegistration):
        reg.register("x", "not callable")


def test_register_overwrites_silently_and_lookup_never_fails():
    reg = CommandRegistry()
    reg.register("greet", lambda args, env: "one")
    reg.register("greet", lambda args, env: "two")
    assert reg.lookup("greet")([], {}) == "two"
    assert reg.lookup("missing") is None
    assert reg.names() == ["greet"]
    assert "greet" in reg and len(reg) == 1


def test_builtins_registered_at_construction():
    interp, _ = make_interp()
    assert "setProperty" in interp.registry
    assert "animateElement" in interp.registry


def test_builtins_do_not_clobber_commands_in_a_supplied_registry():
    reg = CommandRegistry()
    seen = []
    reg.register("setProperty", lambda args, env: seen.append(args))
    interp = Interpreter(ErrorLog(), registry=reg)
    interp.parse("setProperty a b")
    assert seen == [["a", "b"]]
    assert "animateElement" in reg


# ---- built-in commands ----

def test_set_property_joins_multiple_tokens():
    interp, log = make_interp()
    res = interp.parse("setProperty a hello world")
    assert_ok(res)
    assert interp.env == {"a": "hello world"}
    assert len(log) == 0


def test_set_property_collapses_whitespace_runs():
    interp, _ = make_interp()
    interp.parse("setProperty   title   big    red   button")
    assert interp.env["title"] == "big red button"


def test_set_property_arity_error():
    interp, log = make_interp()
    res = interp.parse("setProperty onlykey")
    assert res.status == "error"
    assert interp.env == {}
    assert len(log) == 1
    err = log.errors[0]
    assert isinstance(err, ArityError)
    assert log.events[0].context == "Command 'setProperty'"


def test_animate_element_records_only_reserved_key():
    interp, log = make_interp()
    res = interp.parse("animateElement fadeIn 2s")
    assert_ok(res)
    assert interp.env == {LAST_ANIMATION_KEY: {"animationName": "fadeIn", "duration": "2s"}}


def test_animate_element_ignores_extra_args_and_checks_arity():
    interp, log = make_interp()
    interp.parse("animateElement slide 3s ease")
    assert interp.env[LAST_ANIMATION_KEY] == {"animationName": "slide", "duration": "3s"}
    interp.parse("animateElement slide")
    assert isinstance(log.errors[-1], ArityError)


# ---- dispatch ----

def test_per_line_isolation_unknown_command():
    interp, log = make_interp()
    src = "setProperty first 1\nbogusCommand x y\nsetProperty third 3"
    res = interp.parse(src)
    assert interp.env == {"first": "1", "third": "3"}
    assert len(log) == 1
    assert isinstance(log.errors[0], UnrecognizedCommand)
    assert log.events[0].context == "parse"
    assert log.events[0].line_no == 2
    assert res.status == "error"
    assert [name for name, _ in res.executed] == ["setProperty", "setProperty"]


def test_handler_exception_is_wrapped_and_script_continues():
    interp, log = make_interp()

    def explode(args, env):
        raise ZeroDivisionError("nope")

    interp.register_function("explode", explode)
    interp.parse("explode\nsetProperty after yes")
    assert interp.env == {"after": "yes"}
    err = log.errors[0]
    assert isinstance(err, CommandExecutionFailure)
    assert isinstance(err.original, ZeroDivisionError)
    assert err.__cause__ is err.original
    assert err.line_no == 1


def test_comments_and_blank_lines_are_skipped():
    interp, log = make_interp()
    res = interp.parse("\n   # comment\n\n  setProperty k v  \n")
    assert_ok(res)
    assert interp.env == {"k": "v"}


def test_on_line_parsed_called_for_successful_lines_only():
    calls = []
    interp, _ = make_interp(on_line_parsed=lambda name, args: calls.append((name, args)))
    interp.parse("setProperty a b\nunknown\nsetProperty c")
    assert calls == [("setProperty", ["a", "b"])]


def test_failing_line_hook_counts_as_command_failure():
    def hook(name, args):
        raise RuntimeError("hook broke")

    interp, log = make_interp(on_line_parsed=hook)
    res = interp.parse("setProperty a b")
    assert res.status == "error"
    assert res.executed == []
    assert len(res.errors) == 1
    assert len(log) == 1
    assert isinstance(log.errors[0], CommandExecutionFailure)
    assert isinstance(log.errors[0].original, RuntimeError)
    assert interp.env == {"a": "b"}


def test_environment_is_passed_explicitly_and_replaceable():
    interp, _ = make_interp()
    first = {}
    second = {}
    interp.set_environment(first)
    interp.parse("setProperty x 1")
    interp.set_environment(second)
    interp.parse("setProperty y 2")
    assert first == {"x": "1"}
    assert second == {"y": "2"}


def test_custom_command_receives_string_args():
    interp, _ = make_interp()

    def add(args, env):
        env["sum"] = str(sum(int(a) for a in args))

    interp.register_function("add", add)
    interp.parse("add 1 2 3")
    assert interp.env["sum"] == "6"


def test_missing_error_sink_is_rejected():
    with pytest.raises(TypeError):
        Interpreter(None)


# ---- host binding ----

class Host:
    def __init__(self):
        self.volume = 0
        self.beeps = 0

    @mjss_command
    def set_volume(self, args, env):
        self.volume = int(args[0])
        env["volume"] = args[0]

    @mjss_command(name="beep")
    def make_noise(self, args, env):
        self.beeps += 1

    def not_exposed(self, args, env):
        raise AssertionError("should not be bound")


def test_bind_host_registers_marked_methods():
    interp, log = make_interp()
    host = Host()
    bound = interp.bind_host(host)
    assert sorted(bound) == ["beep", "setVolume"]
    interp.parse("setVolume 7\nbeep\nbeep\nnotExposed")
    assert host.volume == 7
    assert host.beeps == 2
    assert interp.env["volume"] == "7"
    assert isinstance(log.errors[0], UnrecognizedCommand)


def test_debug_trace_goes_to_stderr(monkeypatch, capsys):
    monkeypatch.setenv("MJSS_DEBUG", "1")
    interp, _ = make_interp()
    interp.parse("setProperty a b")
    err = capsys.readouterr().err
    assert "[setProperty] Set 'a' to 'b' in env." in err
