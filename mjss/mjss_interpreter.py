"""
The MJSS command interpreter.

A command script is a list of invocations, one per line:

    setProperty buttonColor red
    animateElement fadeIn 2s

The first token names a registered command; the remaining tokens are passed
to its handler as string arguments. A failing line is reported to the error
sink and never stops the lines after it.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from mjss.mjss_config import dbg
from mjss.mjss_datatypes import (
    ArityError,
    CommandExecutionFailure,
    ErrorEvent,
    ErrorSink,
    InvalidRegistration,
    UnrecognizedCommand,
)

Environment = Dict[str, Any]
CommandHandler = Callable[[List[str], Environment], Any]

# Environment key written by animateElement
LAST_ANIMATION_KEY = "lastAnimation"


def mjss_command(func=None, *, name: Optional[str] = None):
    """Marks a host method as an MJSS command.

    Usable bare (`@mjss_command`) or with an explicit command name
    (`@mjss_command(name="beep")`). Without a name the method name is turned
    into camelCase: `set_volume` becomes `setVolume`.
    """
    def mark(f):
        f._mjss_command = name or _camel(f.__name__)
        return f
    if func is None:
        return mark
    return mark(func)


def _camel(name: str) -> str:
    head, *rest = name.strip("_").split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


# ===================================================================
# Registry
# ===================================================================

class CommandRegistry:
    """Name -> handler table. Later registrations replace earlier ones."""

    def __init__(self):
        self._handlers: Dict[str, CommandHandler] = {}

    def register(self, name: str, handler: CommandHandler):
        if not isinstance(name, str) or not name:
            raise InvalidRegistration(name)
        if not callable(handler):
            raise InvalidRegistration(name, "handler must be callable")
        self._handlers[name] = handler

    def lookup(self, name: str) -> Optional[CommandHandler]:
        return self._handlers.get(name)

    def names(self) -> List[str]:
        return list(self._handlers)

    def __contains__(self, name) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def bind_host(self, host: Any) -> List[str]:
        """Registers every @mjss_command method of host. Returns the bound names."""
        bound = []
        for attr, member in inspect.getmembers(host):
            if not callable(member):
                continue
            cmd_name = getattr(member, "_mjss_command", None)
            if cmd_name is None:
                func = getattr(member, "__func__", None)
                cmd_name = getattr(func, "_mjss_command", None)
            if not cmd_name:
                continue
            self.register(cmd_name, member)
            bound.append(cmd_name)
        return bound


# ===================================================================
# Built-in commands
# ===================================================================

class StdLib:
    """Python implementations of the built-in commands.

    Each `_snake_name` method is registered as `snakeName`, unless the
    registry already holds a command under that name.
    """

    def __init__(self, registry: CommandRegistry):
        for attr, member in inspect.getmembers(self):
            if attr.startswith('_') and not attr.startswith('__') and callable(member):
                cmd_name = _camel(attr)
                if cmd_name not in registry:
                    registry.register(cmd_name, member)

    def _set_property(self, args: List[str], env: Environment):
        if len(args) < 2:
            raise ArityError("setProperty", 2, len(args), "key, value")
        key, *rest = args
        value = " ".join(rest)
        env[key] = value
        dbg(f"[setProperty] Set '{key}' to '{value}' in env.")

    def _animate_element(self, args: List[str], env: Environment):
        if len(args) < 2:
            raise ArityError("animateElement", 2, len(args), "animationName, duration")
        animation_name, duration = args[0], args[1]
        dbg(f"[animateElement] Animating with '{animation_name}' for '{duration}'.")
        env[LAST_ANIMATION_KEY] = {"animationName": animation_name, "duration": duration}


# ===================================================================
# Interpreter
# ===================================================================

@dataclass
class ScriptResult:
    """The outcome of one Interpreter.parse call."""
    status: Literal['success', 'error'] = 'success'
    executed: List[Tuple[str, List[str]]] = field(default_factory=list)
    errors: List[ErrorEvent] = field(default_factory=list)

    def format_errors(self) -> str:
        return "\n".join(e.format() for e in self.errors)


class Interpreter:
    """Parses and executes command scripts against a CommandRegistry."""

    def __init__(self,
                 on_error: ErrorSink,
                 *,
                 on_line_parsed: Optional[Callable[[str, List[str]], None]] = None,
                 env: Optional[Environment] = None,
                 registry: Optional[CommandRegistry] = None):
        if not callable(on_error):
            raise TypeError("Interpreter requires an on_error sink")
        self.on_error = on_error
        self.on_line_parsed = on_line_parsed
        self.env: Environment = env if env is not None else {}
        self.registry = registry if registry is not None else CommandRegistry()
        StdLib(self.registry)

    def set_environment(self, env: Environment):
        """Replaces the shared environment handed to every handler."""
        self.env = env

    def register_function(self, name: str, handler: CommandHandler):
        self.registry.register(name, handler)

    def bind_host(self, host: Any) -> List[str]:
        return self.registry.bind_host(host)

    def parse(self, script: str) -> ScriptResult:
        """Runs every line of script. Never raises for a failing line."""
        result = ScriptResult()
        for line_no, raw_line in enumerate(script.split("\n"), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            command, *args = line.split()
            handler = self.registry.lookup(command)
            if handler is None:
                self._report(result, "parse", UnrecognizedCommand(command), line_no, line)
                continue

            # on_line_parsed runs inside the same guard as the handler
            try:
                handler(args, self.env)
                if self.on_line_parsed:
                    self.on_line_parsed(command, args)
                result.executed.append((command, args))
            except CommandExecutionFailure as e:
                self._report(result, f"Command '{command}'", e, line_no, line)
            except Exception as e:
                failure = CommandExecutionFailure(command, e)
                failure.__cause__ = e
                self._report(result, f"Command '{command}'", failure, line_no, line)
        return result

    def _report(self, result: ScriptResult, context: str, error: BaseException, line_no: int, line: str):
        error.line_no = line_no
        error.line = line
        result.status = 'error'
        result.errors.append(ErrorEvent(context, error, line_no, line))
        dbg("line", line_no, context, type(error).__name__)
        self.on_error(context, error)


__all__ = [
    "CommandRegistry",
    "Interpreter",
    "ScriptResult",
    "StdLib",
    "mjss_command",
    "LAST_ANIMATION_KEY",
]
