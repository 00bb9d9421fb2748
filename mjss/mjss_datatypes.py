"""
Defines the core data types for the MJSS runtime.

This module provides the Property Tree (the nested string-keyed structure a
property script describes), the merge policies used to combine trees, and the
error taxonomy shared by the interpreter and the engine.
"""

import sys
import collections.abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union


# =================================================================
# Errors
# =================================================================

class MJSSError(Exception):
    """Base class for all MJSS errors."""
    pass


class InvalidRegistration(MJSSError):
    def __init__(self, name: Any, reason: str = "command name must be a non-empty string"):
        super().__init__(f"Cannot register MJSS command {name!r}: {reason}")
        self.name = name
        self.reason = reason


class UnrecognizedCommand(MJSSError):
    def __init__(self, command: str):
        super().__init__(f"Unrecognized command: {command}")
        self.command = command


class CommandExecutionFailure(MJSSError):
    """A registered handler raised while executing a command line."""

    def __init__(self, command: str, original: Optional[BaseException] = None, message: Optional[str] = None):
        if message is None:
            message = f"Command '{command}' failed: {original}"
        super().__init__(message)
        self.command = command
        self.original = original


class ArityError(CommandExecutionFailure):
    def __init__(self, command: str, required: int, given: int, params: str = ""):
        detail = f": {params}" if params else ""
        super().__init__(
            command,
            message=f"{command} requires at least {required} args{detail} (got {given})",
        )
        self.required = required
        self.given = given


class TargetNotFound(MJSSError):
    def __init__(self, identifier: str):
        super().__init__(f"MJSSEngine: Container element with ID '{identifier}' not found.")
        self.identifier = identifier


class ParseAnomaly(MJSSError):
    """A malformed property-script line. Only raised by the strict parser."""

    def __init__(self, line_no: int, line: str, reason: str):
        super().__init__(f"Malformed line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line
        self.reason = reason


class StoreError(MJSSError):
    pass


# =================================================================
# Error events and sinks
# =================================================================

@dataclass
class ErrorEvent:
    """A single failure handed to an error sink."""
    context: str
    error: BaseException
    line_no: Optional[int] = None
    line: Optional[str] = None

    def format(self) -> str:
        where = f" (line {self.line_no})" if self.line_no is not None else ""
        return f"[{self.context}]{where} {type(self.error).__name__}: {self.error}"


ErrorSink = Callable[[str, BaseException], None]


class ErrorLog:
    """An error sink that keeps every event it receives."""

    def __init__(self):
        self.events: List[ErrorEvent] = []

    def __call__(self, context: str, error: BaseException):
        self.events.append(ErrorEvent(
            context,
            error,
            getattr(error, "line_no", None),
            getattr(error, "line", None),
        ))

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    @property
    def errors(self) -> List[BaseException]:
        return [e.error for e in self.events]

    def clear(self):
        self.events.clear()


class StderrSink:
    """Writes each failure to stderr as a one-line report."""

    def __init__(self, prefix: str = "MJSS", stream=None):
        self.prefix = prefix
        self.stream = stream

    def __call__(self, context: str, error: BaseException):
        stream = self.stream or sys.stderr
        print(f"[{self.prefix} {context} ERROR] {error}", file=stream)


# =================================================================
# Property Tree
# =================================================================

class PropertyTree(collections.abc.Mapping):
    """A mapping of string keys to string leaves or nested PropertyTrees.

    Keys are case-sensitive and never empty. Leaves are always strings; no
    number or boolean inference happens anywhere in MJSS. Iteration follows
    insertion order. There is deliberately no deletion: keys only accumulate
    or get overwritten.
    """

    def __init__(self, bindings: Optional[Dict[str, Any]] = None):
        self.bindings: Dict[str, Union[str, 'PropertyTree']] = {}
        if bindings:
            for key, value in bindings.items():
                self[key] = value

    @classmethod
    def from_dict(cls, data: collections.abc.Mapping) -> 'PropertyTree':
        """Builds a tree from plain nested mappings, coercing leaves with str()."""
        tree = cls()
        for key, value in data.items():
            if isinstance(value, collections.abc.Mapping):
                tree[str(key)] = cls.from_dict(value)
            elif value is None:
                tree[str(key)] = ""
            else:
                tree[str(key)] = str(value)
        return tree

    def __setitem__(self, key: str, value: Union[str, 'PropertyTree']):
        if not isinstance(key, str):
            raise TypeError(f"PropertyTree key must be a str, not {type(key)}")
        if not key:
            raise ValueError("PropertyTree keys cannot be empty")
        if not isinstance(value, (str, PropertyTree)):
            raise TypeError(f"PropertyTree values must be str or PropertyTree, not {type(value)}")
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Union[str, 'PropertyTree']:
        return self.bindings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __eq__(self, other):
        if isinstance(other, PropertyTree):
            return self.to_dict() == other.to_dict()
        if isinstance(other, collections.abc.Mapping):
            return self.to_dict() == _plain(other)
        return NotImplemented

    __hash__ = None

    def subtree(self, key: str) -> 'PropertyTree':
        """Returns the nested tree at key, replacing a leaf or creating it if needed."""
        current = self.bindings.get(key)
        if not isinstance(current, PropertyTree):
            current = PropertyTree()
            self.bindings[key] = current
        return current

    def copy(self) -> 'PropertyTree':
        out = PropertyTree()
        for key, value in self.bindings.items():
            out.bindings[key] = value.copy() if isinstance(value, PropertyTree) else value
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {k: (v.to_dict() if isinstance(v, PropertyTree) else v) for k, v in self.bindings.items()}

    def __repr__(self) -> str:
        return f"PropertyTree({self.to_dict()!r})"


def _plain(data: collections.abc.Mapping) -> Dict[str, Any]:
    return {k: (_plain(v) if isinstance(v, collections.abc.Mapping) else v) for k, v in data.items()}


# =================================================================
# Merge
# =================================================================

class MergePolicy(Enum):
    REPLACE = "replace"
    MERGE = "merge"


def merge(base: PropertyTree, incoming: PropertyTree, policy: MergePolicy = MergePolicy.MERGE) -> PropertyTree:
    """Combines two trees without mutating either.

    REPLACE returns a copy of `incoming`. MERGE lets top-level keys of
    `incoming` win; where both sides hold a nested tree under the same key the
    two are merged one level deep. Anything below that level is taken from
    `incoming` wholesale.
    """
    if policy is MergePolicy.REPLACE:
        return incoming.copy()
    if policy is not MergePolicy.MERGE:
        raise ValueError(f"Unknown merge policy: {policy!r}")

    out = base.copy()
    for key, value in incoming.items():
        current = out.get(key)
        if isinstance(value, PropertyTree) and isinstance(current, PropertyTree):
            for nested_key, nested_value in value.items():
                current[nested_key] = nested_value.copy() if isinstance(nested_value, PropertyTree) else nested_value
        else:
            out[key] = value.copy() if isinstance(value, PropertyTree) else value
    return out


__all__ = [
    "MJSSError",
    "InvalidRegistration",
    "UnrecognizedCommand",
    "CommandExecutionFailure",
    "ArityError",
    "TargetNotFound",
    "ParseAnomaly",
    "StoreError",
    "ErrorEvent",
    "ErrorSink",
    "ErrorLog",
    "StderrSink",
    "PropertyTree",
    "MergePolicy",
    "merge",
]
