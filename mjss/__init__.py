from mjss.mjss_datatypes import (
    MJSSError,
    InvalidRegistration,
    UnrecognizedCommand,
    CommandExecutionFailure,
    ArityError,
    TargetNotFound,
    ParseAnomaly,
    StoreError,
    ErrorEvent,
    ErrorLog,
    StderrSink,
    PropertyTree,
    MergePolicy,
    merge,
)
from mjss.mjss_parser import PropertyParser, parse
from mjss.mjss_printer import Printer, serialize
from mjss.mjss_interpreter import CommandRegistry, Interpreter, ScriptResult, mjss_command
from mjss.mjss_engine import ScriptEngine, RenderTarget, RenderContainer, Element, Document
from mjss.mjss_store import Store, MemoryStore, FileStore
from mjss.mjss_config import Config, load_config, make_store

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
    "ErrorLog",
    "StderrSink",
    "PropertyTree",
    "MergePolicy",
    "merge",
    "PropertyParser",
    "parse",
    "Printer",
    "serialize",
    "CommandRegistry",
    "Interpreter",
    "ScriptResult",
    "mjss_command",
    "ScriptEngine",
    "RenderTarget",
    "RenderContainer",
    "Element",
    "Document",
    "Store",
    "MemoryStore",
    "FileStore",
    "Config",
    "load_config",
    "make_store",
]
