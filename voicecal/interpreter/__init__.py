"""Command interpretation for voicecal."""

from voicecal.interpreter.classifier import classify_intent
from voicecal.interpreter.datetime_resolver import TimeParseError, convert_to_24_hour, resolve_date
from voicecal.interpreter.deterministic_parser import parse_command
from voicecal.interpreter.interpret import (
    InterpretationError,
    InterpreterChain,
    LocalInterpreter,
    RemoteInterpreter,
    build_default_chain,
    interpret_command,
)

__all__ = [
    "classify_intent",
    "TimeParseError",
    "convert_to_24_hour",
    "resolve_date",
    "parse_command",
    "InterpretationError",
    "InterpreterChain",
    "LocalInterpreter",
    "RemoteInterpreter",
    "build_default_chain",
    "interpret_command",
]
