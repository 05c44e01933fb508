"""High-level interpretation for calendar commands.

This module is the single entrypoint used by the API. A command goes through an
ordered chain of interpreters: the OpenAI-backed one first, then the
deterministic parser. The first interpreter that does not raise wins; there is
exactly one attempt per interpreter and no retry.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from pydantic import ValidationError

from voicecal.integrations.openai_client import OpenAIClient, RemoteInterpretationError
from voicecal.interpreter.deterministic_parser import parse_command
from voicecal.models.command import CommandResult, EventMatchCandidate

logger = logging.getLogger(__name__)


class InterpretationError(Exception):
    """Raised when every interpreter in a chain failed."""


class CommandInterpreter(Protocol):
    name: str

    def interpret(
        self,
        command_text: str,
        context_events: Sequence[EventMatchCandidate],
        now: datetime,
    ) -> CommandResult:
        ...


class RemoteInterpreter:
    """Interpreter backed by the OpenAI structured-output call."""

    name = "remote"

    def __init__(self, client: Optional[OpenAIClient] = None):
        self.client = client or OpenAIClient()

    def interpret(
        self,
        command_text: str,
        context_events: Sequence[EventMatchCandidate],
        now: datetime,
    ) -> CommandResult:
        payload = self.client.parse_command(
            command_text,
            current_date=now.date().isoformat(),
            context_events=context_events,
        )
        try:
            result = CommandResult.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"OpenAI response does not satisfy the command schema ({e.error_count()} errors).")
            raise RemoteInterpretationError("Response does not satisfy the command schema") from e
        return result.model_copy(update={"use_local_fallback": False})


class LocalInterpreter:
    """Interpreter backed by the deterministic parser. Never raises for any text."""

    name = "local"

    def interpret(
        self,
        command_text: str,
        context_events: Sequence[EventMatchCandidate],
        now: datetime,
    ) -> CommandResult:
        return parse_command(command_text, context_events, now=now)


class InterpreterChain:
    """Ordered list of interpreters; the first one to return a result wins."""

    def __init__(self, interpreters: Sequence[CommandInterpreter]):
        if not interpreters:
            raise ValueError("InterpreterChain needs at least one interpreter")
        self.interpreters: List[CommandInterpreter] = list(interpreters)

    def interpret(
        self,
        command_text: str,
        context_events: Optional[Sequence[EventMatchCandidate]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> CommandResult:
        now = now or datetime.now()
        events = list(context_events or [])
        last_error: Optional[Exception] = None

        for interpreter in self.interpreters:
            try:
                result = interpreter.interpret(command_text, events, now)
            except Exception as e:
                # Any failure moves on to the next interpreter.
                logger.warning(f"Interpreter '{interpreter.name}' failed ({type(e).__name__}); falling back.")
                last_error = e
                continue
            logger.debug(f"Interpreter '{interpreter.name}' resolved intent {result.intent}")
            return result

        raise InterpretationError("No interpreter could handle the command") from last_error


def build_default_chain(client: Optional[OpenAIClient] = None) -> InterpreterChain:
    """Remote interpreter first, deterministic parser second."""
    return InterpreterChain([RemoteInterpreter(client), LocalInterpreter()])


# Default chain (singleton pattern)
_default_chain: Optional[InterpreterChain] = None


def get_default_chain() -> InterpreterChain:
    global _default_chain
    if _default_chain is None:
        _default_chain = build_default_chain()
    return _default_chain


def interpret_command(
    command_text: str,
    context_events: Optional[Sequence[EventMatchCandidate]] = None,
    *,
    now: Optional[datetime] = None,
    chain: Optional[InterpreterChain] = None,
) -> CommandResult:
    """Interpret one command into a CommandResult.

    `now` is the reference moment for relative dates; it defaults to the wall
    clock only here, at the entry point.
    """
    return (chain or get_default_chain()).interpret(command_text, context_events, now=now)
