"""OpenAI API integration for voicecal.

This module sends a calendar command to an OpenAI chat model constrained by a
strict JSON schema that mirrors CommandResult, and returns the decoded JSON.
Any failure is raised as RemoteInterpretationError so the caller can fall back
to the deterministic parser.
"""

import os
import json
import logging
from typing import Any, Dict, Optional, Sequence
from openai import OpenAI, APIError, APITimeoutError
from dotenv import load_dotenv

from voicecal.models.command import EventMatchCandidate, Intent
from voicecal.models.constants import DEFAULT_OPENAI_MODEL, DEFAULT_REMOTE_TIMEOUT_SEC

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_MODEL = os.getenv("VOICECAL_OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
REMOTE_TIMEOUT_SEC = float(os.getenv("VOICECAL_REMOTE_TIMEOUT_SEC", str(DEFAULT_REMOTE_TIMEOUT_SEC)))


class RemoteInterpretationError(Exception):
    """The model-backed interpreter could not produce a usable result."""


def _nullable(schema_type: str, description: str) -> Dict[str, Any]:
    return {"type": [schema_type, "null"], "description": description}


def _object(properties: Dict[str, Any], nullable: bool = True) -> Dict[str, Any]:
    # Strict structured outputs require every property listed as required.
    return {
        "type": ["object", "null"] if nullable else "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_DATE = "Date in YYYY-MM-DD format"
_TIME = "Time in 24-hour HH:MM:SS format"

COMMAND_RESULT_SCHEMA: Dict[str, Any] = _object(
    {
        "intent": {
            "type": ["string", "null"],
            "enum": [i.value for i in Intent] + [None],
            "description": "The requested calendar action, or null if the command is not a calendar action.",
        },
        "eventDetails": _object({
            "title": {"type": "string", "description": "A concise event title"},
            "date": {"type": "string", "description": _DATE},
            "startTime": {"type": "string", "description": _TIME},
            "endTime": _nullable("string", _TIME),
            "description": _nullable("string", "Optional notes from the command"),
        }),
        "queryDetails": _object({
            "targetDate": {"type": "string", "description": _DATE},
        }),
        "modifyDetails": _object({
            "eventName": {"type": "string", "description": "Core name of the event to change, without qualifiers"},
            "date": _nullable("string", "New date, " + _DATE),
            "startTime": _nullable("string", "New start, " + _TIME),
            "endTime": _nullable("string", "New end, " + _TIME),
            "description": _nullable("string", "New description"),
        }),
        "deleteDetails": _object({
            "targetDate": {"type": "string", "description": _DATE},
            "startTime": _nullable("string", "Start of the deletion window, " + _TIME),
            "endTime": _nullable("string", "End of the deletion window, " + _TIME),
        }),
        "useLocalFallback": {"type": "boolean", "description": "Always false"},
        "clarificationNeeded": _object({
            "message": {"type": "string", "description": "Question to ask the user"},
            "options": {
                "type": "array",
                "items": _object({
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "startTime": _nullable("string", _TIME),
                }, nullable=False),
            },
        }),
    },
    nullable=False,
)

SYSTEM_PROMPT_TEMPLATE = """You are a strict calendar command interpreter. Analyze the user's request and output a JSON object that follows the provided schema.

The current date is {current_date}.

Rules:
- Resolve every relative date or time ("today", "tomorrow", "next monday", "3pm") to YYYY-MM-DD and 24-hour HH:MM:SS.
- Fill only the details object that matches the intent; set the others to null.
- For MODIFY_EVENT, eventName is the core event name without qualifiers such as "with <person>" ("the product call with Sharan" -> "product call").
- If more than one candidate event plausibly matches the eventName or the delete date/time window, set clarificationNeeded with a short question and one option per matching candidate, and set the details object to null.
- If a start time is not before its end time, set clarificationNeeded quoting both times, and set the details object to null.
- useLocalFallback is always false.

Candidate events (may be empty):
{context_events}"""


def project_candidates(context_events: Optional[Sequence[EventMatchCandidate]]) -> str:
    """Render candidate events as the JSON list embedded in the system prompt."""
    rows = [
        {"id": e.id, "title": e.title, "date": e.date, "startTime": e.start_time}
        for e in (context_events or [])
    ]
    return json.dumps(rows)


class OpenAIClient:
    """Client for OpenAI API integration."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.
            model: Chat model name. If None, uses VOICECAL_OPENAI_MODEL (default gpt-4o-mini).
            timeout: Request timeout in seconds. If None, uses VOICECAL_REMOTE_TIMEOUT_SEC.

        Note:
            If API key is not provided and not found in environment, the client will still
            initialize but every call raises RemoteInterpretationError. This allows graceful
            degradation to the local parser.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or OPENAI_MODEL
        self.timeout = timeout if timeout is not None else REMOTE_TIMEOUT_SEC
        self.client = None

        if self.api_key:
            # One attempt only: failures go straight to the local parser.
            self.client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Remote command parsing will not be available.")

    def parse_command(
        self,
        command_text: str,
        *,
        current_date: str,
        context_events: Optional[Sequence[EventMatchCandidate]] = None,
    ) -> Dict[str, Any]:
        """Parse a command with the model and return the decoded JSON object.

        Args:
            command_text: The user's command
            current_date: Today's date (YYYY-MM-DD) used to resolve relative dates
            context_events: Optional existing events used for disambiguation

        Returns:
            Decoded JSON object following COMMAND_RESULT_SCHEMA

        Raises:
            RemoteInterpretationError: if the client is not configured, the API call
            fails or times out, or the response is not a JSON object.
        """
        if not self.client:
            raise RemoteInterpretationError("OpenAI client not initialized")

        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
            current_date=current_date,
            context_events=project_candidates(context_events),
        )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": command_text},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "calendar_command",
                        "strict": True,
                        "schema": COMMAND_RESULT_SCHEMA,
                    },
                },
                temperature=0,
            )
        except APITimeoutError as e:
            logger.warning(f"OpenAI API timed out after {self.timeout}s.")
            raise RemoteInterpretationError("OpenAI API timed out") from e
        except APIError as e:
            # Handle OpenAI API errors (rate limits, quota issues, invalid key, etc.)
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded.")
            else:
                logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")

            # Don't log full error message as it might contain sensitive info
            raise RemoteInterpretationError(f"OpenAI API error {status_code or error_code or 'unknown'}") from e

        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            logger.warning("OpenAI returned an empty response.")
            raise RemoteInterpretationError("Empty response")

        try:
            result = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse OpenAI JSON response: {e}. Response: {content[:100]}")
            raise RemoteInterpretationError("Response is not valid JSON") from e

        if not isinstance(result, dict):
            raise RemoteInterpretationError("Response is not a JSON object")

        logger.debug(f"OpenAI parsed command with intent {result.get('intent')}")
        return result
