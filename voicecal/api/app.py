"""FastAPI web application for voicecal."""

import logging
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from voicecal.engine.executor import ExecutionResult, execute_command
from voicecal.integrations.google_calendar import CalendarError, GoogleCalendarClient
from voicecal.interpreter.interpret import InterpreterChain, get_default_chain
from voicecal.models.command import EventMatchCandidate

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="voicecal API",
    description="Turns spoken or typed calendar commands into calendar operations",
    version="0.1.0"
)


class CommandRequest(BaseModel):
    """Request body for command endpoints."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    command_text: str = Field(..., min_length=1, description="Transcribed voice or typed command")
    context_events: List[EventMatchCandidate] = Field(
        default_factory=list, description="Existing events used to disambiguate modify/delete commands"
    )


class CommandResponse(ExecutionResult):
    """Executor outcome plus the interpreted command."""
    command: dict


def get_interpreter_chain() -> InterpreterChain:
    return get_default_chain()


def get_calendar_client() -> GoogleCalendarClient:
    try:
        return GoogleCalendarClient()
    except FileNotFoundError as e:
        logger.error(f"Google Calendar is not connected: {e}")
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Please connect your Google Calendar first.",
        )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/api/interpret")
def interpret(
    request: CommandRequest,
    chain: InterpreterChain = Depends(get_interpreter_chain),
):
    """Interpret a command without touching the calendar."""
    result = chain.interpret(request.command_text, request.context_events)
    return result.to_json_dict()


@app.post("/api/command", response_model=CommandResponse)
def command(
    request: CommandRequest,
    chain: InterpreterChain = Depends(get_interpreter_chain),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
):
    """Interpret a command and execute it against Google Calendar."""
    result = chain.interpret(request.command_text, request.context_events)
    try:
        outcome = execute_command(result, calendar)
    except CalendarError as e:
        logger.error(f"Command execution failed: {e}")
        raise HTTPException(status_code=502, detail=f"Calendar request failed: {str(e)}")

    return CommandResponse(**outcome.model_dump(), command=result.to_json_dict())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
