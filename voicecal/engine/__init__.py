"""Command execution engine for voicecal."""

from voicecal.engine.executor import ExecutionResult, ExecutionStatus, execute_command

__all__ = [
    "ExecutionResult",
    "ExecutionStatus",
    "execute_command",
]
