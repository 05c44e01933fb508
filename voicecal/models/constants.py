"""Constants for voicecal.

This module centralizes default values used by the interpreter and the executor.
"""


# Interpreter defaults
DEFAULT_START_TIME = "09:00:00"
DEFAULT_EVENT_DURATION_MINUTES = 60

# Without am/pm, hours in this range are read as afternoon ("meet at 3")
IMPLIED_PM_HOURS = range(1, 8)

# Remote interpreter
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_REMOTE_TIMEOUT_SEC = 10.0

# Executor
DEFAULT_TIMEZONE = "UTC"
MODIFY_SEARCH_WINDOW_DAYS = 30
MAX_QUERY_RESULTS = 10
