"""
Shared constants for the command relay Lambda and operator CLI.

The downstream consumer watches the stored record, so the token values and
record layout must match what it expects.
"""

import time

# --- Command tokens ---

ON_MESSAGE = "on"
OFF_MESSAGE = "off"
COMMANDS = (ON_MESSAGE, OFF_MESSAGE)

# --- Stored record layout ---

RECORD_KEY_ATTR = "key"
RECORD_VALUE_ATTR = "value"
RECORD_UPDATED_ATTR = "updated_at"
DEFAULT_COMMAND_KEY = "message"
DEFAULT_COMMAND_TABLE = "command-relay"

# --- Credential locations ---

BODY_AUTH_FIELD = "authentication"
AUTH_HEADER = "authorization"
SECRET_ENV_VAR = "IFTTT_SECRETKEY"

# --- Response bodies ---

UNAUTHORIZED_BODY = "Unauthorized"
OK_BODY = "OK"
STORE_FAILED_BODY = "Could not save command to database"
NOT_FOUND_BODY = "Not Found"
INTERNAL_ERROR_BODY = "Internal Server Error"


def now_iso():
    """Return current UTC time as an ISO-8601 string (second precision)."""
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
