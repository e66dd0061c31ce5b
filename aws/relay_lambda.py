"""Command relay Lambda — authenticated on/off switch for a downstream consumer.

Routes:
    /turn-on     Store "on" in the command record
    /turn-off    Store "off" in the command record

Auth: `authentication` body field or `authorization` header checked against
IFTTT_SECRETKEY (see relay_auth.py). Any HTTP method is accepted, since IFTTT
webhooks can be configured with GET, POST or PUT.

Deploy either as one function (handler: relay_lambda.lambda_handler) or as
two (handlers: relay_lambda.turn_on and relay_lambda.turn_off).

Environment variables:
    IFTTT_SECRETKEY: Shared secret expected from callers
    COMMAND_TABLE: DynamoDB table holding the command record (default: command-relay)
    COMMAND_KEY: Key of the command record (default: message)
"""

import os

import boto3

from relay_auth import text_response, with_auth
from relay_constants import (
    COMMANDS,
    DEFAULT_COMMAND_KEY,
    DEFAULT_COMMAND_TABLE,
    INTERNAL_ERROR_BODY,
    NOT_FOUND_BODY,
    OFF_MESSAGE,
    OK_BODY,
    ON_MESSAGE,
    RECORD_KEY_ATTR,
    RECORD_UPDATED_ATTR,
    RECORD_VALUE_ATTR,
    STORE_FAILED_BODY,
    now_iso,
)

TABLE_NAME = os.environ.get("COMMAND_TABLE", DEFAULT_COMMAND_TABLE)
COMMAND_KEY = os.environ.get("COMMAND_KEY", DEFAULT_COMMAND_KEY)

# Created on first use, reused across warm invocations
_table = None


def get_table():
    global _table
    if _table is None:
        _table = boto3.resource("dynamodb").Table(TABLE_NAME)
    return _table


# --- Store ---

def write_command(command, table=None):
    """Overwrite the command record with a new token.

    Single put_item, no retry. Concurrent writes are last-write-wins.

    Args:
        command: ON_MESSAGE or OFF_MESSAGE.
        table: DynamoDB Table resource. Defaults to get_table().

    Raises:
        ValueError: If command is not a known token.
    """
    if command not in COMMANDS:
        raise ValueError(f"Unknown command {command!r}, expected one of {COMMANDS}")

    if table is None:
        table = get_table()
    table.put_item(Item={
        RECORD_KEY_ATTR: COMMAND_KEY,
        RECORD_VALUE_ATTR: command,
        RECORD_UPDATED_ATTR: now_iso(),
    })


def send_command(command):
    """Write a command and translate the outcome into an HTTP response."""
    try:
        write_command(command)
    except Exception as e:
        print(f"Command write failed ({command}): {e}")
        return text_response(503, STORE_FAILED_BODY)

    print(f"Command stored: {command}")
    return text_response(200, OK_BODY)


# --- Handlers ---

def _turn_on(event, context):
    return send_command(ON_MESSAGE)


def _turn_off(event, context):
    return send_command(OFF_MESSAGE)


turn_on = with_auth(_turn_on)
turn_off = with_auth(_turn_off)

ROUTES = {
    "/turn-on": turn_on,
    "/turn-off": turn_off,
}


# --- Router ---

def route_request(event, context):
    """Dispatch an API Gateway event to the handler for its path."""
    path = event.get("rawPath") or event.get("path") or "/"
    if len(path) > 1:
        path = path.rstrip("/")

    handler = ROUTES.get(path)
    if handler is None:
        print(f"No route for {path}")
        return text_response(404, NOT_FOUND_BODY)
    return handler(event, context)


def lambda_handler(event, context):
    """Single-function entry point for both routes."""
    try:
        return route_request(event or {}, context)
    except Exception as e:
        print(f"Command relay error: {e}")
        return text_response(500, INTERNAL_ERROR_BODY)
