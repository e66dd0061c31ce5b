#!/usr/bin/env python3
"""
Relay CMD — operator CLI for the command relay.

Usage:
    python aws/relay_cmd.py status                 # one-shot status
    python aws/relay_cmd.py status --watch         # poll every 30s
    python aws/relay_cmd.py set on                 # write directly (bypasses auth)
    python aws/relay_cmd.py trigger off --url https://xyz.execute-api.us-east-1.amazonaws.com

`trigger` goes through the deployed endpoint and needs IFTTT_SECRETKEY set
locally to the same value as the function's.
"""

import argparse
import calendar
import json
import sys
import time
import urllib.error
import urllib.request

from relay_auth import get_secret_key
from relay_constants import (
    BODY_AUTH_FIELD,
    COMMANDS,
    RECORD_KEY_ATTR,
    RECORD_UPDATED_ATTR,
    RECORD_VALUE_ATTR,
)
from relay_lambda import COMMAND_KEY, TABLE_NAME, get_table, write_command

ROUTE_FOR_COMMAND = {"on": "turn-on", "off": "turn-off"}


def get_record():
    resp = get_table().get_item(Key={RECORD_KEY_ATTR: COMMAND_KEY})
    return resp.get("Item")


def format_duration(seconds):
    if seconds < 60:
        return f"{seconds}s"
    m, s = divmod(seconds, 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    if h < 24:
        return f"{h}h {m}m"
    d, h = divmod(h, 24)
    return f"{d}d {h}h"


def record_age(record, now=None):
    """Seconds since the record was written, or None if unknown."""
    updated_at = record.get(RECORD_UPDATED_ATTR, "")
    if not updated_at:
        return None
    try:
        written = calendar.timegm(time.strptime(updated_at, "%Y-%m-%dT%H:%M:%SZ"))
    except (TypeError, ValueError):
        return None
    if now is None:
        now = time.time()
    return max(0, int(now - written))


def print_status(record):
    if not record:
        print(f"No command stored under {TABLE_NAME}/{COMMAND_KEY}.")
        return

    command = record.get(RECORD_VALUE_ATTR, "?")
    updated_at = record.get(RECORD_UPDATED_ATTR, "?")
    age = record_age(record)
    age_str = format_duration(age) if age is not None else "?"

    print(f"Command:  {command}")
    print(f"  Record:  {TABLE_NAME}/{COMMAND_KEY}")
    print(f"  Written: {updated_at}  ({age_str} ago)")


def post_trigger(base_url, command, secret_key, timeout=10):
    """POST an authenticated request to a deployed endpoint.

    Returns (status_code, body).
    """
    url = f"{base_url.rstrip('/')}/{ROUTE_FOR_COMMAND[command]}"
    data = json.dumps({BODY_AUTH_FIELD: secret_key}).encode()
    req = urllib.request.Request(url, data=data, method="POST")
    req.add_header("Content-Type", "application/json")

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        return e.code, e.read().decode("utf-8", errors="replace")


# --- Subcommands ---

def cmd_status(args):
    if args.watch:
        try:
            while True:
                print("\033[2J\033[H", end="")  # clear screen
                print(f"Relay Status  (Ctrl-C to stop, polling every {args.watch}s)\n")
                print_status(get_record())
                time.sleep(args.watch)
        except KeyboardInterrupt:
            print()
    else:
        print_status(get_record())
    return 0


def cmd_set(args):
    write_command(args.value)
    print(f"Stored {args.value} in {TABLE_NAME}/{COMMAND_KEY}")
    return 0


def cmd_trigger(args):
    secret_key = get_secret_key()
    if not secret_key:
        print("IFTTT_SECRETKEY is not set", file=sys.stderr)
        return 2

    try:
        status, body = post_trigger(args.url, args.value, secret_key, args.timeout)
    except urllib.error.URLError as e:
        print(f"Request failed: {e.reason}", file=sys.stderr)
        return 1

    print(f"{status} {body}")
    return 0 if status == 200 else 1


# --- Main ---

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Operator tool for the on/off command relay"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # status
    p_status = sub.add_parser("status", help="Show the stored command")
    p_status.add_argument(
        "--watch",
        nargs="?",
        const=30,
        type=int,
        metavar="SEC",
        help="Poll every N seconds (default 30)",
    )

    # set
    p_set = sub.add_parser("set", help="Write a command directly to the table")
    p_set.add_argument("value", choices=COMMANDS)

    # trigger
    p_trigger = sub.add_parser("trigger", help="Call a deployed endpoint")
    p_trigger.add_argument("value", choices=COMMANDS)
    p_trigger.add_argument("--url", required=True, help="Base URL of the API")
    p_trigger.add_argument(
        "--timeout", type=int, default=10, help="HTTP timeout in seconds"
    )

    args = parser.parse_args(argv)

    commands = {
        "status": cmd_status,
        "set": cmd_set,
        "trigger": cmd_trigger,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
