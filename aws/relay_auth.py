"""
Shared-secret authentication for the command relay endpoints.

Callers (IFTTT webhooks) present the secret either in the JSON body field
`authentication` or in the `authorization` header. The candidate is compared
against IFTTT_SECRETKEY in constant time before any command is written.

Key provisioning:
  - Cloud: IFTTT_SECRETKEY environment variable (plain string)
  - Caller: same string in the webhook body or header
  - Generate: python3 -c "import secrets; print(secrets.token_urlsafe(32))"

No secret configured means every request is rejected (fail closed).
"""

import base64
import binascii
import functools
import json
import logging
import os
from urllib.parse import parse_qs

from cryptography.hazmat.primitives import constant_time

from relay_constants import (
    AUTH_HEADER,
    BODY_AUTH_FIELD,
    SECRET_ENV_VAR,
    UNAUTHORIZED_BODY,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_secret_key():
    """Load the shared secret from environment.

    Read on every call so a rotated secret takes effect without a cold start.
    Returns the string, or None if not configured.
    """
    return os.environ.get(SECRET_ENV_VAR) or None


def text_response(status_code, body):
    """Build an API Gateway proxy response with a plain-text body."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/plain; charset=utf-8"},
        "body": body,
    }


# --- Credential extraction ---

def _get_header(event, name):
    """Case-insensitive header lookup. Returns "" when absent."""
    headers = event.get("headers") or {}
    if not isinstance(headers, dict):
        return ""
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == name:
            return value if isinstance(value, str) else ""
    return ""


def _parse_body(event):
    """Parse the request body into a dict. Returns {} for anything unusable."""
    body = event.get("body")
    if isinstance(body, dict):
        return body  # direct invocation with a pre-parsed payload
    if not body:
        return {}

    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError):
        return {}
    if not isinstance(body, str):
        return {}

    content_type = _get_header(event, "content-type").split(";")[0].strip().lower()
    if content_type == FORM_CONTENT_TYPE:
        fields = parse_qs(body, keep_blank_values=True)
        return {name: values[0] for name, values in fields.items() if values}

    try:
        parsed = json.loads(body)
    except (ValueError, RecursionError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def extract_credential(event):
    """Pull the candidate secret out of a request.

    Looks in the body field first, then the header. Only a missing or empty
    body field falls through to the header; a body field of any other type
    yields "" so the request is denied. Never raises.

    Args:
        event: API Gateway proxy event (HTTP API v2 or REST v1 shape).

    Returns:
        Candidate credential string, "" if none was supplied.
    """
    if not isinstance(event, dict):
        return ""

    field = _parse_body(event).get(BODY_AUTH_FIELD)
    if field:
        return field if isinstance(field, str) else ""

    return _get_header(event, AUTH_HEADER)


# --- Authentication ---

def is_authorized(candidate, secret_key=None):
    """Check a candidate credential against the configured secret.

    The comparison runs over the full UTF-8 encodings in constant time, so
    response latency reveals nothing about how much of the candidate matched.

    Args:
        candidate: Credential string from the request.
        secret_key: Configured secret. Read from IFTTT_SECRETKEY when None.

    Returns:
        True only if a secret is configured and the candidate equals it.
    """
    if secret_key is None:
        secret_key = get_secret_key()

    if not secret_key:
        logger.debug("No secret key provided.")
        return False

    try:
        return constant_time.bytes_eq(
            candidate.encode("utf-8"), secret_key.encode("utf-8")
        )
    except Exception:
        return False


def with_auth(handler, secret_loader=get_secret_key):
    """Wrap a Lambda handler so it only runs for authenticated requests.

    Args:
        handler: Function taking (event, context) and returning a response.
        secret_loader: Callable returning the current secret (or None).

    Returns:
        Handler with the same signature that answers 401 when the request
        does not carry the configured secret.
    """
    @functools.wraps(handler)
    def with_auth_impl(event, context):
        candidate = extract_credential(event)
        if not is_authorized(candidate, secret_loader() or ""):
            return text_response(401, UNAUTHORIZED_BODY)
        return handler(event, context)

    return with_auth_impl
