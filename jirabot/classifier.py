"""Response classifier: one error taxonomy for the tracker's failure signals.

The tracker reports failure three ways: a non-2xx status, an error body, and
transport exceptions. Some endpoints also answer 200 with an ``errors``
mapping in the body. Everything here is pure except ``report_if_error``,
which is the single place a request callable is invoked and its
``TransportError`` caught.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from jirabot.errors import TransportError
from jirabot.models import Result, TrackerResponse

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = "403 Forbidden. Verify your credentials?"
UNAUTHORIZED_MESSAGE = "401 Unauthorized. Check your credentials?"


def is_success(status: Any) -> bool:
    """True iff the first character of the decimal status is ``2``.

    Works for ints and already-stringified codes alike.
    """
    if status is None:
        return False
    return str(status).strip().startswith("2")


def embedded_errors(body: Any) -> bool:
    """True when a body carries a non-empty ``errors`` mapping."""
    return isinstance(body, dict) and bool(body.get("errors"))


def _body_message(body: Any) -> str:
    if not isinstance(body, dict):
        return ""
    messages = body.get("errorMessages")
    if messages:
        return " ".join(str(m) for m in messages)
    errors = body.get("errors")
    if isinstance(errors, dict):
        return " ".join(f"{field}: {msg}" for field, msg in errors.items())
    return ""


def format_error(status: Any, body: Any) -> str:
    """Render a failed exchange as a user-facing message.

    Checked in order: 403, 401, structured body, ``<status> API error``.
    """
    code = str(status).strip() if status is not None else None
    if code == "403":
        return FORBIDDEN_MESSAGE
    if code == "401":
        return UNAUTHORIZED_MESSAGE
    message = _body_message(body)
    if message:
        return message
    return f"{code or 'unknown'} API error"


def classify(response: TrackerResponse) -> Optional[str]:
    """Return the error message for a response, or None if it succeeded."""
    if is_success(response.status) and not embedded_errors(response.body):
        return None
    return format_error(response.status, response.body)


def parse_error_body(raw: Any) -> Any:
    """Decode a transport failure's raw body, or None if it isn't JSON."""
    if raw is None or isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return None


def classify_failure(error: TransportError) -> str:
    """Return the error message for a transport failure."""
    return format_error(error.status, parse_error_body(error.body))


def report_if_error(
    request: Callable[[], TrackerResponse],
    on_success: Callable[[TrackerResponse], Result],
) -> Result:
    """Run ``request`` and hand successful responses to ``on_success``.

    Any failure signal, including a 2xx with embedded errors, becomes an
    error Result. Transport failures never escape.
    """
    try:
        response = request()
    except TransportError as e:
        logger.debug("tracker transport error: %s", e, extra={"status": e.status})
        return Result.fail(classify_failure(e))

    message = classify(response)
    if message is not None:
        logger.info(
            "tracker api error: %r", response.body, extra={"status": response.status}
        )
        return Result.fail(message)
    return on_success(response)
