"""Detection of internal route decisions leaking into the message stream.

The retrieval graph's routing step reports its decision (answer directly
or retrieve documents first) on the same channel as user-visible tokens.
These payloads must be recognised and hidden without suppressing short
legitimate answers that happen to mention "direct" or "retrieve".
"""

import json
import re
from typing import Literal

from ragchat.streaming.constants import ROUTE_PAYLOAD_MAX_LENGTH

RouteDecision = Literal["direct", "retrieve"]

ROUTE_VALUES: tuple[RouteDecision, ...] = ("direct", "retrieve")
ROUTE_PAYLOAD_KEYS = frozenset({"route", "reason", "explanation"})

_ROUTE_LINE_PATTERN = re.compile(r"^route\s*[:=]\s*(direct|retrieve)\.?$", re.IGNORECASE)
_FENCED_JSON_PATTERN = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def _route_from_json(candidate: str) -> RouteDecision | None:
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict):
        return None

    route = parsed.get("route")
    if route not in ROUTE_VALUES:
        return None

    if not set(parsed) <= ROUTE_PAYLOAD_KEYS:
        return None

    return route


def extract_route_decision(text: str) -> RouteDecision | None:
    """Read a route decision from text, if the text is exactly one.

    Recognised shapes:
        - the bare words ``direct`` or ``retrieve`` (any case)
        - a single ``route: direct`` / ``route=retrieve.`` line
        - a JSON object, optionally in a ```json fence, whose ``route`` is
          ``direct`` or ``retrieve`` and whose keys are limited to
          ``route``, ``reason`` and ``explanation``

    Args:
        text: Message text to inspect.

    Returns:
        The decision, or None if the text is not a route decision.
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    lowered = trimmed.lower()
    if lowered in ROUTE_VALUES:
        return lowered

    line_match = _ROUTE_LINE_PATTERN.match(trimmed)
    if line_match:
        return line_match.group(1).lower()

    candidates = [trimmed]
    fenced_match = _FENCED_JSON_PATTERN.match(trimmed)
    if fenced_match and fenced_match.group(1):
        candidates.append(fenced_match.group(1).strip())

    for candidate in candidates:
        route = _route_from_json(candidate)
        if route is not None:
            return route

    return None


def is_internal_control_payload(
    text: str,
    max_length: int = ROUTE_PAYLOAD_MAX_LENGTH,
) -> bool:
    """Check whether message text is an internal route decision.

    Args:
        text: Extracted message text.
        max_length: Longest trimmed text that may still be suppressed.

    Returns:
        True if the text should never be shown to the user.
    """
    if extract_route_decision(text) is None:
        return False
    return len(text.strip()) <= max_length
